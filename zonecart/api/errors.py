# zonecart/api/errors.py
from fastapi import HTTPException

from zonecart.domain.errors import (
    CheckoutConflict,
    ConcurrencyConflict,
    GeocodeFailure,
    NotFoundError,
    ValidationError,
)


def http_error(e: Exception) -> HTTPException:
    """Wyjatek domenowy -> HTTPException. Nieznane wyjatki nie trafiaja tutaj."""
    if isinstance(e, CheckoutConflict):
        return HTTPException(
            status_code=409,
            detail={
                "error": str(e),
                "reason": e.reason,
                "removed_items": e.removed_items,
                "requires_confirmation": True,
            },
        )
    if isinstance(e, ConcurrencyConflict):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, GeocodeFailure):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    raise TypeError(f"Unmapped error type {type(e).__name__}") from e


# wyjatki obslugiwane przez routery, reszta leci jako 500
DOMAIN_ERRORS = (
    CheckoutConflict,
    ConcurrencyConflict,
    PermissionError,
    NotFoundError,
    GeocodeFailure,
    ValidationError,
)
