# zonecart/api/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from zonecart.api.deps import get_lock_service
from zonecart.api.errors import DOMAIN_ERRORS, http_error
from zonecart.data.database import get_db
from zonecart.domain.schemas import CheckoutIn, OrderOut
from zonecart.services.checkout_service import CheckoutService
from zonecart.services.lock_service import LockService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Tworzy zamówienie z koszyka usera.
    409 z removed_items = koszyk zostal poprawiony, klient potwierdza i ponawia.
    """
    svc = CheckoutService(db, lock_service)
    try:
        return svc.checkout(payload.user_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
