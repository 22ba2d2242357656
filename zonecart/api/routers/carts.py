# zonecart/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from zonecart.api.errors import DOMAIN_ERRORS, http_error
from zonecart.data.database import get_db
from zonecart.domain.errors import ValidationError
from zonecart.domain.schemas import CartOut, ItemIn, ItemUpdateIn
from zonecart.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


def _require_owner(user_id: int | None, cart_id: int | None) -> None:
    if not user_id and not cart_id:
        raise http_error(ValidationError("Wymagany user_id albo cart_id"))


@router.get("/", response_model=CartOut)
def get_cart(
    user_id: int | None = Query(None, gt=0),
    cart_id: int | None = Query(None, gt=0),
    db: Session = Depends(get_db),
):
    """
    Aktualny koszyk usera (albo anonimowy po cart_id).
    Brak koszyka = tworzony nowy, z zapisanym adresem usera.
    """
    _require_owner(user_id, cart_id)
    svc = get_service(db)
    try:
        return svc.get_cart(user_id, cart_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.post("/items", response_model=CartOut)
def add_item(payload: ItemIn, db: Session = Depends(get_db)):
    _require_owner(payload.user_id, payload.cart_id)
    svc = get_service(db)
    try:
        return svc.add_product(
            user_id=payload.user_id,
            cart_id=payload.cart_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.put("/items", response_model=CartOut)
def update_item(payload: ItemUpdateIn, db: Session = Depends(get_db)):
    _require_owner(payload.user_id, payload.cart_id)
    svc = get_service(db)
    try:
        return svc.update_quantity(
            user_id=payload.user_id,
            cart_id=payload.cart_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    user_id: int | None = Query(None, gt=0),
    cart_id: int | None = Query(None, gt=0),
    db: Session = Depends(get_db),
):
    _require_owner(user_id, cart_id)
    svc = get_service(db)
    try:
        return svc.remove_product(user_id, cart_id, product_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
