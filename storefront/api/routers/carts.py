# storefront/api/routers/carts.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_identity
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import CartItemOut, CartOut, ItemIn, QuantityIn, QuoteOut
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    promo_code: Optional[str] = Query(None),
    identity: Identity = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_cart(identity, promo_code)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/quote", response_model=QuoteOut)
def get_quote(
    promo_code: Optional[str] = Query(None),
    identity: Identity = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    """Cart totals for the cart/checkout summary; a bad promo code comes back as promo_error."""
    svc = get_service(db)
    try:
        return svc.quote(identity, promo_code)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/items", response_model=CartItemOut, status_code=201)
def add_item(
    payload: ItemIn,
    identity: Identity = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(identity, payload.product_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)


@router.put("/items/{item_id}", response_model=Optional[CartItemOut])
def update_item(
    item_id: int,
    payload: QuantityIn,
    identity: Identity = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        item = svc.update_quantity(identity, item_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)

    if item is None:
        # quantity <= 0 removed the line
        return Response(status_code=204)
    return item


@router.delete("/items/{item_id}", status_code=204)
def remove_item(
    item_id: int,
    identity: Identity = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        svc.remove_item(identity, item_id)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("", status_code=204)
def clear_cart(
    identity: Identity = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        svc.clear_cart(identity)
    except StorefrontError as e:
        raise to_http(e)
