# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_identity, get_requester
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import OrderCreate, OrderDetailOut, OrderOut
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    identity: Identity = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    """
    Places an order from the caller's cart and empties the cart.
    The total is always computed here, never taken from the client.
    """
    svc = get_service(db)
    try:
        return svc.place_order(
            identity,
            shipping_address=payload.shipping_address,
            billing_address=payload.billing_address,
            payment_method=payload.payment_method,
            promo_code=payload.promo_code,
        )
    except StorefrontError as e:
        raise to_http(e)


@router.get("", response_model=List[OrderOut])
def list_my_orders(
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.list_orders(identity)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    """Owner or admin only."""
    svc = get_service(db)
    try:
        return svc.get_order(identity, order_id)
    except StorefrontError as e:
        raise to_http(e)
