# storefront/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_requester
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import OrderOut, OrderStatusIn
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=List[OrderOut])
def list_all_orders(
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        return OrderService(db).list_all_orders(identity)
    except StorefrontError as e:
        raise to_http(e)


@router.put("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusIn,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        return OrderService(db).update_status(identity, order_id, payload.status)
    except StorefrontError as e:
        raise to_http(e)
