# storefront/services/order_service.py
from typing import Any, Dict, List, Optional

import pydantic
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderItemModel, OrderModel
from storefront.domain.errors import (
    AuthenticationRequiredError,
    AuthorizationError,
    EmptyCartError,
    NotFoundError,
    ValidationError,
)
from storefront.domain.identity import Identity
from storefront.domain.order_status import OrderStatus, can_transition, parse_status
from storefront.domain.pricing import calculate_quote, promo_rate
from storefront.domain.schemas import Address
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger
from storefront.utils.retry import db_retry
from storefront.utils.storage import storage_errors

logger = get_logger(__name__)


def _field_errors(prefix: str, error: pydantic.ValidationError) -> Dict[str, List[str]]:
    fields: Dict[str, List[str]] = {}
    for err in error.errors():
        loc = ".".join(str(part) for part in (prefix, *err["loc"]))
        fields.setdefault(loc, []).append(err["msg"])
    return fields


def validate_addresses(shipping_address, billing_address) -> tuple[Address, Address]:
    """Both addresses checked together so the caller sees every bad field at once."""
    fields: Dict[str, List[str]] = {}
    parsed = {}
    for name, raw in (("shipping_address", shipping_address), ("billing_address", billing_address)):
        if isinstance(raw, Address):
            parsed[name] = raw
            continue
        try:
            parsed[name] = Address.model_validate(raw)
        except pydantic.ValidationError as e:
            fields.update(_field_errors(name, e))

    if fields:
        raise ValidationError("Invalid address", fields)
    return parsed["shipping_address"], parsed["billing_address"]


class OrderService:
    """
    Orders: placing one from the caller's cart, reading them back, and the
    admin status workflow.
    """

    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.cart_service = CartService(db)
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # COMMANDS
    # =====================================================
    def place_order(
        self,
        identity: Identity,
        shipping_address,
        billing_address,
        payment_method: str = "credit_card",
        promo_code: Optional[str] = None,
    ) -> OrderModel:
        """
        Use Case: checkout.

        1. resolve the caller's cart, refuse an empty one
        2. validate both addresses
        3. price the cart server-side (live prices, optional promo)
        4. snapshot every line into an OrderItem at today's price
        5. create the order as pending
        6. clear the cart
        Steps 3-6 commit together or not at all.
        """
        cart = self.cart_service.resolve_cart(identity)

        with storage_errors("read cart"):
            has_items = bool(self.carts.get_cart_items(cart.id))
            self.carts.commit()
        if not has_items:
            raise EmptyCartError()

        shipping, billing = validate_addresses(shipping_address, billing_address)

        if not payment_method or not str(payment_method).strip():
            raise ValidationError("Payment method is required", {"payment_method": ["is required"]})

        if promo_code and promo_rate(promo_code) is None:
            raise ValidationError("Invalid promo code", {"promo_code": ["unknown promo code"]})

        with storage_errors("place order"):
            order = self._materialize(
                cart_id=cart.id,
                user_id=identity.user_id,
                shipping=shipping,
                billing=billing,
                payment_method=str(payment_method).strip(),
                promo_code=promo_code,
            )

        logger.info(
            f"Order {order.id} placed from cart {cart.id}: total {order.total} "
            f"({'user ' + str(order.user_id) if order.user_id is not None else 'guest'})"
        )

        self.notification_service.send_order_notification(order.user_id, order.id, order.status)
        return order

    @db_retry()
    def _materialize(
        self,
        cart_id: int,
        user_id: Optional[int],
        shipping: Address,
        billing: Address,
        payment_method: str,
        promo_code: Optional[str],
    ) -> OrderModel:
        try:
            # lock the cart for the whole conversion
            self.carts.bump_version(cart_id)

            lines = self.carts.get_cart_lines(cart_id)
            if not lines:
                raise EmptyCartError()

            quote = calculate_quote([(product.price, item.quantity) for item, product in lines], promo_code)

            order = OrderModel(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                subtotal=quote.subtotal,
                discount=quote.discount,
                shipping=quote.shipping,
                tax=quote.tax,
                total=quote.total,
                promo_code=quote.promo_code,
                shipping_address=shipping.model_dump(),
                billing_address=billing.model_dump(),
                payment_method=payment_method,
                items=[
                    OrderItemModel(
                        product_id=product.id,
                        quantity=item.quantity,
                        price=product.price,
                    )
                    for item, product in lines
                ],
            )
            self.repo.add_order(order)
            self.carts.clear_items(cart_id)

            self.repo.commit()
            return order
        except Exception:
            self.repo.rollback()
            raise

    def update_status(self, identity: Identity, order_id: int, status) -> OrderModel:
        """
        Admin only, one step at a time:
        pending -> processing -> completed, pending|processing -> cancelled
        """
        if not identity.is_admin:
            raise AuthorizationError("Admin access required")

        target = parse_status(status)
        if target is None:
            raise ValidationError(
                f"Unknown order status: {status}",
                {"status": [f"must be one of {', '.join(s.value for s in OrderStatus)}"]},
            )

        with storage_errors("update order status"):
            try:
                order = self.repo.get_order(order_id)
                if not order:
                    raise NotFoundError(f"Order {order_id} not found")

                current = OrderStatus(order.status)
                if not can_transition(current, target):
                    raise ValidationError(
                        f"Cannot move order from {current.value} to {target.value}",
                        {"status": [f"{current.value} -> {target.value} is not allowed"]},
                    )

                changed = current != target
                if changed:
                    self.repo.update_order_status(order, target.value)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        if changed:
            logger.info(f"Order {order_id}: {current.value} -> {target.value}")
            self.notification_service.send_order_notification(order.user_id, order.id, order.status)
        return order

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, identity: Identity, order_id: int) -> Dict[str, Any]:
        with storage_errors("read order"):
            order = self.repo.get_order(order_id)
            if not order:
                raise NotFoundError(f"Order {order_id} not found")

            is_owner = identity.user_id is not None and order.user_id == identity.user_id
            if not (is_owner or identity.is_admin):
                raise AuthorizationError("Unauthorized access to order")

            items = self.repo.get_order_items(order_id)
            products = self.catalog.get_products(i.product_id for i in items)

        return {
            "order": order,
            "items": [
                {
                    "id": i.id,
                    "order_id": i.order_id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "price": i.price,
                    "product": products.get(i.product_id),
                }
                for i in items
            ],
        }

    def list_orders(self, identity: Identity) -> List[OrderModel]:
        if not identity.is_authenticated:
            raise AuthenticationRequiredError("Authentication required")

        with storage_errors("list orders"):
            return self.repo.list_orders(user_id=identity.user_id)

    def list_all_orders(self, identity: Identity) -> List[OrderModel]:
        if not identity.is_admin:
            raise AuthorizationError("Admin access required")

        with storage_errors("list orders"):
            return self.repo.list_orders()
