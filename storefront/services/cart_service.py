from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.identity import Identity
from storefront.domain.pricing import Quote, calculate_quote
from storefront.domain.schemas import MAX_LINE_QUANTITY
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.logging import get_logger
from storefront.utils.retry import db_retry
from storefront.utils.storage import storage_errors

logger = get_logger(__name__)


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(
            "Quantity must be a positive integer",
            {"quantity": ["must be a positive integer"]},
        )
    _check_line_limit(quantity)


def _check_line_limit(quantity: int) -> None:
    if quantity > MAX_LINE_QUANTITY:
        raise ValidationError(
            f"At most {MAX_LINE_QUANTITY} of one product per cart",
            {"quantity": [f"must not exceed {MAX_LINE_QUANTITY}"]},
        )


class CartService:
    """
    Cart use cases.
    query (get_cart, quote) reads live product prices
    commands (add, update, remove, clear) each run in one transaction that
    starts by bumping the cart version, so writers to one cart are serialised
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)

    # =====================================================
    # identity
    # =====================================================
    def resolve_cart(self, identity: Identity) -> CartModel:
        """
        The one cart for this identity, created if missing. An authenticated
        identity that still carries a guest session gets the guest cart merged in.
        """
        if identity.user_id is None and not identity.session_id:
            raise ValidationError("A user id or a cart session is required")

        with storage_errors("resolve cart"):
            return self._resolve(identity)

    @db_retry()
    def _resolve(self, identity: Identity) -> CartModel:
        try:
            if identity.user_id is not None:
                cart = self._find_or_create(user_id=identity.user_id)
                if identity.session_id:
                    self._merge_guest_cart(cart, identity.session_id)
            else:
                cart = self._find_or_create(session_id=identity.session_id)
            self.repo.commit()
            return cart
        except Exception:
            self.repo.rollback()
            raise

    def _find_or_create(self, user_id: Optional[int] = None, session_id: Optional[str] = None) -> CartModel:
        def lookup():
            if user_id is not None:
                return self.repo.get_cart_by_user(user_id)
            return self.repo.get_cart_by_session(session_id)

        existing = lookup()
        if existing:
            return existing

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, session_id=session_id, version=1))
        except IntegrityError:
            # a concurrent request created it first
            self.repo.rollback()
            existing = lookup()
            if existing is None:
                raise
            return existing

        owner = f"user {user_id}" if user_id is not None else f"session {session_id[:8]}..."
        logger.info(f"Created cart {created.id} for {owner}")
        return created

    def _merge_guest_cart(self, cart: CartModel, session_id: str) -> None:
        guest = self.repo.get_cart_by_session(session_id)
        if guest is None or guest.id == cart.id:
            return

        # lock both carts, lower id first, so a concurrent merge or guest add waits
        touched = {cart_id: self.repo.bump_version(cart_id) for cart_id in sorted((cart.id, guest.id))}
        if not touched[guest.id]:
            # another request merged it first
            return

        guest_items = self.repo.get_cart_items(guest.id)
        for guest_item in guest_items:
            existing = self.repo.get_cart_item(cart.id, guest_item.product_id)
            if existing:
                merged = existing.quantity + guest_item.quantity
                if merged > MAX_LINE_QUANTITY:
                    logger.warning(
                        f"Merging cart {guest.id} into {cart.id}: product {guest_item.product_id} "
                        f"capped at {MAX_LINE_QUANTITY} (was {merged})"
                    )
                    merged = MAX_LINE_QUANTITY
                existing.quantity = merged
            else:
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_id=guest_item.product_id,
                        quantity=guest_item.quantity,
                    )
                )
        self.repo.db.flush()
        self.repo.delete_cart(guest.id)

        logger.info(f"Merged guest cart {guest.id} ({len(guest_items)} items) into cart {cart.id}")

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(self, identity: Identity, promo_code: Optional[str] = None) -> Dict[str, Any]:
        cart = self.resolve_cart(identity)

        with storage_errors("read cart"):
            lines = self.repo.get_cart_lines(cart.id)
            self.repo.commit()

        quote = calculate_quote([(product.price, item.quantity) for item, product in lines], promo_code)

        return {
            "cart_id": cart.id,
            "items": [
                {"id": item.id, "quantity": item.quantity, "product": product}
                for item, product in lines
            ],
            "quote": quote,
        }

    def quote(self, identity: Identity, promo_code: Optional[str] = None) -> Quote:
        return self.get_cart(identity, promo_code)["quote"]

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_item(self, identity: Identity, product_id: int, quantity: int) -> CartItemModel:
        """
        Adds quantity of a product. A product already in the cart gets its
        quantity increased, never a second line.
        """
        _check_quantity(quantity)
        cart = self.resolve_cart(identity)

        with storage_errors("add item to cart"):
            return self._add_item(cart.id, product_id, quantity)

    @db_retry()
    def _add_item(self, cart_id: int, product_id: int, quantity: int) -> CartItemModel:
        try:
            if self.repo.bump_version(cart_id) == 0:
                raise NotFoundError("Cart not found")

            product = self.catalog.get_product(product_id)
            if not product:
                raise NotFoundError(f"Product {product_id} not found")
            if not product.in_stock:
                raise ValidationError(
                    f"{product.name} is out of stock",
                    {"product_id": ["product is out of stock"]},
                )

            item = self.repo.get_cart_item(cart_id, product_id)
            if item:
                _check_line_limit(item.quantity + quantity)
                logger.info(
                    f"Product {product_id} already in cart {cart_id}, quantity "
                    f"{item.quantity} -> {item.quantity + quantity}"
                )
                item.quantity += quantity
                self.repo.db.flush()
            else:
                logger.info(f"Adding product {product_id} x{quantity} to cart {cart_id}")
                item = self.repo.add_cart_item(
                    CartItemModel(cart_id=cart_id, product_id=product_id, quantity=quantity)
                )

            self.repo.commit()
            return item
        except Exception:
            self.repo.rollback()
            raise

    def update_quantity(self, identity: Identity, item_id: int, quantity: int) -> Optional[CartItemModel]:
        """quantity <= 0 removes the line and returns None."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("Quantity must be an integer", {"quantity": ["must be an integer"]})
        _check_line_limit(quantity)
        cart = self.resolve_cart(identity)

        with storage_errors("update cart item"):
            return self._update_quantity(cart.id, item_id, quantity)

    @db_retry()
    def _update_quantity(self, cart_id: int, item_id: int, quantity: int) -> Optional[CartItemModel]:
        try:
            self.repo.bump_version(cart_id)

            item = self.repo.get_item(item_id)
            if not item or item.cart_id != cart_id:
                raise NotFoundError(f"Cart item {item_id} not found")

            if quantity <= 0:
                self.repo.delete_item(item)
                logger.info(f"Removed item {item_id} from cart {cart_id} (quantity {quantity})")
                self.repo.commit()
                return None

            item.quantity = quantity
            self.repo.db.flush()
            self.repo.commit()
            return item
        except Exception:
            self.repo.rollback()
            raise

    def remove_item(self, identity: Identity, item_id: int) -> None:
        cart = self.resolve_cart(identity)

        with storage_errors("remove cart item"):
            self._remove_item(cart.id, item_id)

    @db_retry()
    def _remove_item(self, cart_id: int, item_id: int) -> None:
        try:
            self.repo.bump_version(cart_id)

            item = self.repo.get_item(item_id)
            if not item or item.cart_id != cart_id:
                raise NotFoundError(f"Cart item {item_id} not found")

            self.repo.delete_item(item)
            self.repo.commit()
            logger.info(f"Removed item {item_id} from cart {cart_id}")
        except Exception:
            self.repo.rollback()
            raise

    def clear_cart(self, identity: Identity) -> None:
        cart = self.resolve_cart(identity)

        with storage_errors("clear cart"):
            self._clear(cart.id)

    @db_retry()
    def _clear(self, cart_id: int) -> None:
        try:
            self.repo.bump_version(cart_id)
            removed = self.repo.clear_items(cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        if removed:
            logger.info(f"Cleared {removed} items from cart {cart_id}")

    # =====================================================
    # maintenance
    # =====================================================
    def prune_guest_carts(self, max_age_seconds: int) -> int:
        """Delete anonymous carts created more than max_age_seconds ago."""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=max_age_seconds)

        with storage_errors("prune guest carts"):
            try:
                stale = self.repo.list_stale_guest_carts(cutoff)
                for cart in stale:
                    self.repo.delete_cart(cart.id)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        if stale:
            logger.info(f"Pruned {len(stale)} guest carts older than {cutoff.isoformat()}")
        return len(stale)
