# storefront/repos/cart_repo.py
from typing import List, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel


class CartRepo:
    """
    Storage for carts and their line items. Methods never commit on their
    own except create_cart; the service owns the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- carts ----------
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def get_cart_by_session(self, session_id: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.session_id == session_id)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        """Insert and commit. Raises IntegrityError if the identity already has a cart."""
        self.db.add(cart)
        self.db.commit()
        return cart

    def delete_cart(self, cart_id: int) -> None:
        self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        self.db.execute(delete(CartModel).where(CartModel.id == cart_id))

    def bump_version(self, cart_id: int) -> int:
        """
        UPDATE carts SET version = version + 1 WHERE id = :id

        Runs first in every cart write so the row lock is held for the rest
        of the transaction and writers to the same cart queue up behind it.
        Returns the number of rows touched (0 when the cart is gone).
        """
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(version=CartModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def list_stale_guest_carts(self, created_before) -> List[CartModel]:
        return list(
            self.db.execute(
                select(CartModel).where(
                    CartModel.session_id.is_not(None),
                    CartModel.created_at < created_before,
                )
            ).scalars()
        )

    # ---------- items ----------
    # item reads overwrite rows already in the identity map
    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def get_cart_lines(self, cart_id: int) -> List[Tuple[CartItemModel, ProductModel]]:
        """Items joined to their live product rows."""
        rows = self.db.execute(
            select(CartItemModel, ProductModel)
            .join(ProductModel, ProductModel.id == CartItemModel.product_id)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
            .execution_options(populate_existing=True)
        ).all()
        return [(item, product) for item, product in rows]

    def get_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id, populate_existing=True)

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            ).execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def clear_items(self, cart_id: int) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return result.rowcount

    def delete_items_for_product(self, product_id: int) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.product_id == product_id))
        return result.rowcount

    # ---------- tx ----------
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
