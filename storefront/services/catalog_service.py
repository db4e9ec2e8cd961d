# storefront/services/catalog_service.py
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.domain.errors import AuthorizationError, NotFoundError, ValidationError
from storefront.domain.identity import Identity
from storefront.domain.schemas import CategoryIn, CategoryUpdate, ProductIn, ProductUpdate
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import SORT_ORDERS, CatalogRepo
from storefront.utils.logging import get_logger
from storefront.utils.storage import storage_errors

logger = get_logger(__name__)


def _require_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise AuthorizationError("Admin access required")


class CatalogService:
    """Categories and products: public reads, admin-only writes."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)
        self.carts = CartRepo(db)

    # =====================================================
    # categories
    # =====================================================
    def list_categories(self) -> List[CategoryModel]:
        with storage_errors("list categories"):
            return self.repo.list_categories()

    def get_category_by_slug(self, slug: str) -> CategoryModel:
        with storage_errors("read category"):
            category = self.repo.get_category_by_slug(slug)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create_category(self, identity: Identity, payload: CategoryIn) -> CategoryModel:
        _require_admin(identity)
        category = CategoryModel(**payload.model_dump())
        self._save(category, "create category")
        logger.info(f"Category {category.id} ({category.slug}) created")
        return category

    def update_category(self, identity: Identity, category_id: int, payload: CategoryUpdate) -> CategoryModel:
        _require_admin(identity)
        with storage_errors("read category"):
            category = self.repo.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found")

        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        self._save(category, "update category")
        return category

    def delete_category(self, identity: Identity, category_id: int) -> None:
        """Products keep their (now dangling) category_id."""
        _require_admin(identity)
        with storage_errors("delete category"):
            try:
                category = self.repo.get_category(category_id)
                if not category:
                    raise NotFoundError("Category not found")
                self.repo.delete(category)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        logger.info(f"Category {category_id} deleted")

    # =====================================================
    # products
    # =====================================================
    def search_products(
        self,
        category_id: Optional[int] = None,
        featured: Optional[bool] = None,
        is_new: Optional[bool] = None,
        search: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        brand: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[ProductModel], int]:
        if sort_by and sort_by not in SORT_ORDERS:
            raise ValidationError(
                f"Unknown sort order: {sort_by}",
                {"sort_by": [f"must be one of {', '.join(SORT_ORDERS)}"]},
            )
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("min_price is greater than max_price", {"min_price": ["must not exceed max_price"]})

        with storage_errors("search products"):
            return self.repo.search_products(
                category_id=category_id,
                featured=featured,
                is_new=is_new,
                search=search,
                min_price=min_price,
                max_price=max_price,
                brand=brand,
                sort_by=sort_by,
                limit=limit,
                offset=offset,
            )

    def get_product_by_slug(self, slug: str) -> ProductModel:
        with storage_errors("read product"):
            product = self.repo.get_product_by_slug(slug)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, identity: Identity, payload: ProductIn) -> ProductModel:
        _require_admin(identity)
        self._check_category(payload.category_id)

        product = ProductModel(**payload.model_dump(), rating=0.0, review_count=0)
        self._save(product, "create product")
        logger.info(f"Product {product.id} ({product.slug}) created at {product.price}")
        return product

    def update_product(self, identity: Identity, product_id: int, payload: ProductUpdate) -> ProductModel:
        """Price changes apply to carts immediately, never to placed orders."""
        _require_admin(identity)
        with storage_errors("read product"):
            product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")

        changes = payload.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._check_category(changes["category_id"])

        for field, value in changes.items():
            setattr(product, field, value)
        self._save(product, "update product")
        return product

    def delete_product(self, identity: Identity, product_id: int) -> None:
        """The product also leaves every cart; order history keeps its snapshot."""
        _require_admin(identity)
        with storage_errors("delete product"):
            try:
                product = self.repo.get_product(product_id)
                if not product:
                    raise NotFoundError("Product not found")
                removed = self.carts.delete_items_for_product(product_id)
                self.repo.delete(product)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        logger.info(f"Product {product_id} deleted, removed from {removed} cart lines")

    # =====================================================
    # helpers
    # =====================================================
    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is None:
            raise ValidationError("Category is required", {"category_id": ["is required"]})
        with storage_errors("read category"):
            exists = self.repo.get_category(category_id) is not None
        if not exists:
            raise ValidationError(
                f"Category {category_id} does not exist",
                {"category_id": ["unknown category"]},
            )

    def _save(self, obj, action: str) -> None:
        with storage_errors(action):
            try:
                self.repo.add(obj)
                self.repo.commit()
            except IntegrityError as e:
                self.repo.rollback()
                raise ValidationError("Slug is already in use", {"slug": ["must be unique"]}) from e
            except Exception:
                self.repo.rollback()
                raise
