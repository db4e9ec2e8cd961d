# storefront/repos/catalog_repo.py
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel

SORT_ORDERS = {
    "price-asc": (ProductModel.price.asc(), ProductModel.id.asc()),
    "price-desc": (ProductModel.price.desc(), ProductModel.id.asc()),
    "newest": (ProductModel.created_at.desc(), ProductModel.id.desc()),
    "rating": (ProductModel.rating.desc(), ProductModel.id.asc()),
    "name": (ProductModel.name.asc(), ProductModel.id.asc()),
}


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    # ---------- categories ----------
    def list_categories(self) -> List[CategoryModel]:
        return list(self.db.execute(select(CategoryModel).order_by(CategoryModel.id)).scalars())

    def get_category(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def get_category_by_slug(self, slug: str) -> CategoryModel | None:
        return self.db.execute(
            select(CategoryModel).where(CategoryModel.slug == slug)
        ).scalar_one_or_none()

    def add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    def delete(self, obj) -> None:
        self.db.delete(obj)
        self.db.flush()

    # ---------- products ----------
    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_product_by_slug(self, slug: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.slug == slug)
        ).scalar_one_or_none()

    def get_products(self, product_ids) -> dict:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars()
        return {p.id: p for p in rows}

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
        """Filtered, sorted page of products plus the total before paging."""
        stmt = select(ProductModel)

        if category_id is not None:
            stmt = stmt.where(ProductModel.category_id == category_id)
        if featured is not None:
            stmt = stmt.where(ProductModel.is_featured == featured)
        if is_new is not None:
            stmt = stmt.where(ProductModel.is_new == is_new)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(ProductModel.name).like(pattern),
                    func.lower(func.coalesce(ProductModel.description, "")).like(pattern),
                )
            )
        if min_price is not None:
            stmt = stmt.where(ProductModel.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(ProductModel.price <= max_price)
        if brand:
            stmt = stmt.where(ProductModel.brand == brand)

        total = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

        stmt = stmt.order_by(*SORT_ORDERS.get(sort_by or "name", SORT_ORDERS["name"]))
        if limit is not None:
            stmt = stmt.limit(limit).offset(offset)
        elif offset:
            stmt = stmt.offset(offset)

        return list(self.db.execute(stmt).scalars()), total

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
