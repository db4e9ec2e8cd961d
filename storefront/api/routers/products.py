# storefront/api/routers/products.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_requester
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import ProductIn, ProductOut, ProductPage, ProductUpdate
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["catalog"])


@router.get("", response_model=ProductPage)
def search_products(
    category: Optional[int] = Query(None, description="Category id"),
    featured: Optional[bool] = Query(None),
    new: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Substring of name or description"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    brand: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, description="price-asc, price-desc, newest, rating or name"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    try:
        products, total = CatalogService(db).search_products(
            category_id=category,
            featured=featured,
            is_new=new,
            search=search,
            min_price=min_price,
            max_price=max_price,
            brand=brand,
            sort_by=sort_by,
            limit=limit,
            offset=offset,
        )
    except StorefrontError as e:
        raise to_http(e)

    return {"products": products, "total": total}


@router.get("/{slug}", response_model=ProductOut)
def get_product(slug: str, db: Session = Depends(get_db)):
    try:
        return CatalogService(db).get_product_by_slug(slug)
    except StorefrontError as e:
        raise to_http(e)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductIn,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).create_product(identity, payload)
    except StorefrontError as e:
        raise to_http(e)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).update_product(identity, product_id, payload)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        CatalogService(db).delete_product(identity, product_id)
    except StorefrontError as e:
        raise to_http(e)
