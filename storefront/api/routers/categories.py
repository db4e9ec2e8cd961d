# storefront/api/routers/categories.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_requester
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import CategoryIn, CategoryOut, CategoryUpdate
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/categories", tags=["catalog"])


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    try:
        return CatalogService(db).list_categories()
    except StorefrontError as e:
        raise to_http(e)


@router.get("/{slug}", response_model=CategoryOut)
def get_category(slug: str, db: Session = Depends(get_db)):
    try:
        return CatalogService(db).get_category_by_slug(slug)
    except StorefrontError as e:
        raise to_http(e)


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryIn,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).create_category(identity, payload)
    except StorefrontError as e:
        raise to_http(e)


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).update_category(identity, category_id, payload)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    identity: Identity = Depends(get_requester),
    db: Session = Depends(get_db),
):
    try:
        CatalogService(db).delete_category(identity, category_id)
    except StorefrontError as e:
        raise to_http(e)
