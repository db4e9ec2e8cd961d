# storefront/api/routers/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_requester
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import AuthenticationRequiredError, StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import UserCreate, UserRead
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.create_user(payload)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/me", response_model=UserRead)
def get_me(identity: Identity = Depends(get_requester), db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        if not identity.is_authenticated:
            raise AuthenticationRequiredError("Authentication required")
        return service.get_user(identity, identity.user_id)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, identity: Identity = Depends(get_requester), db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(identity, user_id)
    except StorefrontError as e:
        raise to_http(e)
