# storefront/api/deps.py
import secrets
from dataclasses import replace
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import StorageError
from storefront.domain.identity import ANONYMOUS, Identity
from storefront.services.user_service import UserService
from storefront.utils.settings import CART_SESSION_COOKIE


def get_requester(
    x_user_id: Optional[int] = Header(None),
    db: Session = Depends(get_db),
) -> Identity:
    """
    The upstream auth layer puts the signed-in user's id in X-User-Id.
    No header means an anonymous shopper.
    """
    if x_user_id is None:
        return ANONYMOUS

    try:
        user = UserService(db).lookup(x_user_id)
    except StorageError:
        raise HTTPException(status_code=500, detail="Internal storage failure")
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return Identity(user_id=user.id, is_admin=user.is_admin)


def get_cart_identity(
    request: Request,
    requester: Identity = Depends(get_requester),
) -> Identity:
    """
    Cart identity for cart and checkout routes. Anonymous shoppers get a
    random cart token in a cookie; a signed-in user who still has one gets
    the guest cart merged and the cookie dropped. The cookie itself is
    written by CartCookieMiddleware from request.state.cart_cookie.
    """
    token = request.cookies.get(CART_SESSION_COOKIE)

    if requester.is_authenticated:
        if token:
            request.state.cart_cookie = ("delete", None)
        return replace(requester, session_id=token)

    if not token:
        token = secrets.token_urlsafe(24)
        request.state.cart_cookie = ("set", token)
    return replace(requester, session_id=token)
