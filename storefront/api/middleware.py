# storefront/api/middleware.py
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from storefront.utils.settings import CART_SESSION_COOKIE


class CartCookieMiddleware(BaseHTTPMiddleware):
    """
    Writes the cart cookie decision made by get_cart_identity onto the final
    response. Runs outside the exception handlers, so an error response
    (404 unknown product, 400 bad quantity...) still hands a new guest the
    token of the cart that was created for it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        action = getattr(request.state, "cart_cookie", None)
        if action is not None:
            verb, token = action
            if verb == "set":
                response.set_cookie(CART_SESSION_COOKIE, token, httponly=True, samesite="lax")
            elif verb == "delete" and response.status_code < 400:
                # the guest cart is only gone once the merge went through
                response.delete_cookie(CART_SESSION_COOKIE)
        return response
