# storefront/api/errors.py
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.domain.errors import (
    AuthenticationRequiredError,
    AuthorizationError,
    EmptyCartError,
    NotFoundError,
    StorageError,
    StorefrontError,
    ValidationError,
)


def to_http(e: StorefrontError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=e.detail())
    if isinstance(e, EmptyCartError):
        return HTTPException(status_code=400, detail=e.message)
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, AuthenticationRequiredError):
        return HTTPException(status_code=401, detail=e.message)
    if isinstance(e, AuthorizationError):
        return HTTPException(status_code=403, detail=e.message)
    if isinstance(e, StorageError):
        # already logged with the cause, keep internals out of the response
        return HTTPException(status_code=500, detail="Internal storage failure")
    return HTTPException(status_code=500, detail="Internal error")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies/params are a 400 with field detail, like service-level validation."""
    fields = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"] if part != "body")
        fields.setdefault(loc, []).append(err["msg"])
    return JSONResponse(status_code=400, content={"detail": {"message": "Validation failed", "fields": fields}})
