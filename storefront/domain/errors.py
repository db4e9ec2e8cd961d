# storefront/domain/errors.py
from typing import Dict, List, Optional


class StorefrontError(Exception):
    """Base for every error the services raise on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Bad input: quantity, address, status value, promo code..."""

    def __init__(self, message: str, fields: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def detail(self):
        return {"message": self.message, "fields": self.fields}


class NotFoundError(StorefrontError):
    pass


class AuthorizationError(StorefrontError):
    pass


class AuthenticationRequiredError(AuthorizationError):
    pass


class EmptyCartError(StorefrontError):
    def __init__(self, message: str = "Cannot place an order with an empty cart, add items first"):
        super().__init__(message)


class StorageError(StorefrontError):
    pass
