# storefront/api/__init__.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from storefront.api.errors import request_validation_handler
from storefront.api.middleware import CartCookieMiddleware
from storefront.api.routers import admin, carts, categories, health, orders, products, users


def register_routes(app: FastAPI) -> FastAPI:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_middleware(CartCookieMiddleware)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(admin.router)
    return app
