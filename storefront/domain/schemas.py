# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =====================================================
# Users
# =====================================================
class UserCreate(BaseModel):
    """Profile registered by the upstream auth layer."""

    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserRead(BaseModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# Catalog
# =====================================================
class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    image_url: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    image_url: Optional[str] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, decimal_places=2)
    compare_at_price: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    image_url: Optional[str] = None
    category_id: int = Field(..., gt=0)
    brand: Optional[str] = None
    in_stock: bool = True
    is_featured: bool = False
    is_new: bool = False


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    compare_at_price: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    image_url: Optional[str] = None
    category_id: Optional[int] = Field(None, gt=0)
    brand: Optional[str] = None
    in_stock: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_new: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    category_id: int
    brand: Optional[str] = None
    in_stock: bool
    is_featured: bool
    is_new: bool
    rating: float
    review_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    products: List[ProductOut]
    total: int


# =====================================================
# Cart
# =====================================================
# upper bound for one cart line, merged quantities included
MAX_LINE_QUANTITY = 999


class ItemIn(BaseModel):
    """Add-to-cart payload."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0, le=MAX_LINE_QUANTITY)


class QuantityIn(BaseModel):
    # <= 0 removes the item
    quantity: int = Field(..., le=MAX_LINE_QUANTITY)


class CartItemOut(BaseModel):
    id: int
    cart_id: int
    product_id: int
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class CartLineOut(BaseModel):
    id: int
    quantity: int
    product: ProductOut


class QuoteOut(BaseModel):
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    promo_code: Optional[str] = None
    promo_error: Optional[str] = None
    amount_to_free_shipping: Decimal

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    cart_id: int
    items: List[CartLineOut]
    quote: QuoteOut


# =====================================================
# Orders
# =====================================================
class Address(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    address1: str = Field(..., min_length=1)
    address2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone: Optional[str] = None


class OrderCreate(BaseModel):
    """
    Checkout payload. Addresses stay raw dicts here so a malformed one is
    reported as a field-level 400 by the order service, not a 422.
    Any client-sent total is dropped, the server always prices the cart.
    """

    shipping_address: dict
    billing_address: dict
    payment_method: str = Field("credit_card", min_length=1)
    promo_code: Optional[str] = None


class OrderOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    status: str
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    promo_code: Optional[str] = None
    shipping_address: Address
    billing_address: Address
    payment_method: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Decimal
    product: Optional[ProductOut] = None  # null once the product is deleted


class OrderDetailOut(BaseModel):
    order: OrderOut
    items: List[OrderItemOut]


class OrderStatusIn(BaseModel):
    status: str
