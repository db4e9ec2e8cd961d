"""
Cart pricing.

Every price shown to a shopper (cart, checkout) and every order total is
computed here and nowhere else.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

FREE_SHIPPING_THRESHOLD = Decimal("100")
FLAT_SHIPPING_FEE = Decimal("10")
TAX_RATE = Decimal("0.08")

# code -> fraction of the subtotal taken off
PROMO_CODES = {
    "TRAILBLAZER": Decimal("0.20"),
}

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class Quote:
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    promo_code: Optional[str] = None
    promo_error: Optional[str] = None
    amount_to_free_shipping: Decimal = ZERO


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def promo_rate(code: Optional[str]) -> Optional[Decimal]:
    if not code:
        return None
    return PROMO_CODES.get(code.strip().upper())


def calculate_quote(lines: Iterable[Tuple[Decimal, int]], promo_code: Optional[str] = None) -> Quote:
    """
    lines: (unit price, quantity) pairs.

    subtotal  = sum(price * quantity)
    shipping  = 0 when subtotal >= 100, else 10
    discount  = subtotal * rate for a known promo code, else 0
    tax       = (subtotal - discount) * 0.08
    total     = subtotal - discount + shipping + tax

    An unknown promo code is reported on the quote, not raised.
    """
    subtotal = sum((Decimal(str(price)) * quantity for price, quantity in lines), ZERO)
    subtotal = _cents(subtotal)

    if subtotal >= FREE_SHIPPING_THRESHOLD:
        shipping = ZERO
    else:
        shipping = FLAT_SHIPPING_FEE

    discount = ZERO
    applied_code = None
    promo_error = None
    if promo_code:
        rate = promo_rate(promo_code)
        if rate is None:
            promo_error = "Invalid promo code"
        else:
            discount = _cents(subtotal * rate)
            applied_code = promo_code.strip().upper()

    tax = _cents((subtotal - discount) * TAX_RATE)
    total = _cents(subtotal - discount + shipping + tax)

    return Quote(
        subtotal=subtotal,
        discount=discount,
        shipping=_cents(shipping),
        tax=tax,
        total=total,
        promo_code=applied_code,
        promo_error=promo_error,
        amount_to_free_shipping=max(ZERO, _cents(FREE_SHIPPING_THRESHOLD - subtotal)),
    )
