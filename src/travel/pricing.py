"""
Package pricing.

A package's base price is per guest. The package's own percentage discount
gives the unit price; the unit price times the guest count is the subtotal.
An applied code then removes either a percentage of the subtotal or a fixed
amount. Discounts add up, they never compound, and the final amount is
never below zero.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

PERCENTAGE = "percentage"
FIXED = "fixed"

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


class PricingError(ValueError):
    """Input that cannot be priced: out-of-range discount or bad guest count."""


@dataclass(frozen=True)
class AppliedDiscount:
    discount_type: str
    value: Decimal


@dataclass(frozen=True)
class PriceQuote:
    unit_price: Decimal
    guest_count: int
    subtotal: Decimal
    discount_amount: Decimal
    final_amount: Decimal

    def as_dict(self):
        return asdict(self)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise PricingError(f"Not a number: {value!r}")


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def check_percentage(value, label="percentage") -> Decimal:
    pct = to_decimal(value)
    if pct < ZERO or pct > HUNDRED:
        raise PricingError(f"{label} must be between 0 and 100, got {pct}")
    return pct


def unit_price(base_price, discount_percentage=0) -> Decimal:
    base = to_decimal(base_price)
    if base < ZERO:
        raise PricingError(f"base price must be >= 0, got {base}")
    pct = check_percentage(discount_percentage, "package discount")
    return money(base * (HUNDRED - pct) / HUNDRED)


def code_discount(subtotal: Decimal, discount: AppliedDiscount) -> Decimal:
    value = to_decimal(discount.value)
    if discount.discount_type == PERCENTAGE:
        check_percentage(value, "code percentage")
        return money(subtotal * value / HUNDRED)
    if discount.discount_type == FIXED:
        if value < ZERO:
            raise PricingError(f"fixed discount must be >= 0, got {value}")
        return money(value)
    raise PricingError(f"unknown discount type: {discount.discount_type!r}")


def quote(base_price, guest_count, package_discount=0, discount: Optional[AppliedDiscount] = None) -> PriceQuote:
    """
    >>> quote(1000, 2, 10).subtotal
    Decimal('1800.00')
    >>> quote(1000, 2, 10, AppliedDiscount(FIXED, Decimal(500))).final_amount
    Decimal('1300.00')
    """
    if isinstance(guest_count, bool) or not isinstance(guest_count, int) or guest_count < 1:
        raise PricingError(f"guest count must be a positive integer, got {guest_count!r}")

    unit = unit_price(base_price, package_discount)
    subtotal = money(unit * guest_count)

    reduction = ZERO
    if discount is not None:
        reduction = min(code_discount(subtotal, discount), subtotal)

    return PriceQuote(
        unit_price=unit,
        guest_count=guest_count,
        subtotal=subtotal,
        discount_amount=money(reduction),
        final_amount=money(subtotal - reduction),
    )


def quote_for_package(package, guest_count, discount: Optional[AppliedDiscount] = None) -> PriceQuote:
    return quote(package.price, guest_count, package.discount_percentage, discount)


def to_minor_units(amount) -> int:
    """Amount in the currency's smallest unit (satang for THB)."""
    return int((to_decimal(amount) * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
