"""
Discount code lookup, validation and usage accounting.

Advertiser codes are looked up first, then global codes; matching is
case-insensitive. Checks run in a fixed order and the first failure is
reported: exists, active, not expired, under the usage cap, applicable to
the package (advertiser codes only), value in range.
"""
import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db.models import F, Q
from django.utils import timezone

from .models import DiscountCode, GlobalDiscountCode
from .pricing import AppliedDiscount, PriceQuote, PricingError, FIXED, PERCENTAGE, quote_for_package

logger = logging.getLogger(__name__)

ADVERTISER = "advertiser"
GLOBAL = "global"

NOT_FOUND = "not_found"
INACTIVE = "inactive"
EXPIRED = "expired"
EXHAUSTED = "exhausted"
NOT_APPLICABLE = "not_applicable"
INVALID_VALUE = "invalid_value"

MESSAGES = {
    NOT_FOUND: "Discount code not found.",
    INACTIVE: "This discount code is no longer active.",
    EXPIRED: "This discount code has expired.",
    EXHAUSTED: "This discount code has reached its usage limit.",
    NOT_APPLICABLE: "This discount code cannot be used for this package.",
    INVALID_VALUE: "This discount code has an invalid discount value.",
}

CODE_ATTEMPTS = 20


@dataclass
class CodeCheck:
    valid: bool
    reason: Optional[str] = None
    detail: str = ""
    code: object = None
    kind: Optional[str] = None
    quote: Optional[PriceQuote] = None

    def applied_discount(self):
        if not self.valid or self.code is None:
            return None
        return AppliedDiscount(self.code.discount_type, self.code.discount_value)


def _reject(reason, code=None, kind=None, detail=None):
    return CodeCheck(valid=False, reason=reason, detail=detail or MESSAGES[reason], code=code, kind=kind)


def find_code(raw_code):
    """Return `(code, kind)` or `(None, None)`; advertiser codes win over global ones."""
    value = (raw_code or "").strip()
    if not value:
        return None, None
    code = (
        DiscountCode.objects.select_related('advertiser', 'package')
        .filter(code__iexact=value)
        .first()
    )
    if code is not None:
        return code, ADVERTISER
    code = GlobalDiscountCode.objects.filter(code__iexact=value).first()
    if code is not None:
        return code, GLOBAL
    return None, None


def value_in_range(code):
    value = code.discount_value
    if value is None or value < 0:
        return False
    if code.discount_type == PERCENTAGE:
        return value <= 100
    return code.discount_type == FIXED


def validate_code(raw_code, package, guest_count=None, at=None):
    code, kind = find_code(raw_code)
    if code is None:
        return _reject(NOT_FOUND)
    if not code.is_active:
        return _reject(INACTIVE, code, kind)
    if code.is_expired(at or timezone.now()):
        return _reject(EXPIRED, code, kind)
    if code.is_exhausted:
        return _reject(EXHAUSTED, code, kind)

    if kind == ADVERTISER:
        if code.package_id is not None and code.package_id != package.pk:
            return _reject(NOT_APPLICABLE, code, kind, "This discount code is for a different package.")
        if not package.advertisers.filter(pk=code.advertiser_id).exists():
            return _reject(NOT_APPLICABLE, code, kind)

    if not value_in_range(code):
        return _reject(INVALID_VALUE, code, kind)

    check = CodeCheck(valid=True, code=code, kind=kind)
    if guest_count is not None:
        try:
            check.quote = quote_for_package(package, guest_count, check.applied_discount())
        except PricingError as exc:
            return _reject(INVALID_VALUE, code, kind, str(exc))
    return check


def consume_code(code):
    """
    Count one use of `code`. The increment is a single conditional UPDATE,
    so concurrent payments can never push `current_uses` past `max_uses`.
    Returns False when the cap was already reached.
    """
    model = type(code)
    updated = (
        model.objects.filter(pk=code.pk)
        .filter(Q(max_uses__isnull=True) | Q(current_uses__lt=F('max_uses')))
        .update(current_uses=F('current_uses') + 1)
    )
    if not updated:
        logger.warning("Discount code %s is at its usage cap; use not counted", code.code)
        return False
    code.refresh_from_db(fields=['current_uses'])
    return True


def code_exists(value, exclude=None):
    """Case-insensitive uniqueness across both code tables."""
    qs_adv = DiscountCode.objects.filter(code__iexact=value)
    qs_glb = GlobalDiscountCode.objects.filter(code__iexact=value)
    if exclude is not None and exclude.pk:
        if isinstance(exclude, DiscountCode):
            qs_adv = qs_adv.exclude(pk=exclude.pk)
        else:
            qs_glb = qs_glb.exclude(pk=exclude.pk)
    return qs_adv.exists() or qs_glb.exists()


def generate_code(prefix, discount_value):
    """`<PREFIX><int value><4 hex>`, e.g. `JOH10A3F9`; retried until unused."""
    amount = int(Decimal(str(discount_value or 0)))
    for _ in range(CODE_ATTEMPTS):
        candidate = f"{prefix}{amount}{secrets.token_hex(2).upper()}"
        if not code_exists(candidate):
            return candidate
    # short suffix space exhausted for this prefix
    return f"{prefix}{amount}{secrets.token_hex(4).upper()}"
