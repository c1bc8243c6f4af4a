import logging
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from src.notifications.models import Notification
from src.notifications.services import notify

from .models import Booking, Commission, DiscountCode
from .pricing import HUNDRED, ZERO, money

logger = logging.getLogger(__name__)

# (minimum usage rate %, inclusive?, tier commission %)
USAGE_TIERS = (
    (Decimal("100"), True, Decimal("10")),
    (Decimal("75"), True, Decimal("5")),
    (Decimal("50"), False, Decimal("3")),
)


def default_commission_rate(package=None):
    premium_from = Decimal(str(getattr(settings, "PREMIUM_PACKAGE_PRICE", 10000)))
    if package is not None and package.price >= premium_from:
        return Decimal(str(getattr(settings, "PREMIUM_COMMISSION_RATE", 7)))
    return Decimal(str(getattr(settings, "DEFAULT_COMMISSION_RATE", 5)))


def create_commission(booking):
    """Record the advertiser's cut of a paid booking; one commission per booking."""
    code = booking.discount_code
    if code is None:
        return None

    rate = code.commission_rate
    if rate is None:
        rate = default_commission_rate(booking.package)
    commission, created = Commission.objects.get_or_create(
        booking=booking,
        defaults={
            'advertiser_id': code.advertiser_id,
            'discount_code': code,
            'percentage': rate,
            'amount': money(booking.final_amount * rate / HUNDRED),
        },
    )
    if created:
        logger.info(
            "Commission %s for advertiser %s: %s (%s%% of booking %s)",
            commission.pk, code.advertiser_id, commission.amount, rate, booking.pk,
        )
        notify(
            code.advertiser,
            "New commission earned",
            f"Code {code.code} earned you {commission.amount} on booking #{booking.pk}.",
            type=Notification.Type.COMMISSION,
            data={"booking_id": booking.pk, "commission_id": commission.pk, "amount": str(commission.amount)},
        )
    return commission


@transaction.atomic
def mark_commissions_paid(queryset):
    """Flip pending commissions to paid; returns the number changed."""
    now = timezone.now()
    pending = list(queryset.select_for_update().filter(status=Commission.PENDING).select_related('advertiser'))
    for commission in pending:
        commission.status = Commission.PAID
        commission.paid_at = now
        commission.save(update_fields=['status', 'paid_at'])
        notify(
            commission.advertiser,
            "Commission paid",
            f"Your commission of {commission.amount} for booking #{commission.booking_id} has been paid.",
            type=Notification.Type.COMMISSION,
            data={"commission_id": commission.pk},
        )
    logger.info("Marked %d commissions as paid", len(pending))
    return len(pending)


def tier_rate(usage_rate):
    for threshold, inclusive, rate in USAGE_TIERS:
        if usage_rate > threshold or (inclusive and usage_rate == threshold):
            return rate
    return ZERO


def month_bounds(year, month):
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise ValidationError({"detail": "year and month must be integers."})
    if not 2020 <= year <= 2100:
        raise ValidationError({"year": "Year must be between 2020 and 2100."})
    if not 1 <= month <= 12:
        raise ValidationError({"month": "Month must be between 1 and 12."})
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def monthly_commission_report(advertiser, year, month):
    """
    Per-code performance for one advertiser in one calendar month.

    Bookings count toward the month they were made in. The usage rate is the
    month's paid uses over `max_uses`; uncapped codes have no usage rate and
    therefore no tier bonus.
    """
    start, end = month_bounds(year, month)
    rows = []
    codes = DiscountCode.objects.filter(advertiser=advertiser).select_related('package')
    for code in codes:
        totals = Booking.objects.filter(
            discount_code=code,
            payment_status=Booking.PAYMENT_COMPLETED,
            created_at__date__gte=start,
            created_at__date__lt=end,
        ).aggregate(
            uses=Count('id'),
            revenue=Sum('final_amount'),
            recorded=Sum('commission__amount'),
        )
        uses = totals['uses'] or 0
        revenue = totals['revenue'] or ZERO
        if not uses and not revenue:
            continue

        usage_rate = money(Decimal(uses) / Decimal(code.max_uses) * HUNDRED) if code.max_uses else ZERO
        rate = tier_rate(usage_rate) if code.max_uses else ZERO
        rows.append({
            'code_id': code.pk,
            'code': code.code,
            'package_id': code.package_id,
            'package_title': code.package.title if code.package else None,
            'max_uses': code.max_uses,
            'uses': uses,
            'usage_rate': usage_rate,
            'tier_rate': rate,
            'revenue': money(revenue),
            'tier_commission': money(revenue * rate / HUNDRED),
            'recorded_commission': money(totals['recorded'] or ZERO),
        })

    rows.sort(key=lambda r: r['tier_commission'], reverse=True)
    return {
        'year': start.year,
        'month': start.month,
        'codes': rows,
        'total_tier_commission': money(sum((r['tier_commission'] for r in rows), ZERO)),
        'total_recorded_commission': money(sum((r['recorded_commission'] for r in rows), ZERO)),
    }
