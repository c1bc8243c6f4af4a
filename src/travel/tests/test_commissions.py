from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from src.travel import commissions, lifecycle
from src.travel.factories import (
    AdvertiserFactory, DiscountCodeFactory, TravelPackageFactory, UserFactory,
)
from src.travel.models import Booking, Commission


@pytest.mark.parametrize("usage, rate", [
    (Decimal("100"), Decimal("10")),
    (Decimal("120"), Decimal("10")),
    (Decimal("75"), Decimal("5")),
    (Decimal("99.99"), Decimal("5")),
    (Decimal("50.01"), Decimal("3")),
    (Decimal("50"), Decimal("0")),
    (Decimal("0"), Decimal("0")),
])
def test_tier_rate(usage, rate):
    assert commissions.tier_rate(usage) == rate


@pytest.mark.parametrize("year, month", [(2019, 5), (2101, 1), (2024, 0), (2024, 13), ("x", 1)])
def test_month_bounds_rejects_out_of_range(year, month):
    with pytest.raises(ValidationError):
        commissions.month_bounds(year, month)


def test_month_bounds_december():
    start, end = commissions.month_bounds(2024, 12)
    assert (start.year, start.month, end.year, end.month) == (2024, 12, 2025, 1)


@pytest.mark.django_db
class TestMonthlyReport:
    def setup_method(self):
        self.advertiser = AdvertiserFactory()
        self.package = TravelPackageFactory(price=Decimal("1000"), max_guests=50, advertisers=[self.advertiser])
        self.code = DiscountCodeFactory(
            code="TIER", advertiser=self.advertiser, package=self.package,
            discount_value=Decimal("10"), max_uses=4, commission_rate=Decimal("5"),
        )
        self.day = timezone.localdate() + timedelta(days=20)

    def _paid_booking(self, guests=1):
        booking = lifecycle.create_booking(UserFactory(), self.package.pk, guests, self.day, discount_code="TIER")
        return lifecycle.confirm_payment(booking)

    def test_report_tiers_and_totals(self):
        for _ in range(3):
            self._paid_booking()
        # unpaid booking is not counted
        lifecycle.create_booking(UserFactory(), self.package.pk, 1, self.day, discount_code="TIER")

        today = timezone.localdate()
        report = commissions.monthly_commission_report(self.advertiser, today.year, today.month)

        assert report["year"] == today.year
        assert len(report["codes"]) == 1
        row = report["codes"][0]
        assert row["uses"] == 3
        assert row["usage_rate"] == Decimal("75.00")
        assert row["tier_rate"] == Decimal("5")
        # 3 x 900
        assert row["revenue"] == Decimal("2700.00")
        assert row["tier_commission"] == Decimal("135.00")
        assert row["recorded_commission"] == Decimal("135.00")
        assert report["total_tier_commission"] == Decimal("135.00")

    def test_other_month_is_empty(self):
        self._paid_booking()
        today = timezone.localdate()
        year, month = (today.year - 1, today.month) if today.year > 2020 else (today.year + 1, today.month)
        report = commissions.monthly_commission_report(self.advertiser, year, month)
        assert report["codes"] == []
        assert report["total_tier_commission"] == Decimal("0.00")

    def test_uncapped_code_has_no_tier(self):
        self.code.max_uses = None
        self.code.save()
        self._paid_booking()
        today = timezone.localdate()
        row = commissions.monthly_commission_report(self.advertiser, today.year, today.month)["codes"][0]
        assert row["usage_rate"] == Decimal("0")
        assert row["tier_commission"] == Decimal("0.00")

    def test_mark_paid_only_touches_pending(self):
        self._paid_booking()
        self._paid_booking()
        first = Commission.objects.first()
        assert commissions.mark_commissions_paid(Commission.objects.all()) == 2
        assert commissions.mark_commissions_paid(Commission.objects.filter(pk=first.pk)) == 0
        assert not Commission.objects.filter(status=Commission.PENDING).exists()
        assert Commission.objects.filter(paid_at__isnull=False).count() == 2

    def test_create_commission_is_idempotent(self):
        booking = self._paid_booking()
        again = commissions.create_commission(Booking.objects.get(pk=booking.pk))
        assert again == Commission.objects.get()
