from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from src.travel import discounts
from src.travel.factories import (
    AdvertiserFactory, DiscountCodeFactory, GlobalDiscountCodeFactory, TravelPackageFactory,
)
from src.travel.models import DiscountCode


@pytest.mark.django_db
class TestValidateCode:
    def setup_method(self):
        self.advertiser = AdvertiserFactory(first_name="John")
        self.package = TravelPackageFactory(price=Decimal("1000"), discount_percentage=Decimal("10"),
                                            advertisers=[self.advertiser])

    def test_valid_advertiser_code_with_quote(self):
        DiscountCodeFactory(code="JOHN20", advertiser=self.advertiser, discount_value=Decimal("20"))
        check = discounts.validate_code("john20", self.package, guest_count=2)
        assert check.valid
        assert check.kind == discounts.ADVERTISER
        assert check.quote.final_amount == Decimal("1440.00")

    def test_unknown_code(self):
        check = discounts.validate_code("NOPE", self.package)
        assert not check.valid
        assert check.reason == discounts.NOT_FOUND

    def test_blank_code_is_not_found(self):
        assert discounts.validate_code("   ", self.package).reason == discounts.NOT_FOUND

    def test_inactive(self):
        DiscountCodeFactory(code="OFF", advertiser=self.advertiser, is_active=False)
        assert discounts.validate_code("OFF", self.package).reason == discounts.INACTIVE

    def test_expired(self):
        DiscountCodeFactory(code="OLD", advertiser=self.advertiser,
                            expires_at=timezone.now() - timedelta(minutes=1))
        assert discounts.validate_code("OLD", self.package).reason == discounts.EXPIRED

    def test_not_yet_expired(self):
        DiscountCodeFactory(code="SOON", advertiser=self.advertiser,
                            expires_at=timezone.now() + timedelta(days=1))
        assert discounts.validate_code("SOON", self.package).valid

    def test_exhausted_even_when_active_and_not_expired(self):
        DiscountCodeFactory(code="ONCE", advertiser=self.advertiser, max_uses=1, current_uses=1,
                            expires_at=timezone.now() + timedelta(days=30))
        check = discounts.validate_code("ONCE", self.package)
        assert not check.valid
        assert check.reason == discounts.EXHAUSTED

    def test_used_up_code_is_rejected_whatever_else_is_wrong(self):
        DiscountCodeFactory(code="DEAD", advertiser=self.advertiser, max_uses=1, current_uses=1,
                            is_active=False, expires_at=timezone.now() - timedelta(days=1))
        assert not discounts.validate_code("DEAD", self.package).valid

    def test_inactive_reported_before_exhausted(self):
        DiscountCodeFactory(code="SPENT", advertiser=self.advertiser, max_uses=1, current_uses=1, is_active=False)
        assert discounts.validate_code("SPENT", self.package).reason == discounts.INACTIVE

    def test_advertiser_not_assigned_to_package(self):
        stranger = AdvertiserFactory()
        DiscountCodeFactory(code="ELSE", advertiser=stranger)
        assert discounts.validate_code("ELSE", self.package).reason == discounts.NOT_APPLICABLE

    def test_code_bound_to_other_package(self):
        other = TravelPackageFactory(advertisers=[self.advertiser])
        DiscountCodeFactory(code="BOUND", advertiser=self.advertiser, package=other)
        check = discounts.validate_code("BOUND", self.package)
        assert check.reason == discounts.NOT_APPLICABLE
        assert discounts.validate_code("BOUND", other).valid

    def test_out_of_range_value(self):
        # bypasses serializer validation, as a bad row in the database would
        DiscountCodeFactory(code="HUGE", advertiser=self.advertiser, discount_value=Decimal("150"))
        assert discounts.validate_code("HUGE", self.package).reason == discounts.INVALID_VALUE

    def test_global_code_applies_to_any_package(self):
        GlobalDiscountCodeFactory(code="SAVE500", discount_value=Decimal("500"))
        check = discounts.validate_code("save500", TravelPackageFactory(price=Decimal("1000")), guest_count=1)
        assert check.valid
        assert check.kind == discounts.GLOBAL
        assert check.quote.final_amount == Decimal("500.00")

    def test_advertiser_code_wins_over_global_with_same_text(self):
        GlobalDiscountCodeFactory(code="SAME")
        # uniqueness across tables is enforced by the API, not the database
        DiscountCodeFactory(code="SAME", advertiser=self.advertiser)
        assert discounts.validate_code("SAME", self.package).kind == discounts.ADVERTISER


@pytest.mark.django_db
class TestUsageAccounting:
    def test_consume_stops_at_cap(self):
        code = DiscountCodeFactory(max_uses=2)
        assert discounts.consume_code(code) is True
        assert discounts.consume_code(code) is True
        assert discounts.consume_code(code) is False
        code.refresh_from_db()
        assert code.current_uses == 2

    def test_consume_uncapped(self):
        code = GlobalDiscountCodeFactory(max_uses=None)
        for _ in range(3):
            assert discounts.consume_code(code)
        code.refresh_from_db()
        assert code.current_uses == 3

    def test_generated_code_uses_name_prefix_and_value(self):
        advertiser = AdvertiserFactory(first_name="Somchai")
        code = DiscountCode.objects.create(advertiser=advertiser, discount_value=Decimal("15"))
        assert code.code.startswith("SOM15")
        assert len(code.code) == len("SOM15") + 4

    def test_code_is_uppercased(self):
        code = DiscountCodeFactory(code=" summer ")
        assert code.code == "SUMMER"

    def test_code_exists_is_case_insensitive_across_tables(self):
        GlobalDiscountCodeFactory(code="HELLO")
        assert discounts.code_exists("hello")
        assert not discounts.code_exists("bye")

    def test_default_commission_rate_follows_package_price(self):
        advertiser = AdvertiserFactory()
        cheap = DiscountCode.objects.create(advertiser=advertiser, discount_value=5,
                                            package=TravelPackageFactory(price=Decimal("2000")))
        premium = DiscountCode.objects.create(advertiser=advertiser, discount_value=5,
                                              package=TravelPackageFactory(price=Decimal("15000")))
        assert cheap.commission_rate == Decimal("5")
        assert premium.commission_rate == Decimal("7")
