from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError as ModelValidationError
from django.test import TestCase
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from src.notifications.models import Notification
from src.travel import lifecycle
from src.travel.exceptions import InvalidTransition
from src.travel.factories import (
    AdvertiserFactory, BookingFactory, DiscountCodeFactory, GlobalDiscountCodeFactory,
    TravelPackageFactory, UserFactory,
)
from src.travel.models import Booking, Commission


class BookingLifecycleTests(TestCase):
    def setUp(self):
        self.customer = UserFactory()
        self.advertiser = AdvertiserFactory()
        self.package = TravelPackageFactory(
            price=Decimal("1000"), discount_percentage=Decimal("10"), max_guests=5,
            advertisers=[self.advertiser],
        )
        self.travel_day = timezone.localdate() + timedelta(days=14)

    def _book(self, guests=2, code=""):
        return lifecycle.create_booking(self.customer, self.package.pk, guests, self.travel_day, discount_code=code)

    # ---------- create ----------
    def test_create_prices_on_server_and_reserves_seats(self):
        booking = self._book()
        self.assertEqual(booking.status, Booking.PENDING)
        self.assertEqual(booking.payment_status, Booking.PAYMENT_PENDING)
        self.assertEqual(booking.total_amount, Decimal("1800.00"))
        self.assertEqual(booking.final_amount, Decimal("1800.00"))
        self.assertIsNotNone(booking.expires_at)
        self.package.refresh_from_db()
        self.assertEqual(self.package.current_bookings, 2)
        self.assertTrue(Notification.objects.filter(user=self.customer, type="booking").exists())

    def test_create_with_codes(self):
        DiscountCodeFactory(code="ADV500", advertiser=self.advertiser,
                            discount_type="fixed", discount_value=Decimal("500"))
        GlobalDiscountCodeFactory(code="ALL20", discount_type="percentage", discount_value=Decimal("20"))

        fixed = self._book(code="adv500")
        self.assertEqual(fixed.final_amount, Decimal("1300.00"))
        self.assertIsNotNone(fixed.discount_code_id)
        self.assertIsNone(fixed.global_code_id)

        pct = self._book(code="ALL20")
        self.assertEqual(pct.final_amount, Decimal("1440.00"))
        self.assertEqual(pct.discount_amount, Decimal("360.00"))
        self.assertIsNotNone(pct.global_code_id)

    def test_create_does_not_count_code_use_until_paid(self):
        code = DiscountCodeFactory(code="LATER", advertiser=self.advertiser, max_uses=1)
        self._book(code="LATER")
        code.refresh_from_db()
        self.assertEqual(code.current_uses, 0)

    def test_invalid_code_reports_reason(self):
        with self.assertRaises(ValidationError) as ctx:
            self._book(code="MISSING")
        self.assertEqual(ctx.exception.detail["reason"], "not_found")

    def test_capacity_is_enforced(self):
        self._book(guests=4)
        with self.assertRaises(ValidationError) as ctx:
            self._book(guests=2)
        self.assertIn("guest_count", ctx.exception.detail)
        self.package.refresh_from_db()
        self.assertEqual(self.package.current_bookings, 4)

    def test_past_date_rejected(self):
        with self.assertRaises(ValidationError):
            lifecycle.create_booking(self.customer, self.package.pk, 1, timezone.localdate() - timedelta(days=1))

    def test_date_outside_window_rejected(self):
        self.package.available_from = self.travel_day + timedelta(days=1)
        self.package.save()
        with self.assertRaises(ValidationError) as ctx:
            self._book()
        self.assertIn("booking_date", ctx.exception.detail)

    def test_inactive_package_rejected(self):
        self.package.is_active = False
        self.package.save()
        with self.assertRaises(ValidationError):
            self._book()

    def test_final_amount_not_negative_with_large_fixed_code(self):
        GlobalDiscountCodeFactory(code="BIG", discount_type="fixed", discount_value=Decimal("99999"))
        booking = self._book(code="BIG")
        self.assertEqual(booking.final_amount, Decimal("0.00"))
        self.assertEqual(booking.discount_amount, booking.total_amount)

    # ---------- confirm ----------
    def test_confirm_counts_code_and_creates_commission(self):
        code = DiscountCodeFactory(code="PAY10", advertiser=self.advertiser, commission_rate=Decimal("5"))
        booking = self._book(code="PAY10")
        confirmed = lifecycle.confirm_payment(booking, "pi_123")

        self.assertEqual(confirmed.status, Booking.CONFIRMED)
        self.assertEqual(confirmed.payment_status, Booking.PAYMENT_COMPLETED)
        self.assertIsNone(confirmed.expires_at)
        self.assertEqual(confirmed.stripe_payment_intent_id, "pi_123")
        code.refresh_from_db()
        self.assertEqual(code.current_uses, 1)

        commission = Commission.objects.get(booking=booking)
        # 1800 - 10% = 1620; 5% of it
        self.assertEqual(commission.amount, Decimal("81.00"))
        self.assertEqual(commission.advertiser, self.advertiser)
        self.assertTrue(Notification.objects.filter(user=self.advertiser, type="commission").exists())

    def test_confirm_is_idempotent(self):
        code = DiscountCodeFactory(code="TWICE", advertiser=self.advertiser)
        booking = self._book(code="TWICE")
        lifecycle.confirm_payment(booking, "pi_1")
        lifecycle.confirm_payment(booking, "pi_1")
        code.refresh_from_db()
        self.assertEqual(code.current_uses, 1)
        self.assertEqual(Commission.objects.filter(booking=booking).count(), 1)
        self.package.refresh_from_db()
        self.assertEqual(self.package.current_bookings, 2)

    def test_global_code_earns_no_commission(self):
        GlobalDiscountCodeFactory(code="NOCOM")
        booking = self._book(code="NOCOM")
        lifecycle.confirm_payment(booking)
        self.assertFalse(Commission.objects.exists())

    def test_confirm_cancelled_booking_conflicts(self):
        booking = lifecycle.cancel_booking(self._book())
        with self.assertRaises(InvalidTransition):
            lifecycle.confirm_payment(booking)

    # ---------- cancel / expire ----------
    def test_cancel_releases_seats(self):
        booking = self._book(guests=3)
        cancelled = lifecycle.cancel_booking(booking)
        self.assertEqual(cancelled.status, Booking.CANCELLED)
        self.assertEqual(cancelled.payment_status, Booking.PAYMENT_FAILED)
        self.package.refresh_from_db()
        self.assertEqual(self.package.current_bookings, 0)

    def test_cancel_twice_conflicts(self):
        booking = lifecycle.cancel_booking(self._book())
        with self.assertRaises(InvalidTransition):
            lifecycle.cancel_booking(booking)

    def test_cannot_cancel_confirmed(self):
        booking = lifecycle.confirm_payment(self._book())
        with self.assertRaises(InvalidTransition):
            lifecycle.cancel_booking(booking)
        self.package.refresh_from_db()
        self.assertEqual(self.package.current_bookings, 2)

    def test_fail_payment(self):
        booking = lifecycle.fail_payment(self._book())
        self.assertEqual(booking.payment_status, Booking.PAYMENT_FAILED)
        self.assertTrue(Notification.objects.filter(user=self.customer, type="payment").exists())

    def test_expire_only_touches_stale_pending(self):
        stale = self._book(guests=1)
        fresh = self._book(guests=1)
        paid = lifecycle.confirm_payment(self._book(guests=1))
        Booking.objects.filter(pk__in=[stale.pk, paid.pk]).update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )

        self.assertEqual(lifecycle.expire_pending_bookings(), 1)

        stale.refresh_from_db()
        fresh.refresh_from_db()
        paid.refresh_from_db()
        self.assertEqual(stale.status, Booking.CANCELLED)
        self.assertEqual(fresh.status, Booking.PENDING)
        self.assertEqual(paid.status, Booking.CONFIRMED)
        self.package.refresh_from_db()
        self.assertEqual(self.package.current_bookings, 2)

    def test_expire_with_explicit_now(self):
        self._book(guests=1)
        later = timezone.now() + timedelta(hours=2)
        self.assertEqual(lifecycle.expire_pending_bookings(now=later), 1)


class PaymentStatusGuardTests(TestCase):
    def test_completed_cannot_go_back(self):
        booking = BookingFactory(paid=True)
        booking = Booking.objects.get(pk=booking.pk)
        booking.payment_status = Booking.PAYMENT_PENDING
        with self.assertRaises(ModelValidationError):
            booking.save()

    def test_failed_is_terminal(self):
        booking = BookingFactory(payment_status=Booking.PAYMENT_FAILED, status=Booking.CANCELLED)
        booking = Booking.objects.get(pk=booking.pk)
        booking.payment_status = Booking.PAYMENT_COMPLETED
        with self.assertRaises(ModelValidationError):
            booking.save()

    def test_amounts_locked_after_completion(self):
        booking = Booking.objects.get(pk=BookingFactory(paid=True).pk)
        booking.final_amount = Decimal("1.00")
        with self.assertRaises(ModelValidationError):
            booking.save()

    def test_pending_can_complete(self):
        booking = Booking.objects.get(pk=BookingFactory().pk)
        booking.payment_status = Booking.PAYMENT_COMPLETED
        booking.status = Booking.CONFIRMED
        booking.save()
        self.assertEqual(Booking.objects.get(pk=booking.pk).payment_status, Booking.PAYMENT_COMPLETED)
