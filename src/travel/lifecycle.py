"""
Booking lifecycle.

    create  -> pending / payment pending, seats held until expires_at
    paid    -> confirmed / completed   (hold becomes permanent)
    failed, cancelled or expired
            -> cancelled / failed      (held seats are released)

Confirmed and cancelled bookings are final; any further transition raises
InvalidTransition.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F, Value
from django.db.models.functions import Greatest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from src.notifications.models import Notification
from src.notifications.services import notify

from .commissions import create_commission
from .discounts import ADVERTISER, consume_code, validate_code
from .exceptions import InvalidTransition
from .models import Booking, TravelPackage
from .pricing import PricingError, quote_for_package

logger = logging.getLogger(__name__)


def hold_deadline(now=None):
    minutes = int(getattr(settings, "BOOKING_HOLD_MINUTES", 30))
    return (now or timezone.now()) + timedelta(minutes=minutes)


def _release_seats(booking):
    TravelPackage.objects.filter(pk=booking.package_id).update(
        current_bookings=Greatest(F('current_bookings') - booking.guest_count, Value(0))
    )


def _locked(pk):
    return (
        Booking.objects.select_for_update()
        .select_related('package', 'customer', 'discount_code', 'global_code')
        .get(pk=pk)
    )


@transaction.atomic
def create_booking(customer, package_id, guest_count, booking_date, discount_code="",
                   contact_name="", contact_phone="", contact_email="", special_requests=""):
    """
    Hold `guest_count` seats and create a pending booking priced on the server.

    The package row stays locked until commit so two customers can never
    both take the last seats.
    """
    try:
        package = TravelPackage.objects.select_for_update().get(pk=package_id)
    except TravelPackage.DoesNotExist:
        raise ValidationError({"package": "Package not found."})

    if not package.is_active:
        raise ValidationError({"package": "This package is not available for booking."})
    if booking_date < timezone.localdate():
        raise ValidationError({"booking_date": "Travel date cannot be in the past."})
    if not package.is_available_on(booking_date):
        raise ValidationError({"booking_date": "Travel date is outside the package availability window."})
    if guest_count < 1:
        raise ValidationError({"guest_count": "At least one guest is required."})
    if package.remaining_capacity < guest_count:
        raise ValidationError(
            {"guest_count": f"Only {package.remaining_capacity} seat(s) left on this package."}
        )

    check = None
    if discount_code:
        check = validate_code(discount_code, package)
        if not check.valid:
            raise ValidationError({"discount_code": check.detail, "reason": check.reason})

    try:
        quote = quote_for_package(package, guest_count, check.applied_discount() if check else None)
    except PricingError as exc:
        raise ValidationError({"detail": str(exc)})

    TravelPackage.objects.filter(pk=package.pk).update(current_bookings=F('current_bookings') + guest_count)

    booking = Booking.objects.create(
        package=package,
        customer=customer,
        guest_count=guest_count,
        booking_date=booking_date,
        contact_name=contact_name or customer.display_name,
        contact_phone=contact_phone or customer.phone_number or "",
        contact_email=contact_email or customer.email,
        special_requests=special_requests or "",
        total_amount=quote.subtotal,
        discount_amount=quote.discount_amount,
        final_amount=quote.final_amount,
        discount_code=check.code if check and check.kind == ADVERTISER else None,
        global_code=check.code if check and check.kind != ADVERTISER else None,
        expires_at=hold_deadline(),
    )
    logger.info(
        "Booking %s created: package=%s guests=%s final=%s code=%s",
        booking.pk, package.pk, guest_count, booking.final_amount,
        check.code.code if check else None,
    )
    notify(
        customer,
        "Booking created",
        f"Your booking for {package.title} is held until "
        f"{timezone.localtime(booking.expires_at):%H:%M}. Complete payment to confirm it.",
        type=Notification.Type.BOOKING,
        data={"booking_id": booking.pk, "package_id": package.pk},
        action_url=f"/bookings/{booking.pk}",
    )
    return booking


@transaction.atomic
def confirm_payment(booking, payment_intent_id=""):
    """Mark a pending booking paid; repeating the call on a paid booking is a no-op."""
    booking = _locked(booking.pk)
    if booking.status == Booking.CONFIRMED and booking.payment_status == Booking.PAYMENT_COMPLETED:
        return booking
    if booking.status != Booking.PENDING or booking.payment_status != Booking.PAYMENT_PENDING:
        raise InvalidTransition(f"Booking is {booking.status}; only pending bookings can be confirmed.")

    booking.status = Booking.CONFIRMED
    booking.payment_status = Booking.PAYMENT_COMPLETED
    booking.expires_at = None
    if payment_intent_id:
        booking.stripe_payment_intent_id = payment_intent_id
    booking.save(update_fields=['status', 'payment_status', 'expires_at', 'stripe_payment_intent_id', 'updated_at'])

    code = booking.applied_code
    if code is not None:
        consume_code(code)
    if booking.discount_code_id:
        create_commission(booking)

    logger.info("Booking %s confirmed (payment intent %s)", booking.pk, payment_intent_id or "-")

    package = booking.package
    notify(
        booking.customer,
        "Booking confirmed",
        f"Payment received. Your trip to {package.location} on {booking.booking_date:%Y-%m-%d} is confirmed.",
        type=Notification.Type.PAYMENT,
        data={"booking_id": booking.pk, "final_amount": str(booking.final_amount)},
        action_url=f"/bookings/{booking.pk}",
    )
    for advertiser in package.advertisers.all():
        notify(
            advertiser,
            "New booking on your package",
            f"{booking.guest_count} guest(s) booked {package.title}.",
            type=Notification.Type.BOOKING,
            data={"booking_id": booking.pk, "package_id": package.pk},
        )
    return booking


@transaction.atomic
def extend_hold(booking, until, now=None):
    """
    Keep a pending booking's seats held until at least `until`.

    Checkout calls this before handing the customer to the payment provider,
    so the expiry sweep cannot cancel a booking that can still be paid.
    A hold that has already run out cannot be extended.
    """
    now = now or timezone.now()
    booking = _locked(booking.pk)
    if booking.status != Booking.PENDING or booking.payment_status != Booking.PAYMENT_PENDING:
        raise InvalidTransition("Only pending bookings can be sent to checkout.")
    if booking.expires_at is not None and booking.expires_at <= now:
        raise InvalidTransition("The booking hold has expired; please book again.")
    if booking.expires_at is None or booking.expires_at < until:
        booking.expires_at = until
        booking.save(update_fields=['expires_at', 'updated_at'])
        logger.info("Booking %s hold extended to %s", booking.pk, until.isoformat())
    return booking


def _close_pending(booking, reason):
    if booking.status != Booking.PENDING or booking.payment_status != Booking.PAYMENT_PENDING:
        raise InvalidTransition(f"Booking is {booking.status}; only pending bookings can be cancelled.")
    booking.status = Booking.CANCELLED
    booking.payment_status = Booking.PAYMENT_FAILED
    booking.expires_at = None
    booking.save(update_fields=['status', 'payment_status', 'expires_at', 'updated_at'])
    _release_seats(booking)
    logger.info("Booking %s cancelled (%s); %s seat(s) released", booking.pk, reason, booking.guest_count)
    return booking


@transaction.atomic
def cancel_booking(booking, reason="cancelled by user"):
    booking = _close_pending(_locked(booking.pk), reason)
    notify(
        booking.customer,
        "Booking cancelled",
        f"Your booking for {booking.package.title} was cancelled.",
        type=Notification.Type.BOOKING,
        data={"booking_id": booking.pk},
    )
    return booking


@transaction.atomic
def fail_payment(booking, reason="payment failed"):
    booking = _close_pending(_locked(booking.pk), reason)
    notify(
        booking.customer,
        "Payment failed",
        f"Payment for {booking.package.title} did not go through and the booking was released.",
        type=Notification.Type.PAYMENT,
        data={"booking_id": booking.pk},
    )
    return booking


def expire_pending_bookings(now=None):
    """Cancel every pending booking whose hold ended before `now`; returns the count."""
    now = now or timezone.now()
    stale = list(
        Booking.objects.filter(
            status=Booking.PENDING,
            payment_status=Booking.PAYMENT_PENDING,
            expires_at__lt=now,
        ).values_list('pk', flat=True)
    )
    expired = 0
    for pk in stale:
        with transaction.atomic():
            booking = _locked(pk)
            # paid or cancelled since the query above
            if booking.status != Booking.PENDING or booking.payment_status != Booking.PAYMENT_PENDING:
                continue
            _close_pending(booking, "hold expired")
            notify(
                booking.customer,
                "Booking expired",
                f"Your booking for {booking.package.title} expired before payment was received.",
                type=Notification.Type.BOOKING,
                data={"booking_id": booking.pk},
            )
        expired += 1

    if expired:
        logger.info("Expired %d pending booking(s)", expired)
    return expired
