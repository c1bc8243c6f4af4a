"""
Stripe Checkout for bookings.

Payment is verified by polling the Checkout Session (no webhook). With no
STRIPE_SECRET_KEY configured the module runs in mock mode: sessions are
`cs_test_mock_<booking id>` and verifying one always succeeds.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import stripe
from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from .exceptions import InvalidTransition, PaymentProviderError
from .lifecycle import confirm_payment, extend_hold, fail_payment
from .models import Booking
from .pricing import to_minor_units

logger = logging.getLogger(__name__)

MOCK_SESSION_PREFIX = "cs_test_mock_"
# Stripe rejects Checkout Sessions that expire in under 30 minutes
MIN_SESSION_MINUTES = 31


@dataclass
class CheckoutSession:
    session_id: str
    url: str
    expires_at: Optional[int] = None
    mock: bool = False
    paid: bool = False


@dataclass
class PaymentVerification:
    paid: bool
    booking: Booking
    session_status: str = ""
    payment_status: str = ""


def is_mock_mode():
    return not getattr(settings, "STRIPE_SECRET_KEY", "")


def mock_session_id(booking):
    return f"{MOCK_SESSION_PREFIX}{booking.pk}"


def _return_urls(booking, origin=None):
    base = (origin or settings.FRONTEND_URL).rstrip("/")
    success_url = f"{base}/payment-success?booking_id={booking.pk}&session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base}/packages/{booking.package_id}"
    return success_url, cancel_url


def session_deadline(now=None):
    minutes = max(int(getattr(settings, "BOOKING_HOLD_MINUTES", 30)), MIN_SESSION_MINUTES)
    return (now or timezone.now()) + timedelta(minutes=minutes)


def create_checkout_session(booking, origin=None):
    """
    Start payment for a pending booking.

    The booking's hold is stretched to the session's own expiry first, so a
    customer who pays before the session closes always finds the booking
    still pending.
    """
    now = timezone.now()
    if booking.status != Booking.PENDING or booking.payment_status != Booking.PAYMENT_PENDING:
        raise InvalidTransition("Only pending bookings can be sent to checkout.")
    if booking.expires_at is not None and booking.expires_at <= now:
        raise InvalidTransition("The booking hold has expired; please book again.")

    success_url, cancel_url = _return_urls(booking, origin)

    if booking.final_amount <= 0:
        # fully discounted; nothing to charge
        confirm_payment(booking)
        logger.info("Booking %s confirmed without checkout (nothing to pay)", booking.pk)
        return CheckoutSession(session_id="", url=success_url.replace("{CHECKOUT_SESSION_ID}", ""), paid=True)

    expires_at = session_deadline(now)
    booking = extend_hold(booking, expires_at, now=now)

    if is_mock_mode():
        session_id = mock_session_id(booking)
        session = CheckoutSession(
            session_id=session_id,
            url=success_url.replace("{CHECKOUT_SESSION_ID}", session_id),
            expires_at=int(booking.expires_at.timestamp()) if booking.expires_at else None,
            mock=True,
        )
        logger.info("Mock checkout session %s for booking %s", session_id, booking.pk)
    else:
        package = booking.package
        try:
            stripe_session = stripe.checkout.Session.create(
                api_key=settings.STRIPE_SECRET_KEY,
                mode="payment",
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": settings.STRIPE_CURRENCY,
                        "product_data": {
                            "name": package.title[:100],
                            "description": f"{booking.guest_count} guest(s), {booking.booking_date:%Y-%m-%d}",
                        },
                        "unit_amount": to_minor_units(booking.final_amount),
                    },
                    "quantity": 1,
                }],
                customer_email=booking.contact_email or booking.customer.email,
                client_reference_id=str(booking.pk),
                metadata={"booking_id": str(booking.pk), "package_id": str(package.pk)},
                success_url=success_url,
                cancel_url=cancel_url,
                expires_at=int(expires_at.timestamp()),
            )
        except stripe.StripeError as exc:
            logger.exception("Stripe checkout failed for booking %s", booking.pk)
            raise PaymentProviderError(f"Could not start checkout: {exc.user_message or 'provider error'}")

        session = CheckoutSession(
            session_id=stripe_session["id"],
            url=stripe_session["url"],
            expires_at=stripe_session.get("expires_at"),
        )
        logger.info("Stripe checkout session %s for booking %s", session.session_id, booking.pk)

    booking.stripe_session_id = session.session_id
    booking.save(update_fields=['stripe_session_id', 'updated_at'])
    return session


def _payment_intent_id(value):
    if not value:
        return ""
    if isinstance(value, str):
        return value
    return value.get("id", "")


def verify_checkout_session(booking, session_id=None):
    if booking.payment_status == Booking.PAYMENT_COMPLETED:
        return PaymentVerification(paid=True, booking=booking, payment_status="paid")

    session_id = session_id or booking.stripe_session_id
    if not session_id:
        raise ValidationError({"session_id": "No checkout session exists for this booking."})
    if booking.stripe_session_id and session_id != booking.stripe_session_id:
        raise ValidationError({"session_id": "This session does not belong to the booking."})

    if session_id.startswith(MOCK_SESSION_PREFIX):
        if not is_mock_mode() or session_id != mock_session_id(booking):
            raise ValidationError({"session_id": "Invalid checkout session."})
        booking = confirm_payment(booking, f"pi_mock_{booking.pk}")
        return PaymentVerification(paid=True, booking=booking, session_status="complete", payment_status="paid")

    if is_mock_mode():
        raise ValidationError({"session_id": "Payments are not configured."})

    try:
        session = stripe.checkout.Session.retrieve(session_id, api_key=settings.STRIPE_SECRET_KEY)
    except stripe.StripeError:
        logger.exception("Stripe session lookup failed for booking %s", booking.pk)
        raise PaymentProviderError("Could not verify payment with the provider.")

    metadata = session.get("metadata") or {}
    if str(metadata.get("booking_id", "")) != str(booking.pk):
        raise ValidationError({"session_id": "This session does not belong to the booking."})

    session_status = session.get("status") or ""
    payment_status = session.get("payment_status") or ""
    if payment_status == "paid":
        booking = confirm_payment(booking, _payment_intent_id(session.get("payment_intent")))
        return PaymentVerification(True, booking, session_status, payment_status)

    if session_status == "expired" and booking.status == Booking.PENDING:
        booking = fail_payment(booking, "checkout session expired")

    logger.info("Booking %s not paid yet (session %s: %s/%s)", booking.pk, session_id, session_status, payment_status)
    return PaymentVerification(False, booking, session_status, payment_status)
