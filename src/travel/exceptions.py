from rest_framework import status
from rest_framework.exceptions import APIException


class InvalidTransition(APIException):
    """Booking is not in a state that allows the requested transition."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This booking cannot make that status transition."
    default_code = "invalid_transition"


class PaymentProviderError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider request failed."
    default_code = "payment_provider_error"
