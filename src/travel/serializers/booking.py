from drf_spectacular.utils import extend_schema_field, OpenApiTypes
from rest_framework import serializers

from src.travel.models import Booking, TravelPackage
from .common import PublicUserTinySerializer


class BookingCreateSerializer(serializers.Serializer):
    """
    Booking request. Prices are never taken from the client; any amount
    fields in the payload are ignored and the server computes them.
    """
    package = serializers.PrimaryKeyRelatedField(queryset=TravelPackage.objects.all())
    guest_count = serializers.IntegerField(min_value=1, max_value=100)
    booking_date = serializers.DateField(
        error_messages={
            "invalid": "Invalid date or format. Expected YYYY-MM-DD and a real calendar date."
        }
    )
    discount_code = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    contact_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    contact_phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    contact_email = serializers.EmailField(required=False, allow_blank=True, default="")
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")


class BookingSerializer(serializers.ModelSerializer):
    package_id = serializers.IntegerField(read_only=True)
    package_title = serializers.CharField(source="package.title", read_only=True)
    package_location = serializers.CharField(source="package.location", read_only=True)
    customer = serializers.SerializerMethodField(read_only=True)
    discount_code = serializers.SerializerMethodField(read_only=True)
    code_type = serializers.SerializerMethodField(read_only=True)
    can_cancel = serializers.SerializerMethodField(read_only=True)
    can_pay = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Booking
        fields = (
            "id",
            "package_id", "package_title", "package_location",
            "customer", "guest_count", "booking_date",
            "contact_name", "contact_phone", "contact_email", "special_requests",
            "total_amount", "discount_amount", "final_amount",
            "discount_code", "code_type",
            "status", "payment_status", "expires_at",
            "created_at", "updated_at",
            "can_cancel", "can_pay",
        )
        read_only_fields = fields

    @extend_schema_field(PublicUserTinySerializer)
    def get_customer(self, obj):
        c = getattr(obj, "customer", None)
        if not c:
            return None
        return {"id": c.id, "email": c.email}

    @extend_schema_field(OpenApiTypes.STR)
    def get_discount_code(self, obj):
        code = obj.applied_code
        return code.code if code else None

    @extend_schema_field(OpenApiTypes.STR)
    def get_code_type(self, obj):
        if obj.discount_code_id:
            return "advertiser"
        if obj.global_code_id:
            return "global"
        return None

    def _is_customer(self, obj):
        user = getattr(self.context.get("request"), "user", None)
        return bool(user and obj.customer_id == getattr(user, "id", None))

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_cancel(self, obj):
        return self._is_customer(obj) and obj.status == Booking.PENDING

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_pay(self, obj):
        return (
            self._is_customer(obj)
            and obj.status == Booking.PENDING
            and obj.payment_status == Booking.PAYMENT_PENDING
        )


class CheckoutRequestSerializer(serializers.Serializer):
    origin = serializers.URLField(required=False, allow_blank=True, help_text="Frontend base URL for redirects.")


class CheckoutSessionSerializer(serializers.Serializer):
    session_id = serializers.CharField(allow_blank=True)
    url = serializers.CharField()
    expires_at = serializers.IntegerField(allow_null=True)
    mock = serializers.BooleanField()
    paid = serializers.BooleanField()


class VerifyPaymentRequestSerializer(serializers.Serializer):
    session_id = serializers.CharField(max_length=255, required=False, allow_blank=True)


class VerifyPaymentResultSerializer(serializers.Serializer):
    paid = serializers.BooleanField()
    session_status = serializers.CharField(allow_blank=True)
    payment_status = serializers.CharField(allow_blank=True)
    booking = BookingSerializer()


class BookingStatsSerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    pending_bookings = serializers.IntegerField()
    confirmed_bookings = serializers.IntegerField()
    cancelled_bookings = serializers.IntegerField()
    total_guests = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)


class ExpireResultSerializer(serializers.Serializer):
    detail = serializers.CharField()
    expired = serializers.IntegerField()
