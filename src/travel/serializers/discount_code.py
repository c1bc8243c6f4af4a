from django.contrib.auth import get_user_model
from rest_framework import serializers

from src.travel.discounts import code_exists
from src.travel.models import DiscountCode, GlobalDiscountCode, TravelPackage


class BaseDiscountCodeSerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=40, required=False, allow_blank=True,
                                 help_text="Leave empty to generate one.")
    remaining_uses = serializers.IntegerField(read_only=True, allow_null=True)

    base_fields = (
        "id", "code", "discount_type", "discount_value",
        "is_active", "expires_at", "max_uses", "current_uses", "remaining_uses",
        "created_at", "updated_at",
    )
    base_read_only = ("id", "current_uses", "remaining_uses", "created_at", "updated_at")

    def validate_code(self, value):
        value = (value or "").strip().upper()
        if value and code_exists(value, exclude=self.instance):
            raise serializers.ValidationError("A discount code with this value already exists.")
        return value

    def validate(self, attrs):
        kind = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        value = attrs.get("discount_value", getattr(self.instance, "discount_value", None))
        if value is not None:
            if value < 0:
                raise serializers.ValidationError({"discount_value": "Must be >= 0."})
            if kind == DiscountCode.DiscountType.PERCENTAGE and value > 100:
                raise serializers.ValidationError({"discount_value": "A percentage cannot exceed 100."})

        max_uses = attrs.get("max_uses", getattr(self.instance, "max_uses", None))
        if self.instance is not None and max_uses is not None and max_uses < self.instance.current_uses:
            raise serializers.ValidationError(
                {"max_uses": f"Already used {self.instance.current_uses} time(s)."}
            )
        return attrs


class DiscountCodeSerializer(BaseDiscountCodeSerializer):
    advertiser = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.advertisers())
    advertiser_email = serializers.EmailField(source="advertiser.email", read_only=True)
    package = serializers.PrimaryKeyRelatedField(
        queryset=TravelPackage.objects.all(), required=False, allow_null=True
    )
    package_title = serializers.CharField(source="package.title", read_only=True, default=None)
    commission_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, allow_null=True,
        help_text="Defaults to 5%, or 7% for premium packages.",
    )

    class Meta:
        model = DiscountCode
        fields = BaseDiscountCodeSerializer.base_fields + (
            "advertiser", "advertiser_email", "package", "package_title", "commission_rate",
        )
        read_only_fields = BaseDiscountCodeSerializer.base_read_only


class GlobalDiscountCodeSerializer(BaseDiscountCodeSerializer):
    created_by = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = GlobalDiscountCode
        fields = BaseDiscountCodeSerializer.base_fields + ("description", "created_by")
        read_only_fields = BaseDiscountCodeSerializer.base_read_only + ("created_by",)


class DiscountValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=40)
    package = serializers.PrimaryKeyRelatedField(queryset=TravelPackage.objects.filter(is_active=True))
    guest_count = serializers.IntegerField(min_value=1, max_value=100, required=False)


class PriceQuoteSerializer(serializers.Serializer):
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    guest_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    final_amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class DiscountValidationResultSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True, required=False)
    detail = serializers.CharField(allow_blank=True)
    code = serializers.CharField(allow_null=True, required=False)
    code_type = serializers.CharField(allow_null=True, required=False)
    discount_type = serializers.CharField(allow_null=True, required=False)
    discount_value = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True, required=False)
    quote = PriceQuoteSerializer(allow_null=True, required=False)
