from rest_framework import serializers

from src.travel.models import Commission


class CommissionSerializer(serializers.ModelSerializer):
    advertiser_email = serializers.EmailField(source="advertiser.email", read_only=True)
    code = serializers.CharField(source="discount_code.code", read_only=True, default=None)
    booking_final_amount = serializers.DecimalField(
        source="booking.final_amount", max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = Commission
        fields = (
            "id", "booking", "booking_final_amount",
            "advertiser", "advertiser_email", "discount_code", "code",
            "amount", "percentage", "status", "paid_at", "created_at",
        )
        read_only_fields = fields


class MarkPaidSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class MonthlyReportQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2020, max_value=2100, required=False)
    month = serializers.IntegerField(min_value=1, max_value=12, required=False)
    advertiser = serializers.IntegerField(min_value=1, required=False, help_text="Managers only.")


class CodeCommissionRowSerializer(serializers.Serializer):
    code_id = serializers.IntegerField()
    code = serializers.CharField()
    package_id = serializers.IntegerField(allow_null=True)
    package_title = serializers.CharField(allow_null=True)
    max_uses = serializers.IntegerField(allow_null=True)
    uses = serializers.IntegerField()
    usage_rate = serializers.DecimalField(max_digits=7, decimal_places=2)
    tier_rate = serializers.DecimalField(max_digits=5, decimal_places=2)
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    tier_commission = serializers.DecimalField(max_digits=14, decimal_places=2)
    recorded_commission = serializers.DecimalField(max_digits=14, decimal_places=2)


class MonthlyReportSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.IntegerField()
    codes = CodeCommissionRowSerializer(many=True)
    total_tier_commission = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_recorded_commission = serializers.DecimalField(max_digits=14, decimal_places=2)
