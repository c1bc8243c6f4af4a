from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema_field, OpenApiTypes
from rest_framework import serializers

from src.travel.models import TravelPackage
from src.travel.pricing import unit_price
from .common import PublicUserTinySerializer, TagListField


class TravelPackageSerializer(serializers.ModelSerializer):
    tags = TagListField(required=False)
    unit_price = serializers.SerializerMethodField(read_only=True)
    remaining_capacity = serializers.IntegerField(read_only=True)
    created_by = serializers.StringRelatedField(read_only=True)
    advertisers = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = TravelPackage
        fields = [
            "id", "title", "description", "location",
            "price", "discount_percentage", "unit_price",
            "max_guests", "current_bookings", "remaining_capacity",
            "available_from", "available_to", "duration_days",
            "tags", "image", "is_active",
            "created_by", "advertisers",
            "created_at", "updated_at",
        ]
        read_only_fields = [
            "id", "current_bookings", "remaining_capacity", "unit_price",
            "created_by", "advertisers", "created_at", "updated_at",
        ]

    @extend_schema_field(OpenApiTypes.DECIMAL)
    def get_unit_price(self, obj):
        return str(unit_price(obj.price, obj.discount_percentage))

    @extend_schema_field(PublicUserTinySerializer(many=True))
    def get_advertisers(self, obj):
        return [{"id": u.id, "email": u.email} for u in obj.advertisers.all()]

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price must be >= 0.")
        return value

    def validate_discount_percentage(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("Discount percentage must be between 0 and 100.")
        return value

    def validate_max_guests(self, value):
        if value < 1:
            raise serializers.ValidationError("A package needs room for at least one guest.")
        if self.instance is not None and value < self.instance.current_bookings:
            raise serializers.ValidationError(
                f"{self.instance.current_bookings} seat(s) are already held; max_guests cannot go below that."
            )
        return value

    def validate(self, attrs):
        start = attrs.get("available_from", getattr(self.instance, "available_from", None))
        end = attrs.get("available_to", getattr(self.instance, "available_to", None))
        if start and end and end < start:
            raise serializers.ValidationError({"available_to": "must be on or after available_from"})
        return attrs


class AssignAdvertisersSerializer(serializers.Serializer):
    advertisers = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=True)

    def validate_advertisers(self, value):
        User = get_user_model()
        found = list(User.objects.advertisers().filter(pk__in=value))
        missing = set(value) - {u.pk for u in found}
        if missing:
            raise serializers.ValidationError(f"Not advertisers: {sorted(missing)}")
        return found


class TagCountSerializer(serializers.Serializer):
    tag = serializers.CharField()
    count = serializers.IntegerField()
