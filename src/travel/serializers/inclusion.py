from rest_framework import serializers

from src.travel.models import InclusionType, PackageInclusion


class InclusionTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = InclusionType
        fields = (
            "id", "name", "name_en", "name_th", "description",
            "category", "display_order", "is_active", "created_at", "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name cannot be blank.")
        clash = InclusionType.objects.filter(name__iexact=value)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError("An inclusion with this name already exists.")
        return value


class PackageInclusionSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="inclusion.name", read_only=True)
    category = serializers.CharField(source="inclusion.category", read_only=True)
    display_order = serializers.IntegerField(source="inclusion.display_order", read_only=True)

    class Meta:
        model = PackageInclusion
        fields = ("inclusion", "name", "category", "display_order", "is_included", "custom_note")
        read_only_fields = fields


class PackageInclusionItemSerializer(serializers.Serializer):
    inclusion = serializers.PrimaryKeyRelatedField(queryset=InclusionType.objects.filter(is_active=True))
    is_included = serializers.BooleanField(default=True)
    custom_note = serializers.CharField(max_length=255, allow_blank=True, required=False, default="")


class PackageInclusionsUpdateSerializer(serializers.Serializer):
    """
    Replaces a package's inclusions. Send either `inclusion_ids` (all marked
    included) or `inclusions` items carrying their own flag and note.
    An empty list clears the set.
    """
    inclusion_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    inclusions = PackageInclusionItemSerializer(many=True, required=False)

    def validate_inclusion_ids(self, value):
        found = {i.pk: i for i in InclusionType.objects.filter(is_active=True, pk__in=value)}
        missing = sorted(set(value) - set(found))
        if missing:
            raise serializers.ValidationError(f"Unknown or inactive inclusions: {missing}")
        return [found[pk] for pk in value]

    def validate(self, attrs):
        if "inclusion_ids" not in attrs and "inclusions" not in attrs:
            raise serializers.ValidationError("Send inclusion_ids or inclusions.")
        items = list(attrs.get("inclusions", []))
        items += [{"inclusion": i, "is_included": True, "custom_note": ""} for i in attrs.get("inclusion_ids", [])]

        seen = set()
        for item in items:
            if item["inclusion"].pk in seen:
                raise serializers.ValidationError(f"Inclusion {item['inclusion'].pk} is listed twice.")
            seen.add(item["inclusion"].pk)
        return {"items": items}
