from rest_framework import serializers


class PublicUserTinySerializer(serializers.Serializer):
    """Public projection for nested user references."""
    id = serializers.IntegerField()
    email = serializers.EmailField(allow_null=True, required=False)


class TagListField(serializers.ListField):
    """Comma-separated lowercase tags in the database, a list of strings over the API."""
    child = serializers.CharField(max_length=50)

    def to_representation(self, data):
        if isinstance(data, str):
            data = [t.strip() for t in data.split(",") if t.strip()]
        return super().to_representation(data)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.split(",")
        tags = []
        for tag in super().to_internal_value(data):
            tag = tag.strip().lower()
            if tag and tag not in tags:
                tags.append(tag)
        return ",".join(tags)
