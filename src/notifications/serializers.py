from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = (
            "id", "title", "message", "type", "category", "priority",
            "action_url", "data", "is_read", "read_at", "expires_at", "created_at",
        )
        read_only_fields = ("id", "is_read", "read_at", "created_at")


class NotificationCreateSerializer(serializers.ModelSerializer):
    """Manager-authored notification for a single user."""
    user = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.filter(is_active=True))

    class Meta:
        model = Notification
        fields = ("user", "title", "message", "type", "priority", "action_url", "data", "expires_at")


class BroadcastSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    message = serializers.CharField(allow_blank=True, required=False, default="")
    type = serializers.ChoiceField(choices=Notification.Type.choices, default=Notification.Type.SYSTEM)
    priority = serializers.ChoiceField(choices=Notification.Priority.choices, default=Notification.Priority.NORMAL)
    action_url = serializers.CharField(max_length=500, allow_blank=True, required=False, default="")
    role = serializers.ChoiceField(
        choices=get_user_model().Role.choices,
        required=False,
        allow_null=True,
        default=None,
        help_text="Only users with this role; omit for everyone.",
    )


class UnreadCountSerializer(serializers.Serializer):
    count = serializers.IntegerField()


class BulkResultSerializer(serializers.Serializer):
    detail = serializers.CharField()
    count = serializers.IntegerField()
