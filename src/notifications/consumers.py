import logging
from urllib.parse import parse_qs

from asgiref.sync import async_to_sync
from channels.generic.websocket import JsonWebsocketConsumer
from django.utils import timezone

from .models import Notification
from .services import group_name, unread_count

logger = logging.getLogger(__name__)

EXISTING_LIMIT = 50

CLOSE_UNAUTHENTICATED = 4401
CLOSE_FORBIDDEN = 4403


class NotificationConsumer(JsonWebsocketConsumer):
    """
    Per-user notification stream at /ws/?userID=<id>&token=<jwt>.

    On connect the client gets its unread notifications (type
    `existing_notification`) followed by an `unread_count` message; after that
    every new notification is pushed as it is created.

    Client messages: `{"type": "ping"}` and `{"type": "mark_read", "id": <id>}`.
    """

    group = None

    def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            logger.info("Rejected anonymous notification socket")
            self.close(code=CLOSE_UNAUTHENTICATED)
            return

        query = parse_qs(self.scope.get("query_string", b"").decode())
        requested = (query.get("userID") or query.get("user_id") or [""])[0]
        if requested and requested != str(user.pk):
            logger.warning("User %s asked for the notification stream of %s", user.pk, requested)
            self.close(code=CLOSE_FORBIDDEN)
            return

        self.user = user
        self.group = group_name(user.pk)
        async_to_sync(self.channel_layer.group_add)(self.group, self.channel_name)
        self.accept()
        logger.info("Notification socket opened for user %s", user.pk)
        self.send_existing()

    def disconnect(self, code):
        if self.group:
            async_to_sync(self.channel_layer.group_discard)(self.group, self.channel_name)
            logger.info("Notification socket closed for user %s (%s)", self.user.pk, code)

    @classmethod
    def decode_json(cls, text_data):
        try:
            return super().decode_json(text_data)
        except ValueError:
            return None

    def receive_json(self, content, **kwargs):
        kind = content.get("type") if isinstance(content, dict) else None
        if kind == "ping":
            self.send_json({"type": "pong", "timestamp": timezone.now().isoformat()})
        elif kind == "mark_read":
            try:
                pk = int(content.get("id"))
            except (TypeError, ValueError):
                self.send_json({"type": "error", "message": "mark_read needs a numeric id."})
                return
            updated = (
                Notification.objects.filter(user=self.user, pk=pk, is_read=False)
                .update(is_read=True, read_at=timezone.now())
            )
            if updated:
                self.send_unread_count()
        else:
            self.send_json({"type": "error", "message": "Unsupported message."})

    def send_existing(self):
        existing = (
            Notification.objects.filter(user=self.user).live().unread()
            .order_by('-created_at')[:EXISTING_LIMIT]
        )
        for notification in existing:
            self.send_json(notification.envelope("existing_notification"))
        self.send_unread_count()

    def send_unread_count(self):
        self.send_json({
            "type": "unread_count",
            "title": "Unread count",
            "message": "",
            "timestamp": timezone.now().isoformat(),
            "data": {"count": unread_count(self.user)},
        })

    # channel layer event: {"type": "notification.message", "payload": {...}}
    def notification_message(self, event):
        self.send_json(event["payload"])
