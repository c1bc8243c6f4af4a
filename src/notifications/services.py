import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from .models import Notification

logger = logging.getLogger(__name__)


def group_name(user_id):
    return f"notifications_{user_id}"


def push(user_id, payload):
    """Send one envelope to every open socket of `user_id`. Best effort."""
    layer = get_channel_layer()
    if layer is None:
        return
    async_to_sync(layer.group_send)(
        group_name(user_id),
        {"type": "notification.message", "payload": payload},
    )
    logger.debug("Pushed %s to user %s", payload.get("type"), user_id)


def notify(user, title, message="", type=Notification.Type.INFO, data=None, action_url="",
           priority=Notification.Priority.NORMAL, category="", expires_at=None):
    """Persist a notification and push it to the user's sockets once the transaction commits."""
    notification = Notification.objects.create(
        user=user,
        title=title,
        message=message,
        type=type,
        data=data or {},
        action_url=action_url,
        priority=priority,
        category=category or type,
        expires_at=expires_at,
    )
    payload = notification.envelope()
    transaction.on_commit(lambda: push(user.pk, payload))
    return notification


def broadcast(users, title, message="", type=Notification.Type.SYSTEM, data=None, action_url="",
              priority=Notification.Priority.NORMAL):
    """Notify many users at once; returns the number of notifications created."""
    users = list(users)
    created = Notification.objects.bulk_create([
        Notification(
            user=user, title=title, message=message, type=type, data=data or {},
            action_url=action_url, priority=priority, category=type,
        )
        for user in users
    ])

    def _push_all():
        for notification in created:
            push(notification.user_id, notification.envelope())

    transaction.on_commit(_push_all)
    logger.info("Broadcast '%s' to %d user(s)", title, len(created))
    return len(created)


def unread_count(user):
    return Notification.objects.filter(user=user).live().unread().count()
