from django.conf import settings
from django.db import models
from django.utils import timezone


class NotificationQuerySet(models.QuerySet):
    def live(self, at=None):
        """Exclude notifications past their expiry."""
        at = at or timezone.now()
        return self.filter(models.Q(expires_at__isnull=True) | models.Q(expires_at__gt=at))

    def unread(self):
        return self.filter(is_read=False)


class Notification(models.Model):
    class Type(models.TextChoices):
        INFO = "info", "Info"
        BOOKING = "booking", "Booking"
        PAYMENT = "payment", "Payment"
        DISCOUNT_CODE = "discount_code", "Discount code"
        COMMISSION = "commission", "Commission"
        SYSTEM = "system", "System"

    class Priority(models.IntegerChoices):
        LOW = 1, "Low"
        NORMAL = 2, "Normal"
        HIGH = 3, "High"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=200)
    message = models.TextField(blank=True, default="")
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.INFO)
    category = models.CharField(max_length=50, blank=True, default="")
    priority = models.PositiveSmallIntegerField(choices=Priority.choices, default=Priority.NORMAL)
    action_url = models.CharField(max_length=500, blank=True, default="")
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read', 'created_at'], name='notif_user_read_created_idx'),
        ]

    def __str__(self):
        return f"{self.user} · {self.title}"

    def mark_read(self):
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=['is_read', 'read_at', 'updated_at'])
        return True

    def envelope(self, message_type=None):
        """JSON shape pushed over the WebSocket."""
        return {
            "id": self.pk,
            "type": message_type or self.type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
            "timestamp": self.created_at.isoformat() if self.created_at else None,
            "data": {**(self.data or {}), "is_read": self.is_read, "action_url": self.action_url},
        }
