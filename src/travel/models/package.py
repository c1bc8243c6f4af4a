from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from ..validators import validate_image_file


class TravelPackage(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField()
    location = models.CharField(max_length=200, db_index=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, db_index=True)  # per guest
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    max_guests = models.PositiveIntegerField(default=10)
    current_bookings = models.PositiveIntegerField(default=0)
    available_from = models.DateField(null=True, blank=True)
    available_to = models.DateField(null=True, blank=True)
    duration_days = models.PositiveSmallIntegerField(default=1)
    tags = models.CharField(max_length=500, blank=True, default="")
    image = models.ImageField(
        upload_to="packages/%Y/%m/",
        null=True,
        blank=True,
        validators=[validate_image_file],
    )
    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_packages',
    )
    advertisers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name='assigned_packages',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_active', 'created_at'], name='package_active_created_idx'),
            models.Index(fields=['available_from', 'available_to'], name='package_window_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_bookings__lte=models.F('max_guests')),
                name='package_bookings_within_capacity',
            ),
            models.CheckConstraint(
                condition=models.Q(discount_percentage__gte=0, discount_percentage__lte=100),
                name='package_discount_percentage_range',
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name='package_price_non_negative',
            ),
        ]

    def __str__(self):
        return self.title

    @property
    def remaining_capacity(self):
        return max(self.max_guests - self.current_bookings, 0)

    @property
    def tag_list(self):
        return [t.strip() for t in (self.tags or "").split(",") if t.strip()]

    def is_available_on(self, day):
        """True when `day` falls inside the optional availability window."""
        if self.available_from and day < self.available_from:
            return False
        if self.available_to and day > self.available_to:
            return False
        return True
