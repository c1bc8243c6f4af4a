from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .package import TravelPackage


class Booking(models.Model):
    """A customer's reservation of seats on a travel package."""
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (CANCELLED, 'Cancelled'),
    ]

    PAYMENT_PENDING = 'pending'
    PAYMENT_COMPLETED = 'completed'
    PAYMENT_FAILED = 'failed'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_COMPLETED, 'Completed'),
        (PAYMENT_FAILED, 'Failed'),
    ]
    # completed and failed are terminal
    PAYMENT_TRANSITIONS = {
        PAYMENT_PENDING: {PAYMENT_COMPLETED, PAYMENT_FAILED},
    }
    AMOUNT_FIELDS = ('total_amount', 'discount_amount', 'final_amount')

    package = models.ForeignKey(TravelPackage, on_delete=models.CASCADE, related_name='bookings')
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    guest_count = models.PositiveIntegerField(default=1)
    booking_date = models.DateField()

    contact_name = models.CharField(max_length=150, blank=True, default="")
    contact_phone = models.CharField(max_length=30, blank=True, default="")
    contact_email = models.EmailField(blank=True, default="")
    special_requests = models.TextField(blank=True, default="")

    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    final_amount = models.DecimalField(max_digits=12, decimal_places=2)
    discount_code = models.ForeignKey(
        'travel.DiscountCode',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings',
    )
    global_code = models.ForeignKey(
        'travel.GlobalDiscountCode',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings',
    )

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    stripe_session_id = models.CharField(max_length=255, blank=True, default="", db_index=True)
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True, default="")
    expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'expires_at'], name='booking_status_expiry_idx'),
            models.Index(fields=['package', 'status'], name='booking_package_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(final_amount__gte=0), name='booking_final_amount_non_negative'),
            models.CheckConstraint(condition=models.Q(discount_amount__gte=0), name='booking_discount_non_negative'),
            models.CheckConstraint(condition=models.Q(guest_count__gte=1), name='booking_guest_count_positive'),
            models.CheckConstraint(
                condition=models.Q(discount_code__isnull=True) | models.Q(global_code__isnull=True),
                name='booking_single_discount_code',
            ),
        ]

    def __str__(self):
        return f"{self.customer} → {self.package} [{self.status}/{self.payment_status}]"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._remember_state()
        return instance

    def _remember_state(self):
        tracked = ('payment_status',) + self.AMOUNT_FIELDS
        # deferred fields are not in __dict__
        self._loaded_state = {name: self.__dict__[name] for name in tracked if name in self.__dict__}

    def _check_payment_invariants(self):
        loaded = getattr(self, '_loaded_state', None)
        if not loaded:
            return

        previous = loaded.get('payment_status')
        if previous is not None and previous != self.payment_status:
            allowed = self.PAYMENT_TRANSITIONS.get(previous, set())
            if self.payment_status not in allowed:
                raise ValidationError(
                    {'payment_status': f"Payment status cannot change from '{previous}' to '{self.payment_status}'."}
                )

        if previous == self.PAYMENT_COMPLETED:
            for name in self.AMOUNT_FIELDS:
                if name in loaded and loaded[name] != getattr(self, name):
                    raise ValidationError({name: "Amounts are locked once payment is completed."})

    def save(self, *args, **kwargs):
        self._check_payment_invariants()
        super().save(*args, **kwargs)
        self._remember_state()

    @property
    def applied_code(self):
        return self.discount_code or self.global_code
