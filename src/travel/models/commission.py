from django.conf import settings
from django.db import models

from .booking import Booking
from .discount_code import DiscountCode


class Commission(models.Model):
    PENDING = 'pending'
    PAID = 'paid'
    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (PAID, 'Paid'),
    ]

    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name='commission')
    advertiser = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='commissions')
    discount_code = models.ForeignKey(
        DiscountCode,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='commissions',
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    percentage = models.DecimalField(max_digits=5, decimal_places=2)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gte=0), name='commission_amount_non_negative'),
        ]

    def __str__(self):
        return f"{self.advertiser} {self.amount} ({self.status})"
