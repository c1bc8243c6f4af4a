from django.conf import settings
from django.db import models
from django.utils import timezone


class BaseDiscountCode(models.Model):
    """Fields and usage rules shared by advertiser and global codes."""

    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED = "fixed", "Fixed amount"

    code = models.CharField(max_length=40, unique=True)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.PERCENTAGE,
    )
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    is_active = models.BooleanField(default=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    current_uses = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_uses__isnull=True) | models.Q(current_uses__lte=models.F('max_uses')),
                name='%(app_label)s_%(class)s_uses_within_cap',
            ),
            models.CheckConstraint(
                condition=models.Q(discount_value__gte=0),
                name='%(app_label)s_%(class)s_value_non_negative',
            ),
        ]

    def __str__(self):
        return self.code

    def is_expired(self, at=None):
        if self.expires_at is None:
            return False
        return self.expires_at <= (at or timezone.now())

    @property
    def is_exhausted(self):
        return self.max_uses is not None and self.current_uses >= self.max_uses

    @property
    def remaining_uses(self):
        if self.max_uses is None:
            return None
        return max(self.max_uses - self.current_uses, 0)

    def _code_prefix(self):
        return "GLB"

    def save(self, *args, **kwargs):
        if not self.code:
            from ..discounts import generate_code
            self.code = generate_code(self._code_prefix(), self.discount_value)
        else:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)


class DiscountCode(BaseDiscountCode):
    """Advertiser code: earns the advertiser a commission on every paid booking."""
    advertiser = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='discount_codes',
    )
    package = models.ForeignKey(
        'travel.TravelPackage',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='discount_codes',
    )
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    class Meta(BaseDiscountCode.Meta):
        indexes = [
            models.Index(fields=['advertiser', 'is_active'], name='code_advertiser_active_idx'),
        ]

    def _code_prefix(self):
        user = self.advertiser
        source = user.first_name or user.email.split("@")[0]
        letters = "".join(ch for ch in source if ch.isalpha())[:3].upper()
        return letters.ljust(3, "X")

    def save(self, *args, **kwargs):
        if self.commission_rate is None:
            from ..commissions import default_commission_rate
            self.commission_rate = default_commission_rate(self.package)
        super().save(*args, **kwargs)


class GlobalDiscountCode(BaseDiscountCode):
    """Platform-wide code; applies to every package and earns no commission."""
    description = models.CharField(max_length=255, blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='global_discount_codes',
    )

    class Meta(BaseDiscountCode.Meta):
        pass
