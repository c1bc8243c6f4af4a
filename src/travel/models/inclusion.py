from django.db import models
from django.db.models.functions import Lower

from .package import TravelPackage


class InclusionType(models.Model):
    """Something a package can include: hotel, breakfast, airport transfer..."""
    name = models.CharField(max_length=120)
    name_en = models.CharField(max_length=120, blank=True, default="")
    name_th = models.CharField(max_length=120, blank=True, default="")
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=50, blank=True, default="", db_index=True)
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['display_order', 'name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='inclusion_name_ci_unique'),
        ]

    def __str__(self):
        return self.name


class PackageInclusion(models.Model):
    package = models.ForeignKey(TravelPackage, on_delete=models.CASCADE, related_name='inclusion_links')
    inclusion = models.ForeignKey(InclusionType, on_delete=models.CASCADE, related_name='package_links')
    is_included = models.BooleanField(default=True)
    custom_note = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['inclusion__display_order', 'inclusion__name']
        constraints = [
            models.UniqueConstraint(fields=['package', 'inclusion'], name='package_inclusion_unique'),
        ]

    def __str__(self):
        flag = "" if self.is_included else " (not included)"
        return f"{self.package} · {self.inclusion}{flag}"
