from django.contrib import admin, messages

from . import lifecycle
from .commissions import mark_commissions_paid
from .exceptions import InvalidTransition
from .models import (
    Booking, Commission, DiscountCode, GlobalDiscountCode, InclusionType, PackageInclusion, TravelPackage,
)


class PackageInclusionInline(admin.TabularInline):
    model = PackageInclusion
    extra = 0
    autocomplete_fields = ('inclusion',)


@admin.register(TravelPackage)
class TravelPackageAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'title', 'location', 'price', 'discount_percentage',
        'current_bookings', 'max_guests', 'is_active', 'created_at'
    )
    list_filter = (
        'is_active',
        'location',
        'available_from',
        'created_at',
    )
    date_hierarchy = 'created_at'
    search_fields = ('id', 'title', 'location', 'description', 'tags')
    filter_horizontal = ('advertisers',)
    autocomplete_fields = ('created_by',)
    readonly_fields = ('current_bookings', 'created_at', 'updated_at')
    ordering = ('-created_at',)
    list_select_related = ('created_by',)
    inlines = (PackageInclusionInline,)


@admin.action(description="Cancel selected pending bookings (releases seats)")
def cancel_bookings(modeladmin, request, qs):
    cancelled = 0
    for booking in qs.filter(status=Booking.PENDING):
        try:
            lifecycle.cancel_booking(booking, reason=f"cancelled in admin by {request.user.pk}")
        except InvalidTransition:
            continue
        cancelled += 1
    modeladmin.message_user(request, f"{cancelled} booking(s) cancelled.", messages.SUCCESS)


@admin.action(description="Expire all stale pending bookings")
def expire_bookings(modeladmin, request, qs):
    count = lifecycle.expire_pending_bookings()
    modeladmin.message_user(request, f"{count} booking(s) expired.", messages.SUCCESS)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'package', 'customer_email', 'guest_count', 'booking_date',
        'final_amount', 'status', 'payment_status', 'expires_at', 'created_at'
    )

    # Filter/search for moderation
    list_filter = (
        'status',
        'payment_status',
        'package',
        'booking_date',
        'created_at',
    )
    date_hierarchy = 'created_at'
    search_fields = ('package__title', 'customer__email', 'contact_email', 'stripe_session_id')
    autocomplete_fields = ('package', 'customer', 'discount_code', 'global_code')
    readonly_fields = (
        'total_amount', 'discount_amount', 'final_amount',
        'status', 'payment_status',
        'stripe_session_id', 'stripe_payment_intent_id',
        'created_at', 'updated_at',
    )
    ordering = ('-created_at',)
    list_select_related = ('package', 'customer')
    actions = (cancel_bookings, expire_bookings)

    @admin.display(ordering='customer__email', description='Customer')
    def customer_email(self, obj):
        customer = getattr(obj, 'customer', None)
        return getattr(customer, 'email', None)


@admin.action(description="Toggle active flag")
def toggle_codes(modeladmin, request, qs):
    for code in qs:
        code.is_active = not code.is_active
        code.save(update_fields=['is_active', 'updated_at'])


@admin.register(DiscountCode)
class DiscountCodeAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'code', 'advertiser', 'package', 'discount_type', 'discount_value',
        'current_uses', 'max_uses', 'commission_rate', 'is_active', 'expires_at'
    )
    list_filter = ('is_active', 'discount_type', 'advertiser', 'expires_at')
    search_fields = ('code', 'advertiser__email', 'package__title')
    autocomplete_fields = ('advertiser', 'package')
    readonly_fields = ('current_uses', 'created_at', 'updated_at')
    list_select_related = ('advertiser', 'package')
    actions = (toggle_codes,)


@admin.register(GlobalDiscountCode)
class GlobalDiscountCodeAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'code', 'discount_type', 'discount_value',
        'current_uses', 'max_uses', 'is_active', 'expires_at'
    )
    list_filter = ('is_active', 'discount_type', 'expires_at')
    search_fields = ('code', 'description')
    readonly_fields = ('current_uses', 'created_by', 'created_at', 'updated_at')
    actions = (toggle_codes,)

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)


@admin.action(description="Mark selected commissions paid")
def mark_paid(modeladmin, request, qs):
    count = mark_commissions_paid(qs)
    modeladmin.message_user(request, f"{count} commission(s) marked paid.", messages.SUCCESS)


@admin.register(Commission)
class CommissionAdmin(admin.ModelAdmin):
    list_display = ('id', 'booking', 'advertiser', 'discount_code', 'amount', 'percentage', 'status', 'paid_at')
    list_filter = ('status', 'advertiser', 'created_at')
    date_hierarchy = 'created_at'
    search_fields = ('advertiser__email', 'discount_code__code')
    readonly_fields = ('booking', 'advertiser', 'discount_code', 'amount', 'percentage', 'paid_at', 'created_at')
    list_select_related = ('booking', 'advertiser', 'discount_code')
    actions = (mark_paid,)


@admin.register(InclusionType)
class InclusionTypeAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'category', 'display_order', 'is_active', 'updated_at')
    list_filter = ('is_active', 'category')
    list_editable = ('display_order', 'is_active')
    search_fields = ('name', 'name_en', 'name_th', 'category')
    readonly_fields = ('created_at', 'updated_at')
    ordering = ('display_order', 'name')
