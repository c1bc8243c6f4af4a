from django.contrib import admin
from django.utils import timezone

from .models import Notification


@admin.action(description="Mark selected as read")
def mark_read(modeladmin, request, qs):
    qs.filter(is_read=False).update(is_read=True, read_at=timezone.now())


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'title', 'type', 'priority', 'is_read', 'created_at')
    list_filter = ('type', 'priority', 'is_read', 'created_at')
    search_fields = ('title', 'message', 'user__email')
    autocomplete_fields = ('user',)
    readonly_fields = ('created_at', 'updated_at', 'read_at')
    date_hierarchy = 'created_at'
    list_select_related = ('user',)
    actions = (mark_read,)
