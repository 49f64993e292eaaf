"""
Core — Django Admin Configuration

Read-only admin for AuditLog.

@file core/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from core.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only audit log viewer for administrators."""

    list_display = ('timestamp', 'action', 'model_name', 'object_id', 'actor')
    list_filter = ('action', 'model_name', 'timestamp')
    search_fields = ('object_id', 'model_name', 'actor__email')
    readonly_fields = (
        'id', 'actor', 'action', 'model_name', 'object_id',
        'old_values', 'new_values', 'timestamp',
    )
    date_hierarchy = 'timestamp'
    list_select_related = ('actor',)
    list_per_page = 50
    ordering = ('-timestamp',)

    fieldsets = (
        (_('Event'), {
            'fields': ('id', 'action', 'timestamp', 'actor'),
        }),
        (_('Target'), {
            'fields': ('model_name', 'object_id'),
        }),
        (_('Data'), {
            'fields': ('old_values', 'new_values'),
            'classes': ('collapse',),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
