"""
Statuses — Django Admin Configuration

Definitions are editable; applied statuses and the change log are
read-only (they only change through EntityStatusService).

@file statuses/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import EntityNote, EntityStatus, StatusChangeLog, StatusDefinition


@admin.register(StatusDefinition)
class StatusDefinitionAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'badge', 'effect', 'status_type', 'is_default', 'sort_order', 'is_active')
    list_filter = ('effect', 'status_type', 'is_active')
    search_fields = ('code', 'name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
    ordering = ('sort_order', 'name')

    @admin.display(description=_('Badge'))
    def badge(self, obj):
        return format_html(
            '<span style="background:{}; color:{}; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            obj.bg_color, obj.text_color, obj.name,
        )


@admin.register(EntityStatus)
class EntityStatusAdmin(admin.ModelAdmin):
    list_display = ('entity_type', 'entity_id', 'definition', 'affected_quantity', 'applied_by', 'applied_at')
    list_filter = ('entity_type', 'definition')
    search_fields = ('entity_id', 'reason')
    list_select_related = ('definition', 'applied_by')
    readonly_fields = (
        'id', 'entity_type', 'entity_id', 'definition', 'affected_quantity',
        'total_quantity_at_application', 'reason', 'notes', 'applied_by', 'applied_at',
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(StatusChangeLog)
class StatusChangeLogAdmin(admin.ModelAdmin):
    list_display = ('changed_at', 'entity_type', 'entity_id', 'from_status', 'to_status', 'affected_quantity', 'changed_by')
    list_filter = ('entity_type', 'changed_at')
    search_fields = ('entity_id', 'reason')
    list_select_related = ('from_status', 'to_status', 'changed_by')
    date_hierarchy = 'changed_at'
    list_per_page = 50

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EntityNote)
class EntityNoteAdmin(admin.ModelAdmin):
    list_display = ('entity_type', 'entity_id', 'is_pinned', 'created_by', 'created_at')
    list_filter = ('entity_type', 'is_pinned')
    search_fields = ('entity_id', 'content')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
