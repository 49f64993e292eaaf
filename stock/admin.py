"""
Stock — Django Admin Configuration

StockRecord is read-only here: quantities only change through the
ledger. StockTransaction is insert-only; model save() blocks updates
and delete() raises.

@file stock/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import StockRecord, StockTransaction


@admin.register(StockRecord)
class StockRecordAdmin(admin.ModelAdmin):
    list_display = ('product', 'location', 'quantity', 'updated_at')
    list_filter = ('location__warehouse',)
    search_fields = ('product__sku', 'product__name', 'location__code')
    readonly_fields = ('id', 'product', 'location', 'quantity', 'created_at', 'updated_at')
    list_select_related = ('product', 'location')
    list_per_page = 50

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockTransaction)
class StockTransactionAdmin(admin.ModelAdmin):
    list_display = (
        'created_at', 'type', 'warehouse', 'product', 'quantity',
        'from_location', 'to_location', 'actor_email',
    )
    list_filter = ('type', 'warehouse', 'created_at')
    search_fields = ('product__sku', 'actor_email', 'note')
    readonly_fields = (
        'id', 'type', 'warehouse', 'product', 'stock', 'from_location', 'to_location',
        'quantity', 'note', 'details', 'actor', 'actor_email', 'created_at',
    )
    list_select_related = ('warehouse', 'product', 'from_location', 'to_location')
    show_full_result_count = False
    list_per_page = 50
    date_hierarchy = 'created_at'
    ordering = ('-created_at',)

    fieldsets = (
        (_('Transaction'), {
            'fields': ('id', 'type', 'warehouse', 'product', 'stock', 'quantity'),
        }),
        (_('Movement'), {
            'fields': ('from_location', 'to_location', 'note', 'details'),
        }),
        (_('Audit'), {
            'fields': ('actor', 'actor_email', 'created_at'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False  # INSERT ONLY — no updates

    def has_delete_permission(self, request, obj=None):
        return False  # INSERT ONLY — no deletes
