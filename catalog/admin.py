"""
Catalog — Django Admin Configuration

Warehouses, locations and products are maintained here.

@file catalog/admin.py
"""

from django.contrib import admin

from .models import Location, Product, Warehouse


class LocationInline(admin.TabularInline):
    model = Location
    extra = 0
    fields = ('code', 'lot', 'cart', 'level', 'is_active')


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('code', 'name')
    readonly_fields = ('id', 'created_at', 'updated_at')
    inlines = [LocationInline]


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('code', 'warehouse', 'lot', 'cart', 'level', 'is_active')
    list_filter = ('warehouse', 'is_active', 'lot')
    search_fields = ('code',)
    list_select_related = ('warehouse',)
    readonly_fields = ('id', 'created_at', 'updated_at')
    list_per_page = 50


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('sku', 'name', 'uom', 'is_active')
    list_filter = ('is_active', 'uom')
    search_fields = ('sku', 'name')
    readonly_fields = ('id', 'created_at', 'updated_at')
    list_per_page = 50
