"""
Catalog — Serializers

@file catalog/serializers.py
"""

from rest_framework import serializers

from .models import Location, Product, Warehouse


class WarehouseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Warehouse
        fields = ['id', 'code', 'name', 'is_active']
        read_only_fields = fields


class LocationSerializer(serializers.ModelSerializer):
    warehouse_code = serializers.CharField(source='warehouse.code', read_only=True)

    class Meta:
        model = Location
        fields = ['id', 'warehouse', 'warehouse_code', 'code', 'lot', 'cart', 'level', 'is_active']
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'sku', 'name', 'uom', 'is_active']
        read_only_fields = fields
