"""
Stock — Serializers

Stock records carry their effective statuses and the quantity
breakdown computed by ``statuses.effects.quantity_breakdown``.

@file stock/serializers.py
"""

from rest_framework import serializers

from catalog.models import Location, Product
from statuses.effects import classify, quantity_breakdown
from statuses.serializers import AppliedStatusSerializer
from statuses.services import EntityStatusService

from .models import StockRecord, StockTransaction


class StockRecordSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    uom = serializers.CharField(source='product.uom', read_only=True)
    location_code = serializers.CharField(source='location.code', read_only=True)
    warehouse = serializers.UUIDField(source='location.warehouse_id', read_only=True)
    lot = serializers.CharField(read_only=True)
    cart = serializers.CharField(read_only=True)
    level = serializers.IntegerField(read_only=True)

    class Meta:
        model = StockRecord
        fields = [
            'id', 'product', 'product_sku', 'product_name', 'uom',
            'location', 'location_code', 'warehouse', 'lot', 'cart', 'level',
            'quantity', 'updated_at',
        ]
        read_only_fields = fields

    def _effective(self, obj):
        effective = self.context.get('effective', {})
        if obj.pk not in effective:
            effective[obj.pk] = EntityStatusService.effective_statuses(obj)
        return effective[obj.pk]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        effective = self._effective(instance)
        data['status'] = AppliedStatusSerializer(effective.stock).data if effective.stock else None
        data['location_status'] = AppliedStatusSerializer(effective.location).data if effective.location else None
        data['lot_status'] = AppliedStatusSerializer(effective.lot).data if effective.lot else None
        data['breakdown'] = quantity_breakdown(instance.quantity, effective.stock)._asdict()
        data['classification'] = classify(effective.stock)._asdict()
        return data


class InboundSerializer(serializers.Serializer):
    product_id = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.filter(is_active=True), source='product',
    )
    location_id = serializers.PrimaryKeyRelatedField(
        queryset=Location.objects.select_related('warehouse'), source='location',
    )
    quantity = serializers.IntegerField(min_value=1)
    note = serializers.CharField(required=False, allow_blank=True, default='')


class AdjustSerializer(serializers.Serializer):
    counted_quantity = serializers.IntegerField(min_value=0)
    note = serializers.CharField(required=False, allow_blank=True, default='')


class StockTransactionSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    from_location_code = serializers.CharField(source='from_location.code', read_only=True, default=None)
    to_location_code = serializers.CharField(source='to_location.code', read_only=True, default=None)

    class Meta:
        model = StockTransaction
        fields = [
            'id', 'type', 'type_display', 'warehouse',
            'product', 'product_sku', 'product_name', 'stock',
            'from_location', 'from_location_code', 'to_location', 'to_location_code',
            'quantity', 'note', 'details', 'actor', 'actor_email', 'created_at',
        ]
        read_only_fields = fields
