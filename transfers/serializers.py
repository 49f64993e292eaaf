"""
Transfers — Serializers

Shape validation only; business checks live in ``validators.py``.

@file transfers/serializers.py
"""

from rest_framework import serializers

from .validators import QueueItem, TransferMode


class TransferItemSerializer(serializers.Serializer):
    stock_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    mode = serializers.ChoiceField(choices=TransferMode.choices, default=TransferMode.INTERNAL)
    target_location_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    target_warehouse_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    target_lot = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    target_cart = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    target_level = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    note = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)


class OutboundItemSerializer(serializers.Serializer):
    stock_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    note = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)


class _BatchSerializer(serializers.Serializer):
    item_serializer = None

    def get_fields(self):
        fields = super().get_fields()
        fields['items'] = self.item_serializer(many=True)
        return fields

    def to_queue(self) -> list[QueueItem]:
        return [QueueItem(**item) for item in self.validated_data['items']]


class TransferBatchSerializer(_BatchSerializer):
    item_serializer = TransferItemSerializer


class OutboundBatchSerializer(_BatchSerializer):
    item_serializer = OutboundItemSerializer
