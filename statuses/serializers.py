"""
Statuses — Serializers

@file statuses/serializers.py
"""

from rest_framework import serializers

from .effects import Effect, StatusType
from .models import EntityNote, EntityStatus, EntityType, StatusChangeLog, StatusDefinition, hex_color_validator


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

class StatusDefinitionReadSerializer(serializers.ModelSerializer):
    effect_display = serializers.CharField(source='get_effect_display', read_only=True)
    status_type_display = serializers.CharField(source='get_status_type_display', read_only=True)

    class Meta:
        model = StatusDefinition
        fields = [
            'id', 'code', 'name', 'description',
            'color', 'bg_color', 'text_color',
            'effect', 'effect_display', 'status_type', 'status_type_display',
            'is_default', 'sort_order', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class StatusDefinitionWriteSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    color = serializers.CharField(validators=[hex_color_validator])
    bg_color = serializers.CharField(validators=[hex_color_validator])
    text_color = serializers.CharField(validators=[hex_color_validator])
    effect = serializers.ChoiceField(choices=Effect.choices)
    status_type = serializers.ChoiceField(choices=StatusType.choices, default=StatusType.PRODUCT)
    is_default = serializers.BooleanField(default=False)
    sort_order = serializers.IntegerField(min_value=0, default=0)

    def validate_code(self, value):
        if not value.strip():
            raise serializers.ValidationError('Status code is required.')
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Status name is required.')
        return value


# ---------------------------------------------------------------------------
# Applied statuses
# ---------------------------------------------------------------------------

class AppliedStatusSerializer(serializers.ModelSerializer):
    """Compact form embedded in stock listings."""

    status_id = serializers.UUIDField(source='definition.id', read_only=True)
    code = serializers.CharField(source='definition.code', read_only=True)
    name = serializers.CharField(source='definition.name', read_only=True)
    effect = serializers.CharField(source='definition.effect', read_only=True)
    status_type = serializers.CharField(source='definition.status_type', read_only=True)
    color = serializers.CharField(source='definition.color', read_only=True)
    bg_color = serializers.CharField(source='definition.bg_color', read_only=True)
    text_color = serializers.CharField(source='definition.text_color', read_only=True)

    class Meta:
        model = EntityStatus
        fields = [
            'status_id', 'code', 'name', 'effect', 'status_type',
            'color', 'bg_color', 'text_color',
            'affected_quantity', 'total_quantity_at_application',
            'reason', 'applied_at',
        ]
        read_only_fields = fields


class EntityStatusSerializer(serializers.ModelSerializer):
    definition = StatusDefinitionReadSerializer(read_only=True)
    applied_by_email = serializers.EmailField(source='applied_by.email', read_only=True, default=None)

    class Meta:
        model = EntityStatus
        fields = [
            'id', 'entity_type', 'entity_id', 'definition',
            'affected_quantity', 'total_quantity_at_application',
            'reason', 'notes', 'applied_by', 'applied_by_email', 'applied_at',
        ]
        read_only_fields = fields


class EntityRefSerializer(serializers.Serializer):
    entity_type = serializers.ChoiceField(choices=EntityType.choices)
    entity_id = serializers.CharField(max_length=80)


class ApplyStatusSerializer(EntityRefSerializer):
    status_id = serializers.UUIDField()
    affected_quantity = serializers.IntegerField(required=False, allow_null=True)
    total_quantity = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RemoveStatusSerializer(EntityRefSerializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class RemovePartialSerializer(EntityRefSerializer):
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class LotStatusSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField()
    lot = serializers.CharField(max_length=10)
    status_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class StatusChangeLogSerializer(serializers.ModelSerializer):
    from_status = StatusDefinitionReadSerializer(read_only=True)
    to_status = StatusDefinitionReadSerializer(read_only=True)
    changed_by_email = serializers.EmailField(source='changed_by.email', read_only=True, default=None)
    is_partial = serializers.BooleanField(read_only=True)

    class Meta:
        model = StatusChangeLog
        fields = [
            'id', 'entity_type', 'entity_id', 'from_status', 'to_status',
            'affected_quantity', 'is_partial', 'reason',
            'changed_by', 'changed_by_email', 'changed_at',
        ]
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

class EntityNoteSerializer(serializers.ModelSerializer):
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = EntityNote
        fields = [
            'id', 'entity_type', 'entity_id', 'content', 'is_pinned',
            'created_by', 'created_by_email', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_by', 'created_by_email', 'created_at', 'updated_at']
        extra_kwargs = {
            'content': {'min_length': 1, 'max_length': 2000},
        }


class EntityNoteUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=2000, required=False)
    is_pinned = serializers.BooleanField(required=False)
