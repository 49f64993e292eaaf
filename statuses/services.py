"""
Statuses — Service Layer

StatusRegistryService: status definition catalog (cached active list).
EntityStatusService: apply / remove / partial-remove with change log.
StatusGuard: the status part of every movement check.
NoteService: operator notes on entities.

@file statuses/services.py
"""

import logging
from typing import NamedTuple

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from catalog.models import Location, Warehouse
from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_DEACTIVATE,
    AUDIT_ACTION_UPDATE,
    CACHE_KEY_ACTIVE_STATUS_DEFINITIONS,
)
from core.exceptions import (
    BusinessRuleViolation,
    DuplicateResourceError,
    InsufficientStockError,
    ResourceNotFoundError,
    StatusEffectMismatch,
    StatusRestrictedError,
    StockNotFoundError,
)
from core.services import AuditService
from stock.models import StockRecord

from .effects import Operation, StatusType, capabilities_for, classify, quantity_breakdown
from .models import (
    EntityNote,
    EntityStatus,
    EntityType,
    StatusChangeLog,
    StatusDefinition,
    lot_entity_id,
)

logger = logging.getLogger('wms')

DEFINITION_FIELDS = [
    'code', 'name', 'description', 'color', 'bg_color', 'text_color',
    'effect', 'status_type', 'is_default', 'sort_order', 'is_active',
]


# ---------------------------------------------------------------------------
# Status registry
# ---------------------------------------------------------------------------

class StatusRegistryService:

    @staticmethod
    def get_active_definitions(status_type: str | None = None) -> list[StatusDefinition]:
        definitions = cache.get(CACHE_KEY_ACTIVE_STATUS_DEFINITIONS)
        if definitions is None:
            definitions = list(
                StatusDefinition.objects.filter(is_active=True).order_by('sort_order', 'name')
            )
            cache.set(
                CACHE_KEY_ACTIVE_STATUS_DEFINITIONS,
                definitions,
                settings.STATUS_DEFINITIONS_CACHE_SECONDS,
            )
        if status_type:
            return [d for d in definitions if d.status_type == status_type]
        return definitions

    @staticmethod
    def get_all_definitions():
        return StatusDefinition.objects.order_by('-is_active', 'sort_order', 'name')

    @staticmethod
    def get_definition(definition_id, *, active_only: bool = False) -> StatusDefinition:
        try:
            definition = StatusDefinition.objects.get(pk=definition_id)
        except (StatusDefinition.DoesNotExist, ValueError, ValidationError):
            raise ResourceNotFoundError(detail=f'Status {definition_id} not found.')
        if active_only and not definition.is_active:
            raise BusinessRuleViolation(detail=f'Status "{definition.name}" is not active.')
        return definition

    @staticmethod
    def get_default() -> StatusDefinition | None:
        return StatusDefinition.objects.filter(is_default=True, is_active=True).first()

    @staticmethod
    def invalidate_cache() -> None:
        cache.delete(CACHE_KEY_ACTIVE_STATUS_DEFINITIONS)

    @staticmethod
    @transaction.atomic
    def create_definition(*, actor, code: str, name: str, **fields) -> StatusDefinition:
        code = StatusDefinition.normalize_code(code)
        if StatusDefinition.objects.filter(code=code).exists():
            raise DuplicateResourceError(detail=f'Status code "{code}" already exists.')

        if fields.get('is_default'):
            StatusDefinition.objects.filter(is_default=True).update(is_default=False)

        definition = StatusDefinition.objects.create(
            code=code,
            name=name.strip(),
            created_by=actor,
            updated_by=actor,
            **fields,
        )
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='StatusDefinition',
            object_id=str(definition.pk),
            new_values=AuditService.snapshot(definition, fields=DEFINITION_FIELDS),
        )
        StatusRegistryService.invalidate_cache()
        logger.info('Status definition %s (%s) created', definition.code, definition.effect)
        return definition

    @staticmethod
    @transaction.atomic
    def update_definition(*, definition_id, actor, **fields) -> StatusDefinition:
        definition = StatusRegistryService.get_definition(definition_id)
        old_values = AuditService.snapshot(definition, fields=DEFINITION_FIELDS)

        if 'code' in fields:
            fields['code'] = StatusDefinition.normalize_code(fields['code'])
            clash = StatusDefinition.objects.filter(code=fields['code']).exclude(pk=definition.pk)
            if clash.exists():
                raise DuplicateResourceError(detail=f'Status code "{fields["code"]}" already exists.')
        if 'name' in fields:
            fields['name'] = fields['name'].strip()

        if fields.get('is_default'):
            (
                StatusDefinition.objects
                .filter(is_default=True)
                .exclude(pk=definition.pk)
                .update(is_default=False)
            )

        for field, value in fields.items():
            setattr(definition, field, value)
        definition.updated_by = actor
        try:
            with transaction.atomic():
                definition.save()
        except IntegrityError:
            raise DuplicateResourceError(detail='Status definition conflicts with an existing one.')

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='StatusDefinition',
            object_id=str(definition.pk),
            old_values=old_values,
            new_values=AuditService.snapshot(definition, fields=DEFINITION_FIELDS),
        )
        StatusRegistryService.invalidate_cache()
        return definition

    @staticmethod
    @transaction.atomic
    def deactivate_definition(*, definition_id, actor) -> StatusDefinition:
        """Soft delete. Refused while any entity still carries the status."""
        definition = StatusRegistryService.get_definition(definition_id)
        in_use = EntityStatus.objects.filter(definition=definition).count()
        if in_use:
            raise BusinessRuleViolation(
                detail=(
                    f'Cannot deactivate: this status is applied to {in_use} item(s). '
                    'Remove the status from those items first.'
                ),
            )

        definition.is_active = False
        definition.is_default = False
        definition.updated_by = actor
        definition.save(update_fields=['is_active', 'is_default', 'updated_by', 'updated_at'])

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_DEACTIVATE,
            model_name='StatusDefinition',
            object_id=str(definition.pk),
            old_values={'is_active': True},
            new_values={'is_active': False},
        )
        StatusRegistryService.invalidate_cache()
        logger.info('Status definition %s deactivated', definition.code)
        return definition


# ---------------------------------------------------------------------------
# Entity status tracker
# ---------------------------------------------------------------------------

class EffectiveStatuses(NamedTuple):
    """Every status that bears on one stock record."""

    stock: EntityStatus | None
    location: EntityStatus | None
    lot: EntityStatus | None

    def blocking(self):
        return [s for s in (self.location, self.lot) if s is not None]


class EntityStatusService:

    @staticmethod
    def get_status(entity_type: str, entity_id) -> EntityStatus | None:
        return (
            EntityStatus.objects
            .select_related('definition')
            .filter(entity_type=entity_type, entity_id=str(entity_id))
            .first()
        )

    @staticmethod
    def get_statuses(entity_type: str, entity_ids) -> dict[str, EntityStatus]:
        ids = {str(i) for i in entity_ids}
        if not ids:
            return {}
        rows = (
            EntityStatus.objects
            .select_related('definition')
            .filter(entity_type=entity_type, entity_id__in=ids)
        )
        return {row.entity_id: row for row in rows}

    @staticmethod
    def effective_statuses(stock: StockRecord) -> EffectiveStatuses:
        location = stock.location
        return EffectiveStatuses(
            stock=EntityStatusService.get_status(EntityType.STOCK, stock.pk),
            location=EntityStatusService.get_status(EntityType.LOCATION, location.pk),
            lot=(
                EntityStatusService.get_status(EntityType.LOT, lot_entity_id(location.warehouse_id, location.lot))
                if location.lot else None
            ),
        )

    @staticmethod
    def effective_statuses_for(stocks) -> dict:
        """Bulk variant of ``effective_statuses`` keyed by stock pk."""
        stocks = list(stocks)
        by_stock = EntityStatusService.get_statuses(EntityType.STOCK, [s.pk for s in stocks])
        by_location = EntityStatusService.get_statuses(EntityType.LOCATION, [s.location_id for s in stocks])
        by_lot = EntityStatusService.get_statuses(
            EntityType.LOT,
            [lot_entity_id(s.location.warehouse_id, s.location.lot) for s in stocks if s.location.lot],
        )
        return {
            s.pk: EffectiveStatuses(
                stock=by_stock.get(str(s.pk)),
                location=by_location.get(str(s.location_id)),
                lot=by_lot.get(lot_entity_id(s.location.warehouse_id, s.location.lot)) if s.location.lot else None,
            )
            for s in stocks
        }

    @staticmethod
    def stock_quantity(entity_id) -> int | None:
        try:
            return StockRecord.objects.values_list('quantity', flat=True).get(pk=entity_id)
        except (StockRecord.DoesNotExist, ValueError, ValidationError):
            return None

    @staticmethod
    @transaction.atomic
    def apply_status(
        *,
        entity_type: str,
        entity_id,
        status_id,
        actor,
        affected_quantity: int | None = None,
        total_quantity: int | None = None,
        reason: str = '',
        notes: str = '',
    ) -> EntityStatus:
        """
        Upsert the entity's status and log the transition from whatever
        was there before. Re-applying the same status is logged too.
        """
        definition = StatusRegistryService.get_definition(status_id, active_only=True)
        entity_id = str(entity_id)

        if definition.status_type == StatusType.PRODUCT:
            if total_quantity is None and entity_type == EntityType.STOCK:
                total_quantity = EntityStatusService.stock_quantity(entity_id)
                if total_quantity is None:
                    raise StockNotFoundError(detail=f'Stock record {entity_id} not found.')
            if total_quantity is None or total_quantity <= 0:
                raise BusinessRuleViolation(detail='A product status needs a positive total quantity.')
            if affected_quantity is None or affected_quantity <= 0:
                raise BusinessRuleViolation(detail='Affected quantity must be at least 1.')
            affected_quantity = min(max(affected_quantity, 1), total_quantity)
        else:
            affected_quantity = None

        previous = (
            EntityStatus.objects
            .select_for_update()
            .filter(entity_type=entity_type, entity_id=entity_id)
            .first()
        )
        status, _ = EntityStatus.objects.update_or_create(
            entity_type=entity_type,
            entity_id=entity_id,
            defaults={
                'definition': definition,
                'affected_quantity': affected_quantity,
                'total_quantity_at_application': total_quantity,
                'reason': reason,
                'notes': notes,
                'applied_by': actor,
                'applied_at': timezone.now(),
                'updated_by': actor,
            },
        )
        StatusChangeLog.objects.create(
            entity_type=entity_type,
            entity_id=entity_id,
            from_status_id=previous.definition_id if previous else None,
            to_status=definition,
            affected_quantity=affected_quantity,
            reason=reason,
            changed_by=actor,
        )
        logger.info(
            'Status %s applied to %s:%s affected=%s total=%s',
            definition.code, entity_type, entity_id, affected_quantity, total_quantity,
        )
        return status

    @staticmethod
    @transaction.atomic
    def remove_status(*, entity_type: str, entity_id, actor, reason: str = '') -> bool:
        """
        Delete the entity's status. Always writes a log entry, even when
        there was nothing to remove. Returns whether a row was deleted.
        """
        entity_id = str(entity_id)
        previous = (
            EntityStatus.objects
            .select_for_update()
            .filter(entity_type=entity_type, entity_id=entity_id)
            .first()
        )
        if previous is not None:
            previous.delete()

        StatusChangeLog.objects.create(
            entity_type=entity_type,
            entity_id=entity_id,
            from_status_id=previous.definition_id if previous else None,
            to_status=None,
            affected_quantity=None,
            reason=reason,
            changed_by=actor,
        )
        logger.info('Status removed from %s:%s (had status: %s)', entity_type, entity_id, previous is not None)
        return previous is not None

    @staticmethod
    @transaction.atomic
    def remove_partial(
        *,
        entity_type: str,
        entity_id,
        quantity: int,
        actor,
        reason: str = '',
    ) -> EntityStatus | None:
        """
        Release ``quantity`` units from a PRODUCT status. Returns the
        updated status, or None once nothing is left covered.
        """
        if quantity is None or quantity <= 0:
            raise BusinessRuleViolation(detail='Quantity to remove must be at least 1.')

        entity_id = str(entity_id)
        current = (
            EntityStatus.objects
            .select_for_update()
            .select_related('definition')
            .filter(entity_type=entity_type, entity_id=entity_id)
            .first()
        )
        if current is None:
            raise ResourceNotFoundError(detail=f'No status applied to {entity_type} {entity_id}.')
        if current.definition.status_type != StatusType.PRODUCT:
            raise BusinessRuleViolation(detail='Partial removal only applies to product statuses.')

        covered = current.affected_quantity or current.total_quantity_at_application or 0
        remaining = max(0, covered - quantity)
        if remaining <= 0:
            EntityStatusService.remove_status(
                entity_type=entity_type, entity_id=entity_id, actor=actor, reason=reason,
            )
            return None

        current.affected_quantity = remaining
        current.updated_by = actor
        current.save(update_fields=['affected_quantity', 'updated_by', 'updated_at'])

        StatusChangeLog.objects.create(
            entity_type=entity_type,
            entity_id=entity_id,
            from_status=current.definition,
            to_status=current.definition,
            affected_quantity=remaining,
            reason=reason,
            changed_by=actor,
        )
        logger.info(
            'Status %s on %s:%s reduced by %s to %s',
            current.definition.code, entity_type, entity_id, quantity, remaining,
        )
        return current

    @staticmethod
    def set_lot_status(*, warehouse_id, lot: str, status_id, actor, reason: str = '') -> EntityStatus | None:
        """Apply a status to a whole lot, or remove it when ``status_id`` is empty."""
        if not Warehouse.objects.filter(pk=warehouse_id).exists():
            raise ResourceNotFoundError(detail=f'Warehouse {warehouse_id} not found.')
        if not Location.objects.filter(warehouse_id=warehouse_id, lot=lot).exists():
            raise ResourceNotFoundError(detail=f'Lot {lot} not found in warehouse.')

        entity_id = lot_entity_id(warehouse_id, lot)
        if not status_id:
            EntityStatusService.remove_status(
                entity_type=EntityType.LOT, entity_id=entity_id, actor=actor, reason=reason,
            )
            return None
        return EntityStatusService.apply_status(
            entity_type=EntityType.LOT,
            entity_id=entity_id,
            status_id=status_id,
            actor=actor,
            reason=reason,
        )

    @staticmethod
    def history(entity_type: str, entity_id):
        return (
            StatusChangeLog.objects
            .select_related('from_status', 'to_status', 'changed_by')
            .filter(entity_type=entity_type, entity_id=str(entity_id))
            .order_by('-changed_at')
        )


# ---------------------------------------------------------------------------
# Movement guard
# ---------------------------------------------------------------------------

def _restriction_error(status: EntityStatus, operation: str, where: str, detail: str | None = None):
    definition = status.definition
    op = Operation(operation).label.lower()
    if classify(status).restricted:
        return StatusRestrictedError(
            detail=detail or f'{where} has status "{definition.name}": {op} is not allowed.',
        )
    return StatusEffectMismatch(
        detail=detail or f'{where} status "{definition.name}" ({definition.effect}) does not allow {op}.',
    )


class StatusGuard:
    """Checks a planned movement against every status that covers it."""

    @staticmethod
    def movable_quantity(stock: StockRecord, operation: str, effective: EffectiveStatuses | None = None) -> int:
        """
        Units of ``stock`` that ``operation`` may touch. Location and lot
        statuses block everything; a partial PRODUCT status on the stock
        itself only holds back the units it covers.
        """
        if effective is None:
            effective = EntityStatusService.effective_statuses(stock)

        location = stock.location
        for status, where in (
            (effective.location, f'Location {location.code}'),
            (effective.lot, f'Lot {location.lot}'),
        ):
            if status is not None and not capabilities_for(status.definition.effect).allows(operation):
                raise _restriction_error(status, operation, where)

        own = effective.stock
        if own is None or capabilities_for(own.definition.effect).allows(operation):
            return stock.quantity

        if own.definition.status_type == StatusType.PRODUCT and own.affected_quantity is not None:
            free = quantity_breakdown(stock.quantity, own).normal
            if free > 0:
                return free
        raise _restriction_error(own, operation, 'Stock')

    @staticmethod
    def check_quantity(stock: StockRecord, operation: str, quantity: int,
                       effective: EffectiveStatuses | None = None) -> None:
        if effective is None:
            effective = EntityStatusService.effective_statuses(stock)
        movable = StatusGuard.movable_quantity(stock, operation, effective)
        if quantity <= movable:
            return
        if movable >= stock.quantity:
            raise InsufficientStockError(
                detail=f'Requested {quantity} but only {stock.quantity} available.',
            )
        own = effective.stock
        raise _restriction_error(
            own, operation, 'Stock',
            detail=(
                f'Requested {quantity} but only {movable} of {stock.quantity} units '
                f'are free of status "{own.definition.name}".'
            ),
        )

    @staticmethod
    def check_destination(location: Location) -> None:
        """Inbound into ``location`` must be allowed by its own and its lot's status."""
        candidates = [
            (EntityStatusService.get_status(EntityType.LOCATION, location.pk), f'Location {location.code}'),
        ]
        if location.lot:
            candidates.append((
                EntityStatusService.get_status(EntityType.LOT, lot_entity_id(location.warehouse_id, location.lot)),
                f'Lot {location.lot}',
            ))
        for status, where in candidates:
            if status is not None and not capabilities_for(status.definition.effect).allows(Operation.INBOUND):
                raise StatusRestrictedError(
                    detail=f'{where} has status "{status.definition.name}": receiving is not allowed.',
                )


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

class NoteService:

    @staticmethod
    def list_notes(entity_type: str, entity_id):
        return (
            EntityNote.objects
            .select_related('created_by')
            .filter(entity_type=entity_type, entity_id=str(entity_id))
            .order_by('-is_pinned', '-created_at')
        )

    @staticmethod
    def add_note(*, entity_type: str, entity_id, content: str, actor, is_pinned: bool = False) -> EntityNote:
        return EntityNote.objects.create(
            entity_type=entity_type,
            entity_id=str(entity_id),
            content=content,
            is_pinned=is_pinned,
            created_by=actor,
            updated_by=actor,
        )

    @staticmethod
    def update_note(*, note: EntityNote, actor, content: str | None = None,
                    is_pinned: bool | None = None) -> EntityNote:
        if content is not None:
            note.content = content
        if is_pinned is not None:
            note.is_pinned = is_pinned
        note.updated_by = actor
        note.save(update_fields=['content', 'is_pinned', 'updated_by', 'updated_at'])
        return note

    @staticmethod
    def delete_note(*, note: EntityNote, actor) -> None:
        logger.info('Note %s on %s:%s deleted by %s', note.pk, note.entity_type, note.entity_id, actor.pk)
        note.delete()
