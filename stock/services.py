"""
Stock — Service Layer

StockLedger owns every quantity change. Decrements are conditional
UPDATEs (``WHERE quantity >= n``) so a lost race fails with
ConcurrentUpdateError instead of driving stock negative. Each
high-level operation writes its StockTransaction row inside the same
atomic block as the quantity change.

@file stock/services.py
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from catalog.models import Location
from core.constants import AUDIT_ACTION_ADJUST
from core.exceptions import (
    BusinessRuleViolation,
    ConcurrentUpdateError,
    InvalidTargetError,
    StockNotFoundError,
)
from core.services import AuditService
from statuses.effects import Operation
from statuses.services import StatusGuard

from .models import StockRecord, StockTransaction

logger = logging.getLogger('wms')

TxType = StockTransaction.TransactionType


def _require_positive(quantity: int) -> None:
    if quantity is None or quantity <= 0:
        raise BusinessRuleViolation(detail='Quantity must be a positive integer.')


class StockLedger:
    """Quantity mutation primitives plus the operations built on them."""

    # --- Lookups -----------------------------------------------------------

    @staticmethod
    def get_record(stock_id, *, for_update: bool = False) -> StockRecord:
        qs = StockRecord.objects.select_related('product', 'location', 'location__warehouse')
        if for_update:
            qs = qs.select_for_update(of=('self',))
        try:
            return qs.get(pk=stock_id)
        except (StockRecord.DoesNotExist, ValueError, ValidationError):
            raise StockNotFoundError(detail=f'Stock record {stock_id} not found.')

    # --- Primitives --------------------------------------------------------

    @staticmethod
    def decrement(*, stock: StockRecord, quantity: int) -> StockRecord:
        """Conditional decrement. Callers write the transaction row."""
        _require_positive(quantity)
        updated = (
            StockRecord.objects
            .filter(pk=stock.pk, quantity__gte=quantity)
            .update(quantity=F('quantity') - quantity, updated_at=timezone.now())
        )
        if updated == 0:
            raise ConcurrentUpdateError(
                detail=f'Stock record {stock.pk} no longer holds {quantity} units.',
            )
        stock.refresh_from_db(fields=['quantity', 'updated_at'])
        return stock

    @staticmethod
    def increment(*, product, location: Location, quantity: int) -> StockRecord:
        """Add to the (product, location) record, creating it at zero first."""
        _require_positive(quantity)
        record, _ = StockRecord.objects.get_or_create(product=product, location=location)
        StockRecord.objects.filter(pk=record.pk).update(
            quantity=F('quantity') + quantity, updated_at=timezone.now(),
        )
        record.refresh_from_db(fields=['quantity', 'updated_at'])
        return record

    @staticmethod
    @transaction.atomic
    def move(*, stock: StockRecord, target_location: Location, quantity: int) -> StockRecord:
        if target_location.pk == stock.location_id:
            raise InvalidTargetError(detail='Target location is the same as the source location.')
        StockLedger.decrement(stock=stock, quantity=quantity)
        return StockLedger.increment(product=stock.product, location=target_location, quantity=quantity)

    @staticmethod
    def record_transaction(*, tx_type: str, warehouse, product, quantity: int, actor,
                           stock=None, from_location=None, to_location=None,
                           note: str = '', details: dict | None = None) -> StockTransaction:
        return StockTransaction.objects.create(
            type=tx_type,
            warehouse=warehouse,
            product=product,
            stock=stock,
            from_location=from_location,
            to_location=to_location,
            quantity=quantity,
            note=note or '',
            details=details or {},
            actor=actor,
            actor_email=getattr(actor, 'email', '') or '',
        )

    # --- Operations --------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def receive(*, product, location: Location, quantity: int, actor, note: str = '') -> StockRecord:
        """Inbound receiving into ``location``."""
        _require_positive(quantity)
        if not location.is_active or not location.warehouse.is_active:
            raise InvalidTargetError(detail=f'Location {location.code} is not active.')
        StatusGuard.check_destination(location)

        record = StockLedger.increment(product=product, location=location, quantity=quantity)
        StockLedger.record_transaction(
            tx_type=TxType.INBOUND,
            warehouse=location.warehouse,
            product=product,
            stock=record,
            to_location=location,
            quantity=quantity,
            actor=actor,
            note=note,
        )
        logger.info('INBOUND product=%s location=%s qty=%s', product.pk, location.code, quantity)
        return record

    @staticmethod
    @transaction.atomic
    def issue(*, stock: StockRecord, quantity: int, actor, note: str = '') -> StockRecord:
        """Outbound: take ``quantity`` out of the warehouse."""
        StockLedger.decrement(stock=stock, quantity=quantity)
        StockLedger.record_transaction(
            tx_type=TxType.OUTBOUND,
            warehouse=stock.location.warehouse,
            product=stock.product,
            stock=stock,
            from_location=stock.location,
            quantity=quantity,
            actor=actor,
            note=note,
            details={'remaining': stock.quantity},
        )
        logger.info('OUTBOUND stock=%s qty=%s remaining=%s', stock.pk, quantity, stock.quantity)
        return stock

    @staticmethod
    @transaction.atomic
    def transfer(*, stock: StockRecord, target_location: Location, quantity: int, actor,
                 note: str = '') -> StockRecord:
        """
        Move ``quantity`` to ``target_location``. Crossing warehouses
        writes a TRANSFER_OUT / TRANSFER_IN pair; both sides commit or
        neither does.
        """
        source_location = stock.location
        source_warehouse = source_location.warehouse
        target_warehouse = target_location.warehouse
        target = StockLedger.move(stock=stock, target_location=target_location, quantity=quantity)

        common = {
            'product': stock.product,
            'from_location': source_location,
            'to_location': target_location,
            'quantity': quantity,
            'actor': actor,
            'note': note,
        }
        if source_warehouse.pk == target_warehouse.pk:
            StockLedger.record_transaction(
                tx_type=TxType.TRANSFER, warehouse=source_warehouse, stock=stock, **common,
            )
        else:
            details = {
                'source_warehouse': str(source_warehouse.pk),
                'target_warehouse': str(target_warehouse.pk),
            }
            StockLedger.record_transaction(
                tx_type=TxType.TRANSFER_OUT, warehouse=source_warehouse, stock=stock,
                details=details, **common,
            )
            StockLedger.record_transaction(
                tx_type=TxType.TRANSFER_IN, warehouse=target_warehouse, stock=target,
                details=details, **common,
            )
        logger.info(
            'TRANSFER stock=%s %s -> %s qty=%s',
            stock.pk, source_location.code, target_location.code, quantity,
        )
        return target

    @staticmethod
    @transaction.atomic
    def adjust(*, stock_id, counted_quantity: int, actor, note: str = '') -> StockRecord:
        """Audit adjustment: set the booked quantity to what was counted."""
        if counted_quantity is None or counted_quantity < 0:
            raise BusinessRuleViolation(detail='Counted quantity cannot be negative.')

        stock = StockLedger.get_record(stock_id, for_update=True)
        before = stock.quantity
        # Units held by a partial status cannot be counted away.
        StatusGuard.check_quantity(stock, Operation.AUDIT, max(before - counted_quantity, 0))

        delta = counted_quantity - before
        updated = (
            StockRecord.objects
            .filter(pk=stock.pk, quantity=before)
            .update(quantity=counted_quantity, updated_at=timezone.now())
        )
        if updated == 0:
            raise ConcurrentUpdateError(detail=f'Stock record {stock.pk} changed during the count.')
        stock.refresh_from_db(fields=['quantity', 'updated_at'])

        StockLedger.record_transaction(
            tx_type=TxType.ADJUST,
            warehouse=stock.location.warehouse,
            product=stock.product,
            stock=stock,
            from_location=stock.location,
            quantity=delta,
            actor=actor,
            note=note,
            details={'before': before, 'after': counted_quantity},
        )
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_ADJUST,
            model_name='StockRecord',
            object_id=str(stock.pk),
            old_values={'quantity': before},
            new_values={'quantity': counted_quantity},
        )
        logger.info('ADJUST stock=%s %s -> %s', stock.pk, before, counted_quantity)
        return stock
