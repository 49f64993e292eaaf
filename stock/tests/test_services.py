"""
Tests — StockLedger: receive, issue, transfer (same and cross warehouse),
adjust, and the conditional decrement that guards against lost races.

@file stock/tests/test_services.py
"""

import uuid

import pytest

from core.exceptions import (
    BusinessRuleViolation,
    ConcurrentUpdateError,
    InvalidTargetError,
    StatusRestrictedError,
    StockNotFoundError,
)
from core.models import AuditLog
from statuses.effects import Effect
from statuses.models import EntityType
from statuses.services import EntityStatusService
from stock.models import StockRecord, StockTransaction
from stock.services import StockLedger
from tests.factories import (
    LocationFactory,
    ProductFactory,
    ProductStatusDefinitionFactory,
    StatusDefinitionFactory,
    StockRecordFactory,
    UserFactory,
)

pytestmark = pytest.mark.django_db

TxType = StockTransaction.TransactionType


def _close(location, effect=Effect.CLOSED):
    EntityStatusService.apply_status(
        entity_type=EntityType.LOCATION,
        entity_id=location.pk,
        status_id=StatusDefinitionFactory(effect=effect).pk,
        actor=UserFactory(),
    )


class TestGetRecord:

    def test_missing(self):
        with pytest.raises(StockNotFoundError):
            StockLedger.get_record(uuid.uuid4())

    def test_garbage_id(self):
        with pytest.raises(StockNotFoundError):
            StockLedger.get_record('nope')


class TestReceive:

    def test_creates_record_and_transaction(self, source_location, user):
        product = ProductFactory()
        record = StockLedger.receive(product=product, location=source_location, quantity=7, actor=user)
        assert record.quantity == 7
        tx = StockTransaction.objects.get(stock=record)
        assert tx.type == TxType.INBOUND
        assert tx.quantity == 7
        assert tx.actor_email == user.email

    def test_adds_to_existing_record(self, stock, user):
        StockLedger.receive(product=stock.product, location=stock.location, quantity=5, actor=user)
        stock.refresh_from_db()
        assert stock.quantity == 15
        assert StockRecord.objects.filter(product=stock.product).count() == 1

    def test_rejects_closed_location(self, source_location, user):
        _close(source_location)
        with pytest.raises(StatusRestrictedError):
            StockLedger.receive(product=ProductFactory(), location=source_location, quantity=1, actor=user)

    def test_rejects_inactive_location(self, user):
        location = LocationFactory(is_active=False)
        with pytest.raises(InvalidTargetError):
            StockLedger.receive(product=ProductFactory(), location=location, quantity=1, actor=user)

    def test_rejects_non_positive_quantity(self, source_location, user):
        with pytest.raises(BusinessRuleViolation):
            StockLedger.receive(product=ProductFactory(), location=source_location, quantity=0, actor=user)


class TestIssue:

    def test_decrements_and_records(self, stock, user):
        StockLedger.issue(stock=stock, quantity=4, actor=user, note='Order 42')
        stock.refresh_from_db()
        assert stock.quantity == 6
        tx = StockTransaction.objects.get(type=TxType.OUTBOUND)
        assert tx.note == 'Order 42'
        assert tx.details == {'remaining': 6}

    def test_lost_race_is_conflict(self, stock, user):
        # Another writer drained the record after this one was read.
        StockRecord.objects.filter(pk=stock.pk).update(quantity=2)
        with pytest.raises(ConcurrentUpdateError):
            StockLedger.issue(stock=stock, quantity=5, actor=user)
        assert not StockTransaction.objects.exists()
        assert StockRecord.objects.get(pk=stock.pk).quantity == 2


class TestTransfer:

    def test_same_warehouse(self, stock, target_location, user):
        target = StockLedger.transfer(stock=stock, target_location=target_location, quantity=4, actor=user)
        stock.refresh_from_db()
        assert stock.quantity == 6
        assert target.quantity == 4
        assert target.location == target_location
        tx = StockTransaction.objects.get()
        assert tx.type == TxType.TRANSFER
        assert (tx.from_location, tx.to_location) == (stock.location, target_location)

    def test_quantity_is_conserved(self, stock, target_location, user):
        StockLedger.transfer(stock=stock, target_location=target_location, quantity=10, actor=user)
        total = sum(StockRecord.objects.filter(product=stock.product).values_list('quantity', flat=True))
        assert total == 10

    def test_cross_warehouse_writes_pair(self, stock, other_warehouse, user):
        remote = LocationFactory(warehouse=other_warehouse, lot='01', cart='01', level=1)
        StockLedger.transfer(stock=stock, target_location=remote, quantity=3, actor=user)
        types = sorted(StockTransaction.objects.values_list('type', flat=True))
        assert types == [TxType.TRANSFER_IN, TxType.TRANSFER_OUT]
        inbound = StockTransaction.objects.get(type=TxType.TRANSFER_IN)
        assert inbound.warehouse == other_warehouse
        assert inbound.details['source_warehouse'] == str(stock.location.warehouse_id)

    def test_same_location_rejected(self, stock, user):
        with pytest.raises(InvalidTargetError):
            StockLedger.transfer(stock=stock, target_location=stock.location, quantity=1, actor=user)


class TestAdjust:

    def test_sets_counted_quantity(self, stock, manager):
        StockLedger.adjust(stock_id=stock.pk, counted_quantity=7, actor=manager, note='Cycle count')
        stock.refresh_from_db()
        assert stock.quantity == 7
        tx = StockTransaction.objects.get(type=TxType.ADJUST)
        assert tx.quantity == -3
        assert tx.details == {'before': 10, 'after': 7}
        assert AuditLog.objects.filter(model_name='StockRecord', action='ADJUST').exists()

    def test_audit_only_location_allows_adjust(self, stock, manager):
        _close(stock.location, effect=Effect.AUDIT_ONLY)
        StockLedger.adjust(stock_id=stock.pk, counted_quantity=12, actor=manager)
        assert StockRecord.objects.get(pk=stock.pk).quantity == 12

    def test_prohibited_location_blocks_adjust(self, stock, manager):
        _close(stock.location, effect=Effect.TRANSACTIONS_PROHIBITED)
        with pytest.raises(StatusRestrictedError):
            StockLedger.adjust(stock_id=stock.pk, counted_quantity=1, actor=manager)

    def test_held_units_cannot_be_counted_away(self, stock, manager):
        EntityStatusService.apply_status(
            entity_type=EntityType.STOCK, entity_id=stock.pk,
            status_id=ProductStatusDefinitionFactory().pk, affected_quantity=4, actor=manager,
        )
        with pytest.raises(StatusRestrictedError):
            StockLedger.adjust(stock_id=stock.pk, counted_quantity=0, actor=manager)
        assert StockRecord.objects.get(pk=stock.pk).quantity == 10

        StockLedger.adjust(stock_id=stock.pk, counted_quantity=4, actor=manager)
        assert StockRecord.objects.get(pk=stock.pk).quantity == 4

    def test_negative_count_rejected(self, stock, manager):
        with pytest.raises(BusinessRuleViolation):
            StockLedger.adjust(stock_id=stock.pk, counted_quantity=-1, actor=manager)
