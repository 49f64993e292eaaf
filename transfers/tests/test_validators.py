"""
Transfers — Preflight Validator Tests

One test per rejection code plus the happy paths for position-based
and id-based targets.

@file transfers/tests/test_validators.py
"""

import uuid

import pytest

from statuses.effects import Effect, Operation
from statuses.models import EntityType
from statuses.services import EntityStatusService
from stock.models import StockRecord
from tests.factories import (
    LocationFactory,
    ProductStatusDefinitionFactory,
    StatusDefinitionFactory,
    UserFactory,
    WarehouseFactory,
)
from transfers.validators import PreflightValidator, QueueItem, TransferMode

pytestmark = pytest.mark.django_db


def _verdict(item, operation=Operation.TRANSFER):
    report = PreflightValidator.preflight([item], operation=operation).as_dict()
    assert report['summary']['total'] == 1
    return report['results'][0]


def _status_on_location(location, effect):
    EntityStatusService.apply_status(
        entity_type=EntityType.LOCATION, entity_id=location.pk,
        status_id=StatusDefinitionFactory(effect=effect).pk, actor=UserFactory(),
    )


class TestTransferPreflight:

    def test_valid_by_location_id(self, stock, target_location):
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=4, target_location_id=target_location.pk))
        assert result == {'index': 0, 'stock_id': str(stock.pk), 'ok': True, 'code': None, 'reason': None}

    def test_valid_by_position(self, stock, target_location):
        item = QueueItem(stock_id=stock.pk, quantity=4, target_lot='L02', target_cart='P03', target_level='Z02')
        assert _verdict(item)['ok'] is True

    def test_does_not_mutate(self, stock, target_location):
        PreflightValidator.preflight(
            [QueueItem(stock_id=stock.pk, quantity=4, target_location_id=target_location.pk)],
        )
        assert StockRecord.objects.get(pk=stock.pk).quantity == 10
        assert not StockRecord.objects.filter(location=target_location).exists()

    def test_stock_not_found(self, target_location):
        result = _verdict(QueueItem(stock_id=uuid.uuid4(), quantity=1, target_location_id=target_location.pk))
        assert result['code'] == 'STOCK_NOT_FOUND'

    @pytest.mark.parametrize('quantity', [0, -2, 11])
    def test_insufficient_quantity(self, stock, target_location, quantity):
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=quantity, target_location_id=target_location.pk))
        assert result['code'] == 'INSUFFICIENT_QUANTITY'

    def test_restricted_source(self, stock, target_location):
        _status_on_location(stock.location, Effect.TRANSACTIONS_PROHIBITED)
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk))
        assert result['code'] == 'STATUS_RESTRICTED'

    def test_effect_mismatch_on_source(self, stock, target_location):
        _status_on_location(stock.location, Effect.INBOUND_ONLY)
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk))
        assert result['code'] == 'STATUS_EFFECT_MISMATCH'

    def test_partially_held_stock(self, stock, target_location):
        EntityStatusService.apply_status(
            entity_type=EntityType.STOCK, entity_id=stock.pk,
            status_id=ProductStatusDefinitionFactory().pk, affected_quantity=8, actor=UserFactory(),
        )
        ok = _verdict(QueueItem(stock_id=stock.pk, quantity=2, target_location_id=target_location.pk))
        held = _verdict(QueueItem(stock_id=stock.pk, quantity=3, target_location_id=target_location.pk))
        assert ok['ok'] is True
        assert held['code'] == 'STATUS_RESTRICTED'

    def test_missing_target(self, stock):
        assert _verdict(QueueItem(stock_id=stock.pk, quantity=1))['code'] == 'INVALID_TARGET'

    def test_unknown_position(self, stock):
        item = QueueItem(stock_id=stock.pk, quantity=1, target_lot='09', target_cart='09', target_level='9')
        result = _verdict(item)
        assert result['code'] == 'INVALID_TARGET'
        assert 'L09-P09-Z09' in result['reason']

    def test_same_location(self, stock):
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=1, target_location_id=stock.location_id))
        assert result['code'] == 'INVALID_TARGET'

    def test_inactive_target(self, stock, warehouse):
        inactive = LocationFactory(warehouse=warehouse, is_active=False)
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=1, target_location_id=inactive.pk))
        assert result['code'] == 'INVALID_TARGET'

    def test_internal_mode_stays_in_warehouse(self, stock, other_warehouse):
        remote = LocationFactory(warehouse=other_warehouse)
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=1, target_location_id=remote.pk))
        assert result['code'] == 'INVALID_TARGET'

    def test_closed_destination(self, stock, target_location):
        _status_on_location(target_location, Effect.CLOSED)
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk))
        assert result['code'] == 'STATUS_RESTRICTED'


class TestCrossWarehousePreflight:

    def test_missing_target_warehouse(self, stock, other_warehouse):
        remote = LocationFactory(warehouse=other_warehouse)
        item = QueueItem(stock_id=stock.pk, quantity=1, target_location_id=remote.pk, mode=TransferMode.CROSS)
        assert _verdict(item)['code'] == 'MISSING_TARGET_WAREHOUSE'

    def test_valid_cross(self, stock, other_warehouse):
        LocationFactory(warehouse=other_warehouse, lot='05', cart='01', level=1)
        item = QueueItem(
            stock_id=stock.pk, quantity=2, mode=TransferMode.CROSS, target_warehouse_id=other_warehouse.pk,
            target_lot='05', target_cart='01', target_level='1',
        )
        assert _verdict(item)['ok'] is True

    def test_same_warehouse_rejected(self, stock, target_location):
        item = QueueItem(
            stock_id=stock.pk, quantity=1, mode=TransferMode.CROSS,
            target_warehouse_id=stock.location.warehouse_id, target_location_id=target_location.pk,
        )
        assert _verdict(item)['code'] == 'INVALID_TARGET'

    def test_inactive_target_warehouse(self, stock):
        closed = WarehouseFactory(is_active=False)
        remote = LocationFactory(warehouse=closed)
        item = QueueItem(
            stock_id=stock.pk, quantity=1, mode=TransferMode.CROSS,
            target_warehouse_id=closed.pk, target_location_id=remote.pk,
        )
        assert _verdict(item)['code'] == 'INVALID_TARGET'

    def test_location_outside_target_warehouse(self, stock, other_warehouse):
        elsewhere = LocationFactory()
        item = QueueItem(
            stock_id=stock.pk, quantity=1, mode=TransferMode.CROSS,
            target_warehouse_id=other_warehouse.pk, target_location_id=elsewhere.pk,
        )
        assert _verdict(item)['code'] == 'INVALID_TARGET'


class TestOutboundPreflight:

    def test_valid(self, stock):
        assert _verdict(QueueItem(stock_id=stock.pk, quantity=10), Operation.OUTBOUND)['ok'] is True

    def test_outbound_only_location_allows_issue(self, stock):
        _status_on_location(stock.location, Effect.OUTBOUND_ONLY)
        assert _verdict(QueueItem(stock_id=stock.pk, quantity=1), Operation.OUTBOUND)['ok'] is True

    def test_audit_only_location_blocks_issue(self, stock):
        _status_on_location(stock.location, Effect.AUDIT_ONLY)
        result = _verdict(QueueItem(stock_id=stock.pk, quantity=1), Operation.OUTBOUND)
        assert result['code'] == 'STATUS_EFFECT_MISMATCH'


def test_items_are_checked_independently(stock, target_location):
    report = PreflightValidator.preflight([
        QueueItem(stock_id=stock.pk, quantity=99, target_location_id=target_location.pk),
        QueueItem(stock_id=stock.pk, quantity=3, target_location_id=target_location.pk),
        QueueItem(stock_id=uuid.uuid4(), quantity=1, target_location_id=target_location.pk),
    ]).as_dict()
    assert [r['ok'] for r in report['results']] == [False, True, False]
    assert report['summary'] == {'total': 3, 'ok': 1}
