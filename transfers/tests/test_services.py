"""
Tests — BulkTransferService / BulkOutboundService.

Items commit independently, each one is re-validated at commit time,
and datastore failures abort the batch instead of being reported as
item failures.

@file transfers/tests/test_services.py
"""

import uuid

import pytest
from django.db import OperationalError

from core.exceptions import BusinessRuleViolation, ConcurrentUpdateError
from statuses.effects import Effect, quantity_breakdown
from statuses.models import EntityType
from statuses.services import EntityStatusService
from stock.models import StockRecord, StockTransaction
from stock.services import StockLedger
from tests.factories import (
    LocationFactory,
    ProductStatusDefinitionFactory,
    StatusDefinitionFactory,
    StockRecordFactory,
)
from transfers.services import BulkOutboundService, BulkTransferService
from transfers.validators import QueueItem, TransferMode

pytestmark = pytest.mark.django_db


def _quantity(stock):
    return StockRecord.objects.get(pk=stock.pk).quantity


class TestScenarios:

    def test_plain_transfer(self, stock, target_location, user):
        items = [QueueItem(stock_id=stock.pk, quantity=5, target_location_id=target_location.pk)]

        report = BulkTransferService.preflight(items)
        assert report['results'][0]['ok'] is True
        assert report['summary'] == {'total': 1, 'ok': 1}

        result = BulkTransferService.commit(items=items, actor=user)
        assert result.succeeded == 1
        assert _quantity(stock) == 5
        assert StockRecord.objects.get(product=stock.product, location=target_location).quantity == 5

    def test_closed_stock_fails_everywhere(self, target_location, user, source_location):
        stock = StockRecordFactory(location=source_location, quantity=4)
        closed = StatusDefinitionFactory(name='Quarantine', effect=Effect.CLOSED)
        EntityStatusService.apply_status(
            entity_type=EntityType.STOCK, entity_id=stock.pk, status_id=closed.pk, actor=user,
        )
        items = [QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk)]

        verdict = BulkTransferService.preflight(items)['results'][0]
        assert verdict['ok'] is False
        assert 'Quarantine' in verdict['reason']

        result = BulkTransferService.commit(items=items, actor=user).as_response()
        assert result['success'] is False
        assert result['details']['failed'] == 1
        assert _quantity(stock) == 4

    def test_partial_status_lifecycle(self, stock, user):
        definition = ProductStatusDefinitionFactory()
        applied = EntityStatusService.apply_status(
            entity_type=EntityType.STOCK, entity_id=stock.pk, status_id=definition.pk,
            affected_quantity=4, actor=user,
        )
        assert quantity_breakdown(10, applied) == (10, 6, 4)

        remaining = EntityStatusService.remove_partial(
            entity_type=EntityType.STOCK, entity_id=stock.pk, quantity=3, actor=user, reason='resolved',
        )
        assert remaining.affected_quantity == 1
        assert EntityStatusService.remove_partial(
            entity_type=EntityType.STOCK, entity_id=stock.pk, quantity=1, actor=user,
        ) is None


class TestBulkTransfer:

    def test_failures_do_not_roll_back_neighbours(self, stock, target_location, user):
        items = [
            QueueItem(stock_id=uuid.uuid4(), quantity=1, target_location_id=target_location.pk),
            QueueItem(stock_id=stock.pk, quantity=3, target_location_id=target_location.pk),
            QueueItem(stock_id=stock.pk, quantity=50, target_location_id=target_location.pk),
        ]
        response = BulkTransferService.commit(items=items, actor=user).as_response()

        assert response['success'] is False
        assert response['details']['success'] == 1
        assert response['details']['failed'] == 2
        assert response['details']['errors'][0].startswith('Item 1:')
        assert response['details']['errors'][1].startswith('Item 3:')
        assert [i['code'] for i in response['details']['items']] == [
            'STOCK_NOT_FOUND', None, 'INSUFFICIENT_QUANTITY',
        ]
        assert _quantity(stock) == 7

    def test_middle_item_failure(self, stock, target_location, user):
        items = [
            QueueItem(stock_id=stock.pk, quantity=2, target_location_id=target_location.pk),
            QueueItem(stock_id=stock.pk, quantity=2, target_location_id=stock.location_id),
            QueueItem(stock_id=stock.pk, quantity=3, target_location_id=target_location.pk),
        ]
        details = BulkTransferService.commit(items=items, actor=user).as_response()['details']
        assert (details['success'], details['failed']) == (2, 1)
        assert len(details['errors']) == 1
        assert details['errors'][0].startswith('Item 2:')
        assert _quantity(stock) == 5

    def test_quantity_drop_after_preflight(self, stock, target_location, user):
        items = [QueueItem(stock_id=stock.pk, quantity=8, target_location_id=target_location.pk)]
        assert BulkTransferService.preflight(items)['summary']['ok'] == 1

        StockRecord.objects.filter(pk=stock.pk).update(quantity=3)
        result = BulkTransferService.commit(items=items, actor=user)
        assert result.items[0].code == 'INSUFFICIENT_QUANTITY'
        assert _quantity(stock) == 3
        assert not StockTransaction.objects.exists()

    def test_revalidates_at_commit(self, stock, target_location, user):
        items = [QueueItem(stock_id=stock.pk, quantity=2, target_location_id=target_location.pk)]
        assert BulkTransferService.preflight(items)['summary']['ok'] == 1

        EntityStatusService.apply_status(
            entity_type=EntityType.LOCATION, entity_id=target_location.pk,
            status_id=StatusDefinitionFactory(effect=Effect.CLOSED).pk, actor=user,
        )
        result = BulkTransferService.commit(items=items, actor=user)
        assert result.failed == 1
        assert result.items[0].code == 'STATUS_RESTRICTED'
        assert _quantity(stock) == 10

    def test_sequential_items_see_earlier_commits(self, stock, target_location, user):
        items = [
            QueueItem(stock_id=stock.pk, quantity=6, target_location_id=target_location.pk),
            QueueItem(stock_id=stock.pk, quantity=6, target_location_id=target_location.pk),
        ]
        result = BulkTransferService.commit(items=items, actor=user)
        assert [v.ok for v in result.items] == [True, False]
        assert result.items[1].code == 'INSUFFICIENT_QUANTITY'
        assert _quantity(stock) == 4

    def test_cross_warehouse(self, stock, other_warehouse, user):
        remote = LocationFactory(warehouse=other_warehouse, lot='01', cart='01', level=1)
        items = [QueueItem(
            stock_id=stock.pk, quantity=4, mode=TransferMode.CROSS,
            target_warehouse_id=other_warehouse.pk, target_lot='01', target_cart='01', target_level='1',
        )]
        result = BulkTransferService.commit(items=items, actor=user)
        assert result.succeeded == 1
        assert StockRecord.objects.get(location=remote).quantity == 4
        assert StockTransaction.objects.filter(type__in=['TRANSFER_OUT', 'TRANSFER_IN']).count() == 2

    def test_conflict_is_reported_per_item(self, stock, target_location, user, monkeypatch):
        calls = []
        original = StockLedger.transfer

        def flaky_transfer(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise ConcurrentUpdateError()
            return original(**kwargs)

        monkeypatch.setattr(StockLedger, 'transfer', staticmethod(flaky_transfer))
        items = [
            QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk),
            QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk),
        ]
        result = BulkTransferService.commit(items=items, actor=user)
        assert [v.code for v in result.items] == ['CONFLICT', None]
        assert _quantity(stock) == 9

    def test_datastore_failure_aborts(self, stock, target_location, user, monkeypatch):
        def broken(**kwargs):
            raise OperationalError('server closed the connection unexpectedly')

        monkeypatch.setattr(StockLedger, 'transfer', staticmethod(broken))
        items = [QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk)]
        with pytest.raises(OperationalError):
            BulkTransferService.commit(items=items, actor=user)

    @pytest.mark.parametrize('sqlstate', ['40P01', '40001'])
    def test_deadlock_is_reported_per_item(self, stock, target_location, user, monkeypatch, sqlstate):
        calls = []
        original = StockLedger.transfer

        class LockFailure(Exception):
            pass

        def deadlocking_transfer(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                cause = LockFailure('deadlock detected')
                cause.sqlstate = sqlstate
                raise OperationalError('deadlock detected') from cause
            return original(**kwargs)

        monkeypatch.setattr(StockLedger, 'transfer', staticmethod(deadlocking_transfer))
        items = [
            QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk),
            QueueItem(stock_id=stock.pk, quantity=2, target_location_id=target_location.pk),
        ]
        result = BulkTransferService.commit(items=items, actor=user)
        assert [v.code for v in result.items] == ['CONFLICT', None]
        assert _quantity(stock) == 8

    def test_empty_batch(self, user):
        with pytest.raises(BusinessRuleViolation):
            BulkTransferService.commit(items=[], actor=user)

    def test_oversized_batch(self, stock, target_location, user, settings):
        settings.BULK_MAX_ITEMS = 2
        items = [
            QueueItem(stock_id=stock.pk, quantity=1, target_location_id=target_location.pk)
            for _ in range(3)
        ]
        with pytest.raises(BusinessRuleViolation):
            BulkTransferService.commit(items=items, actor=user)
        assert _quantity(stock) == 10


class TestBulkOutbound:

    def test_issue_with_note(self, stock, manager):
        items = [QueueItem(stock_id=stock.pk, quantity=4, note='SO-1001')]
        response = BulkOutboundService.commit(items=items, actor=manager).as_response()
        assert response['success'] is True
        assert response['message'] == 'Issued 1 item(s).'
        assert _quantity(stock) == 6
        assert StockTransaction.objects.get(type='OUTBOUND').note == 'SO-1001'

    def test_inbound_only_location_blocks(self, stock, manager):
        EntityStatusService.apply_status(
            entity_type=EntityType.LOCATION, entity_id=stock.location_id,
            status_id=StatusDefinitionFactory(effect=Effect.INBOUND_ONLY).pk, actor=manager,
        )
        result = BulkOutboundService.commit(
            items=[QueueItem(stock_id=stock.pk, quantity=1)], actor=manager,
        )
        assert result.items[0].code == 'STATUS_EFFECT_MISMATCH'
        assert _quantity(stock) == 10

    def test_can_empty_a_record(self, stock, manager):
        BulkOutboundService.commit(items=[QueueItem(stock_id=stock.pk, quantity=10)], actor=manager)
        assert _quantity(stock) == 0
        assert not StockRecord.objects.active().filter(pk=stock.pk).exists()