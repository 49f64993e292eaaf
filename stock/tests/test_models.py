"""
Stock — Model Tests

@file stock/tests/test_models.py
"""

import pytest
from django.db import IntegrityError

from stock.models import StockRecord, StockTransaction
from tests.factories import LocationFactory, StockRecordFactory, UserFactory


@pytest.mark.django_db
class TestStockRecord:

    def test_one_record_per_product_and_location(self):
        record = StockRecordFactory()
        with pytest.raises(IntegrityError):
            StockRecordFactory(product=record.product, location=record.location)

    def test_position_shortcuts(self):
        location = LocationFactory(lot='03', cart='05', level=2)
        record = StockRecordFactory(location=location)
        assert record.warehouse_id == location.warehouse_id
        assert (record.lot, record.cart, record.level) == ('03', '05', 2)

    def test_active_hides_empty_records(self):
        full = StockRecordFactory(quantity=3)
        StockRecordFactory(quantity=0)
        assert list(StockRecord.objects.active()) == [full]

    def test_in_warehouse(self):
        here = StockRecordFactory()
        StockRecordFactory()
        assert list(StockRecord.objects.in_warehouse(here.location.warehouse_id)) == [here]


@pytest.mark.django_db
class TestStockTransaction:

    def test_transactions_are_insert_only(self):
        record = StockRecordFactory()
        tx = StockTransaction.objects.create(
            type=StockTransaction.TransactionType.INBOUND,
            warehouse=record.location.warehouse,
            product=record.product,
            stock=record,
            to_location=record.location,
            quantity=5,
            actor=UserFactory(),
        )
        tx.note = 'edited'
        with pytest.raises(NotImplementedError):
            tx.save()
        with pytest.raises(NotImplementedError):
            tx.delete()
