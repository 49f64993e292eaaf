"""
Transfers — Batch Transaction Coordinator

Commits a queue of transfer or outbound items. Every item is its own
unit of work: it is re-validated under a row lock and committed or
rejected on its own, so one bad item never rolls back its neighbours.
A deadlock or serialization failure on an item is a lost race and is
reported as that item's CONFLICT. Other database failures abort the
batch and surface as INFRASTRUCTURE.

@file transfers/services.py
"""

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db import OperationalError, transaction
from rest_framework.exceptions import APIException

from core.exceptions import BusinessRuleViolation, ConcurrentUpdateError
from statuses.effects import Operation
from stock.services import StockLedger

from .validators import ItemVerdict, PreflightValidator, QueueItem

logger = logging.getLogger('wms')

# deadlock_detected, serialization_failure
LOST_RACE_SQLSTATES = frozenset({'40P01', '40001'})


@dataclass
class BatchResult:
    verb: str
    items: list[ItemVerdict] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for v in self.items if v.ok)

    @property
    def failed(self) -> int:
        return sum(1 for v in self.items if not v.ok)

    @property
    def errors(self) -> list[str]:
        return [f'Item {v.index + 1}: {v.reason}' for v in self.items if not v.ok]

    @property
    def message(self) -> str:
        if self.failed == 0:
            return f'{self.verb} {self.succeeded} item(s).'
        if self.succeeded == 0:
            return f'All {self.failed} item(s) failed.'
        return f'{self.verb} {self.succeeded} item(s); {self.failed} failed.'

    def as_response(self) -> dict:
        return {
            'success': self.failed == 0,
            'message': self.message,
            'details': {
                'success': self.succeeded,
                'failed': self.failed,
                'errors': self.errors,
                'items': [v.as_dict() for v in self.items],
            },
        }


def check_batch_size(items: list) -> None:
    if not items:
        raise BusinessRuleViolation(detail='The batch is empty.')
    limit = settings.BULK_MAX_ITEMS
    if len(items) > limit:
        raise BusinessRuleViolation(detail=f'A batch may hold at most {limit} items.')


class _BatchCoordinator:
    verb = ''
    operation = ''

    @classmethod
    def commit_item(cls, item: QueueItem, actor) -> None:
        raise NotImplementedError

    @classmethod
    def preflight(cls, items: list[QueueItem]) -> dict:
        check_batch_size(items)
        return PreflightValidator.preflight(items, operation=cls.operation).as_dict()

    @classmethod
    def commit_one(cls, item: QueueItem, actor) -> None:
        try:
            with transaction.atomic():
                cls.commit_item(item, actor)
        except OperationalError as exc:
            if getattr(exc.__cause__, 'sqlstate', None) not in LOST_RACE_SQLSTATES:
                raise
            raise ConcurrentUpdateError(
                detail=f'Stock record {item.stock_id} was locked by a concurrent movement; retry the item.',
            ) from exc

    @classmethod
    def commit(cls, *, items: list[QueueItem], actor) -> BatchResult:
        check_batch_size(items)
        result = BatchResult(verb=cls.verb)
        for index, item in enumerate(items):
            try:
                cls.commit_one(item, actor)
            except APIException as exc:
                logger.warning(
                    '%s item %s (stock=%s) rejected: %s',
                    cls.operation, index + 1, item.stock_id, exc.detail,
                )
                result.items.append(ItemVerdict.failure(index, item, exc))
            else:
                result.items.append(ItemVerdict(index=index, stock_id=str(item.stock_id), ok=True))

        logger.info(
            '%s batch by %s: %s succeeded, %s failed',
            cls.operation, getattr(actor, 'email', None), result.succeeded, result.failed,
        )
        return result


class BulkTransferService(_BatchCoordinator):
    verb = 'Transferred'
    operation = Operation.TRANSFER

    @classmethod
    def commit_item(cls, item: QueueItem, actor) -> None:
        stock = StockLedger.get_record(item.stock_id, for_update=True)
        stock, target = PreflightValidator.check_transfer(item, stock=stock)
        StockLedger.transfer(
            stock=stock,
            target_location=target,
            quantity=item.quantity,
            actor=actor,
            note=item.note,
        )


class BulkOutboundService(_BatchCoordinator):
    verb = 'Issued'
    operation = Operation.OUTBOUND

    @classmethod
    def commit_item(cls, item: QueueItem, actor) -> None:
        stock = StockLedger.get_record(item.stock_id, for_update=True)
        stock = PreflightValidator.check_outbound(item, stock=stock)
        StockLedger.issue(stock=stock, quantity=item.quantity, actor=actor, note=item.note)
