"""
Transfers — Preflight Validator

Checks one queue item against the current ledger and status state
without mutating anything. The batch coordinator runs the same checks
again, under a row lock, right before committing each item.

@file transfers/validators.py
"""

from dataclasses import asdict, dataclass, field

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _
from rest_framework.exceptions import APIException

from catalog.models import Location, Warehouse
from catalog.services import CatalogService
from core.exceptions import (
    InsufficientStockError,
    InvalidTargetError,
    MissingTargetWarehouseError,
)
from statuses.effects import Operation
from statuses.services import EntityStatusService, StatusGuard
from stock.models import StockRecord
from stock.services import StockLedger


class TransferMode(models.TextChoices):
    INTERNAL = 'INTERNAL', _('Internal')
    CROSS = 'CROSS', _('Cross-warehouse')


@dataclass
class QueueItem:
    """One entry of a caller-held batch. Has no identity until committed."""

    stock_id: str
    quantity: int
    target_location_id: str | None = None
    target_warehouse_id: str | None = None
    target_lot: str | None = None
    target_cart: str | None = None
    target_level: str | None = None
    mode: str = TransferMode.INTERNAL
    note: str = ''

    @property
    def names_position(self) -> bool:
        return all(
            value not in (None, '')
            for value in (self.target_lot, self.target_cart, self.target_level)
        )


@dataclass
class ItemVerdict:
    index: int
    stock_id: str
    ok: bool
    code: str | None = None
    reason: str | None = None

    @classmethod
    def failure(cls, index: int, item: QueueItem, exc: APIException) -> 'ItemVerdict':
        return cls(
            index=index,
            stock_id=str(item.stock_id),
            ok=False,
            code=exc.default_code,
            reason=str(exc.detail),
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class PreflightReport:
    results: list[ItemVerdict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            'results': [r.as_dict() for r in self.results],
            'summary': {'total': len(self.results), 'ok': sum(1 for r in self.results if r.ok)},
        }


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def _check_quantity(stock: StockRecord, quantity) -> None:
    if quantity is None or quantity <= 0:
        raise InsufficientStockError(detail='Quantity must be at least 1.')
    if quantity > stock.quantity:
        raise InsufficientStockError(
            detail=f'Requested {quantity} but only {stock.quantity} available.',
        )


def _get_location(location_id) -> Location:
    try:
        return Location.objects.select_related('warehouse').get(pk=location_id)
    except (Location.DoesNotExist, ValueError, ValidationError):
        raise InvalidTargetError(detail=f'Target location {location_id} not found.')


def _resolve_target(item: QueueItem, stock: StockRecord) -> Location:
    if not item.target_location_id and not item.names_position:
        raise InvalidTargetError(detail='Target location is required.')

    source_warehouse_id = stock.location.warehouse_id
    if item.mode == TransferMode.CROSS:
        if not item.target_warehouse_id:
            raise MissingTargetWarehouseError()
        try:
            target_warehouse = Warehouse.objects.get(pk=item.target_warehouse_id)
        except (Warehouse.DoesNotExist, ValueError, ValidationError):
            raise InvalidTargetError(detail=f'Target warehouse {item.target_warehouse_id} not found.')
        if not target_warehouse.is_active:
            raise InvalidTargetError(detail=f'Target warehouse {target_warehouse.code} is not active.')
        if target_warehouse.pk == source_warehouse_id:
            raise InvalidTargetError(detail='Cross-warehouse transfer needs a different target warehouse.')
        target_warehouse_id = target_warehouse.pk
    else:
        target_warehouse_id = source_warehouse_id

    if item.target_location_id:
        location = _get_location(item.target_location_id)
    else:
        location = CatalogService.resolve_location(
            warehouse_id=target_warehouse_id,
            lot=item.target_lot,
            cart=item.target_cart,
            level=item.target_level,
        )

    if not location.is_active:
        raise InvalidTargetError(detail=f'Target location {location.code} is not active.')
    if location.pk == stock.location_id:
        raise InvalidTargetError(detail='Target location is the same as the source location.')
    if location.warehouse_id != target_warehouse_id:
        raise InvalidTargetError(
            detail=f'Target location {location.code} is not in the target warehouse.',
        )

    StatusGuard.check_destination(location)
    return location


class PreflightValidator:
    """Per-item checks shared by preflight and commit."""

    @staticmethod
    def check_transfer(item: QueueItem, *, stock: StockRecord | None = None) -> tuple[StockRecord, Location]:
        if stock is None:
            stock = StockLedger.get_record(item.stock_id)
        _check_quantity(stock, item.quantity)
        effective = EntityStatusService.effective_statuses(stock)
        StatusGuard.check_quantity(stock, Operation.TRANSFER, item.quantity, effective)
        target = _resolve_target(item, stock)
        return stock, target

    @staticmethod
    def check_outbound(item: QueueItem, *, stock: StockRecord | None = None) -> StockRecord:
        if stock is None:
            stock = StockLedger.get_record(item.stock_id)
        _check_quantity(stock, item.quantity)
        effective = EntityStatusService.effective_statuses(stock)
        StatusGuard.check_quantity(stock, Operation.OUTBOUND, item.quantity, effective)
        return stock

    @staticmethod
    def preflight(items: list[QueueItem], *, operation: str = Operation.TRANSFER) -> PreflightReport:
        """
        Validate every item independently. The report is advisory: it
        holds no lock and guarantees nothing about a later commit.
        """
        check = (
            PreflightValidator.check_outbound
            if operation == Operation.OUTBOUND
            else PreflightValidator.check_transfer
        )
        report = PreflightReport()
        for index, item in enumerate(items):
            try:
                check(item)
            except APIException as exc:
                report.results.append(ItemVerdict.failure(index, item, exc))
            else:
                report.results.append(ItemVerdict(index=index, stock_id=str(item.stock_id), ok=True))
        return report
