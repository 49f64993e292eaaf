"""
Stock — Models

Quantity-on-hand per (product, location) plus the insert-only
transaction history that every quantity change writes.

StockRecord.quantity is only ever changed through StockLedger, which
uses conditional UPDATEs so a lost race can never drive it negative.

@file stock/models.py
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel, InsertOnlyModel


class StockRecordQuerySet(models.QuerySet):

    def active(self):
        """Records with stock on hand. Empty records stay as history anchors."""
        return self.filter(quantity__gt=0)

    def in_warehouse(self, warehouse_id):
        return self.filter(location__warehouse_id=warehouse_id)


class StockRecord(BaseModel):
    """Quantity of one product at one location."""

    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='stock_records',
        verbose_name=_('product'),
    )
    location = models.ForeignKey(
        'catalog.Location',
        on_delete=models.PROTECT,
        related_name='stock_records',
        verbose_name=_('location'),
    )
    quantity = models.PositiveIntegerField(_('quantity'), default=0)

    objects = StockRecordQuerySet.as_manager()

    class Meta:
        verbose_name = _('stock record')
        verbose_name_plural = _('stock records')
        ordering = ['location__code', 'product__sku']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'location'],
                name='unique_stock_per_product_location',
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name='stock_quantity_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['location', 'quantity']),
        ]

    def __str__(self):
        return f'{self.product_id} @ {self.location_id}: {self.quantity}'

    @property
    def warehouse_id(self):
        return self.location.warehouse_id

    @property
    def lot(self) -> str:
        return self.location.lot

    @property
    def cart(self) -> str:
        return self.location.cart

    @property
    def level(self):
        return self.location.level


class StockTransaction(InsertOnlyModel):
    """
    A single immutable stock transaction (insert only).

    ``quantity`` is positive for every type except ADJUST, where it is
    the signed difference between the counted and the booked quantity.
    """

    class TransactionType(models.TextChoices):
        INBOUND = 'INBOUND', _('Inbound')
        OUTBOUND = 'OUTBOUND', _('Outbound')
        TRANSFER = 'TRANSFER', _('Transfer')
        TRANSFER_OUT = 'TRANSFER_OUT', _('Transfer out')
        TRANSFER_IN = 'TRANSFER_IN', _('Transfer in')
        ADJUST = 'ADJUST', _('Adjustment')

    type = models.CharField(
        _('type'), max_length=16,
        choices=TransactionType.choices, db_index=True,
    )
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        on_delete=models.PROTECT,
        related_name='stock_transactions',
        verbose_name=_('warehouse'),
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='stock_transactions',
        verbose_name=_('product'),
    )
    stock = models.ForeignKey(
        StockRecord,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='transactions',
        verbose_name=_('stock record'),
    )
    from_location = models.ForeignKey(
        'catalog.Location',
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('from location'),
    )
    to_location = models.ForeignKey(
        'catalog.Location',
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('to location'),
    )
    quantity = models.IntegerField(_('quantity'))
    note = models.TextField(_('note'), blank=True)
    details = models.JSONField(_('details'), default=dict, blank=True)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('actor'),
    )
    actor_email = models.EmailField(_('actor email'), blank=True)
    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )

    class Meta:
        verbose_name = _('stock transaction')
        verbose_name_plural = _('stock transactions')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['warehouse', 'created_at'], name='stocktx_wh_created_idx'),
            models.Index(fields=['product', 'created_at'], name='stocktx_product_created_idx'),
            models.Index(fields=['type', 'created_at'], name='stocktx_type_created_idx'),
        ]

    def __str__(self):
        return f'{self.type} {self.quantity} product={self.product_id} wh={self.warehouse_id}'
