"""
Catalog — Models

Warehouses, storage locations and products. Locations are addressed by
lot / cart / level inside a warehouse and carry an ``Lxx-Pxx-Zxx`` code.

@file catalog/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.constants import LOCATION_CODE_TEMPLATE
from core.models import BaseModel


class Warehouse(BaseModel):
    code = models.CharField(_('code'), max_length=30, unique=True)
    name = models.CharField(_('name'), max_length=200)
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('warehouse')
        verbose_name_plural = _('warehouses')
        ordering = ['code']

    def __str__(self):
        return f'{self.code} — {self.name}'


class Location(BaseModel):
    """
    A single storage position. ``lot`` groups positions inside a
    warehouse (zone-like), ``cart`` is the position within the lot and
    ``level`` the shelf height.
    """

    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name='locations',
        verbose_name=_('warehouse'),
    )
    code = models.CharField(_('code'), max_length=40)
    lot = models.CharField(_('lot'), max_length=10, blank=True, db_index=True)
    cart = models.CharField(_('cart'), max_length=10, blank=True)
    level = models.PositiveSmallIntegerField(_('level'), null=True, blank=True)
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('location')
        verbose_name_plural = _('locations')
        ordering = ['warehouse', 'code']
        constraints = [
            models.UniqueConstraint(
                fields=['warehouse', 'code'],
                name='unique_location_code_per_warehouse',
            ),
        ]
        indexes = [
            models.Index(fields=['warehouse', 'lot']),
        ]

    def __str__(self):
        return self.code

    @staticmethod
    def build_code(lot, cart, level) -> str:
        return LOCATION_CODE_TEMPLATE.format(
            lot=_strip_prefix(lot, 'L'),
            cart=_strip_prefix(cart, 'P'),
            level=_strip_prefix(level, 'Z'),
        )


def _strip_prefix(value, prefix: str) -> str:
    value = str(value).strip().upper()
    if value.startswith(prefix):
        value = value[len(prefix):]
    return value


class Product(BaseModel):
    sku = models.CharField(_('SKU'), max_length=60, unique=True)
    name = models.CharField(_('name'), max_length=255, db_index=True)
    uom = models.CharField(_('unit of measure'), max_length=20, default='PCS')
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('product')
        verbose_name_plural = _('products')
        ordering = ['sku']

    def __str__(self):
        return f'{self.sku} — {self.name}'
