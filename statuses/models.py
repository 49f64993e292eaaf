"""
Statuses — Models

StatusDefinition is the administrator-maintained catalog of restriction
templates. EntityStatus holds the single current status of an entity
(upserted, never a list). StatusChangeLog is the append-only history of
every apply / remove / partial-remove. EntityNote stores free-text
operator notes on the same entities.

@file statuses/models.py
"""

from django.conf import settings
from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel, InsertOnlyModel

from .effects import Effect, StatusType

hex_color_validator = RegexValidator(
    regex=r'^#[0-9A-Fa-f]{6}$',
    message=_('Invalid hex color.'),
)


class EntityType(models.TextChoices):
    STOCK = 'STOCK', _('Stock record')
    LOCATION = 'LOCATION', _('Location')
    LOT = 'LOT', _('Lot')
    WAREHOUSE = 'WAREHOUSE', _('Warehouse')
    PRODUCT = 'PRODUCT', _('Product')


def lot_entity_id(warehouse_id, lot: str) -> str:
    """Lots have no table of their own; they are keyed by warehouse and lot name."""
    return f'{warehouse_id}:{lot}'


# ---------------------------------------------------------------------------
# Status definitions
# ---------------------------------------------------------------------------

class StatusDefinition(BaseModel):

    code = models.CharField(_('code'), max_length=50, unique=True)
    name = models.CharField(_('name'), max_length=100)
    description = models.TextField(_('description'), blank=True)

    color = models.CharField(_('color'), max_length=7, validators=[hex_color_validator])
    bg_color = models.CharField(_('background color'), max_length=7, validators=[hex_color_validator])
    text_color = models.CharField(_('text color'), max_length=7, validators=[hex_color_validator])

    effect = models.CharField(
        _('effect'), max_length=30,
        choices=Effect.choices, default=Effect.TRANSACTIONS_ALLOWED,
    )
    status_type = models.CharField(
        _('status type'), max_length=10,
        choices=StatusType.choices, default=StatusType.PRODUCT,
        db_index=True,
    )
    is_default = models.BooleanField(_('default'), default=False)
    sort_order = models.PositiveIntegerField(_('sort order'), default=0)
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('status definition')
        verbose_name_plural = _('status definitions')
        ordering = ['sort_order', 'name']
        constraints = [
            models.UniqueConstraint(
                fields=['is_default'],
                condition=models.Q(is_default=True),
                name='single_default_status_definition',
            ),
        ]

    def __str__(self):
        return f'{self.name} ({self.effect})'

    @staticmethod
    def normalize_code(code: str) -> str:
        return '_'.join(code.strip().upper().split())


# ---------------------------------------------------------------------------
# Current status per entity
# ---------------------------------------------------------------------------

class EntityStatus(BaseModel):
    """
    The status currently applied to one entity.

    ``affected_quantity`` is only set for PRODUCT-scoped statuses; a
    LOCATION-scoped status always covers the whole quantity.
    """

    entity_type = models.CharField(
        _('entity type'), max_length=10,
        choices=EntityType.choices,
    )
    entity_id = models.CharField(_('entity ID'), max_length=80)
    definition = models.ForeignKey(
        StatusDefinition,
        on_delete=models.PROTECT,
        related_name='applications',
        verbose_name=_('status'),
    )
    affected_quantity = models.PositiveIntegerField(_('affected quantity'), null=True, blank=True)
    total_quantity_at_application = models.PositiveIntegerField(
        _('total quantity at application'), null=True, blank=True,
    )
    reason = models.TextField(_('reason'), blank=True)
    notes = models.TextField(_('notes'), blank=True)
    applied_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('applied by'),
    )
    applied_at = models.DateTimeField(_('applied at'))

    class Meta:
        verbose_name = _('entity status')
        verbose_name_plural = _('entity statuses')
        ordering = ['-applied_at']
        constraints = [
            models.UniqueConstraint(
                fields=['entity_type', 'entity_id'],
                name='unique_status_per_entity',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(affected_quantity__isnull=True)
                    | models.Q(
                        affected_quantity__gt=0,
                        affected_quantity__lte=models.F('total_quantity_at_application'),
                    )
                ),
                name='entity_status_affected_quantity_in_range',
            ),
        ]

    def __str__(self):
        return f'{self.entity_type}:{self.entity_id} → {self.definition_id}'


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

class StatusChangeLog(InsertOnlyModel):
    """
    Append-only record of a status transition. A partial removal is the
    entry whose from_status and to_status are the same definition.
    """

    entity_type = models.CharField(
        _('entity type'), max_length=10,
        choices=EntityType.choices,
    )
    entity_id = models.CharField(_('entity ID'), max_length=80)
    from_status = models.ForeignKey(
        StatusDefinition,
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('from status'),
    )
    to_status = models.ForeignKey(
        StatusDefinition,
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('to status'),
    )
    affected_quantity = models.PositiveIntegerField(_('affected quantity'), null=True, blank=True)
    reason = models.TextField(_('reason'), blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('changed by'),
    )
    changed_at = models.DateTimeField(_('changed at'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('status change log')
        verbose_name_plural = _('status change logs')
        ordering = ['-changed_at']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id', 'changed_at'], name='statuslog_entity_idx'),
        ]

    def __str__(self):
        return f'{self.entity_type}:{self.entity_id} {self.from_status_id} → {self.to_status_id}'

    @property
    def is_partial(self) -> bool:
        return self.from_status_id is not None and self.from_status_id == self.to_status_id


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

class EntityNote(BaseModel):

    entity_type = models.CharField(
        _('entity type'), max_length=10,
        choices=EntityType.choices,
    )
    entity_id = models.CharField(_('entity ID'), max_length=80)
    content = models.TextField(
        _('content'), max_length=2000,
        validators=[MinLengthValidator(1)],
    )
    is_pinned = models.BooleanField(_('pinned'), default=False)

    class Meta:
        verbose_name = _('entity note')
        verbose_name_plural = _('entity notes')
        ordering = ['-is_pinned', '-created_at']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='entitynote_entity_idx'),
        ]

    def __str__(self):
        return f'Note on {self.entity_type}:{self.entity_id}'
