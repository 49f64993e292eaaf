"""
Core — Base Models & Audit Infrastructure

Reusable abstract models for timestamps, actor stamps and insert-only
history tables, plus the AuditLog model that records administrative
writes (status definitions, audit adjustments).

@file core/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


# ---------------------------------------------------------------------------
# Abstract base models (mixins)
# ---------------------------------------------------------------------------

class TimestampMixin(models.Model):
    """Adds created_at / updated_at to any model."""

    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )
    updated_at = models.DateTimeField(
        _('updated at'), auto_now=True,
    )

    class Meta:
        abstract = True


class AuditFieldsMixin(models.Model):
    """Adds created_by / updated_by foreign keys for actor tracking."""

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('created by'),
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('updated by'),
    )

    class Meta:
        abstract = True


class BaseModel(TimestampMixin, AuditFieldsMixin):
    """
    Standard base for mutable models.
    UUID PK + timestamps + actor audit fields.
    """

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False,
    )

    class Meta:
        abstract = True


class InsertOnlyModel(models.Model):
    """
    Base for append-only history tables. Rows can be created but never
    updated or deleted through the ORM instance API.
    """

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False,
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError(f'{type(self).__name__} is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError(f'{type(self).__name__} records cannot be deleted.')


# ---------------------------------------------------------------------------
# Audit Log — immutable record of administrative writes
# ---------------------------------------------------------------------------

class AuditLog(InsertOnlyModel):
    """
    Immutable audit trail for administrative changes that have no
    dedicated history table of their own.

    Stores old and new values as JSON for diffing.
    """

    class ActionChoices(models.TextChoices):
        CREATE = 'CREATE', _('Create')
        UPDATE = 'UPDATE', _('Update')
        DEACTIVATE = 'DEACTIVATE', _('Deactivate')
        ADJUST = 'ADJUST', _('Adjust')

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='audit_logs',
        verbose_name=_('actor'),
    )
    action = models.CharField(
        _('action'), max_length=20,
        choices=ActionChoices.choices, db_index=True,
    )
    model_name = models.CharField(_('model'), max_length=100, db_index=True)
    object_id = models.CharField(_('object ID'), max_length=80, db_index=True)

    old_values = models.JSONField(_('old values'), null=True, blank=True)
    new_values = models.JSONField(_('new values'), null=True, blank=True)

    timestamp = models.DateTimeField(_('timestamp'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('audit log')
        verbose_name_plural = _('audit logs')
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['model_name', 'object_id']),
            models.Index(fields=['actor', 'timestamp']),
        ]

    def __str__(self):
        return f'{self.action} {self.model_name}:{self.object_id} by {self.actor_id}'
