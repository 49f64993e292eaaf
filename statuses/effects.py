"""
Statuses — Effects, Capabilities & Quantity Breakdown

Pure functions and tables shared by the status tracker, the stock
listings and the preflight validator. Nothing here touches the database.

Every movement check goes through ``EFFECT_CAPABILITIES``; the
``classify`` buckets are what operators see and what decides between
STATUS_RESTRICTED and STATUS_EFFECT_MISMATCH.

@file statuses/effects.py
"""

from dataclasses import dataclass
from typing import NamedTuple

from django.core.exceptions import ImproperlyConfigured
from django.db import models
from django.utils.translation import gettext_lazy as _


class Effect(models.TextChoices):
    TRANSACTIONS_ALLOWED = 'TRANSACTIONS_ALLOWED', _('Transactions allowed')
    TRANSACTIONS_PROHIBITED = 'TRANSACTIONS_PROHIBITED', _('Transactions prohibited')
    CLOSED = 'CLOSED', _('Closed')
    INBOUND_ONLY = 'INBOUND_ONLY', _('Inbound only')
    OUTBOUND_ONLY = 'OUTBOUND_ONLY', _('Outbound only')
    AUDIT_ONLY = 'AUDIT_ONLY', _('Audit only')
    CUSTOM = 'CUSTOM', _('Custom')


class StatusType(models.TextChoices):
    """PRODUCT statuses cover part of a stock record; LOCATION statuses a whole location or lot."""

    PRODUCT = 'PRODUCT', _('Product')
    LOCATION = 'LOCATION', _('Location')


class Operation(models.TextChoices):
    INBOUND = 'INBOUND', _('Inbound')
    OUTBOUND = 'OUTBOUND', _('Outbound')
    TRANSFER = 'TRANSFER', _('Transfer')
    AUDIT = 'AUDIT', _('Audit')


# ---------------------------------------------------------------------------
# Capability table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Capabilities:
    inbound: bool
    outbound: bool
    transfer: bool
    audit: bool

    def allows(self, operation: str) -> bool:
        return getattr(self, Operation(operation).value.lower())


ALL = Capabilities(inbound=True, outbound=True, transfer=True, audit=True)
NONE = Capabilities(inbound=False, outbound=False, transfer=False, audit=False)

EFFECT_CAPABILITIES: dict[str, Capabilities] = {
    Effect.TRANSACTIONS_ALLOWED: ALL,
    Effect.TRANSACTIONS_PROHIBITED: NONE,
    Effect.CLOSED: NONE,
    Effect.INBOUND_ONLY: Capabilities(inbound=True, outbound=False, transfer=False, audit=False),
    Effect.OUTBOUND_ONLY: Capabilities(inbound=False, outbound=True, transfer=False, audit=False),
    Effect.AUDIT_ONLY: Capabilities(inbound=False, outbound=False, transfer=False, audit=True),
    # Custom rules are enforced outside this service.
    Effect.CUSTOM: ALL,
}

_missing = set(Effect.values) - set(EFFECT_CAPABILITIES)
if _missing:
    raise ImproperlyConfigured(f'No capabilities declared for effects: {sorted(_missing)}')

RESTRICTED_EFFECTS = frozenset({Effect.TRANSACTIONS_PROHIBITED, Effect.CLOSED})
WARNING_EFFECTS = frozenset({Effect.INBOUND_ONLY, Effect.OUTBOUND_ONLY, Effect.AUDIT_ONLY})


def capabilities_for(effect: str) -> Capabilities:
    return EFFECT_CAPABILITIES[Effect(effect)]


# ---------------------------------------------------------------------------
# Classification & quantity breakdown
# ---------------------------------------------------------------------------

class Classification(NamedTuple):
    restricted: bool
    warning: bool
    normal: bool


class QuantityBreakdown(NamedTuple):
    total: int
    normal: int
    affected: int


def _effect_of(status) -> str | None:
    """Accepts an EntityStatus, a StatusDefinition or None."""
    if status is None:
        return None
    definition = getattr(status, 'definition', status)
    return definition.effect


def classify(status) -> Classification:
    effect = _effect_of(status)
    restricted = effect in RESTRICTED_EFFECTS
    warning = effect in WARNING_EFFECTS
    return Classification(restricted=restricted, warning=warning, normal=not (restricted or warning))


def quantity_breakdown(total_quantity: int, status) -> QuantityBreakdown:
    """
    Split ``total_quantity`` into the part covered by ``status`` and the
    unrestricted remainder. A status without an affected quantity
    covers everything.
    """
    if status is None:
        affected = 0
    elif status.affected_quantity is None:
        affected = total_quantity
    else:
        affected = status.affected_quantity
    return QuantityBreakdown(
        total=total_quantity,
        normal=max(0, total_quantity - affected),
        affected=affected,
    )
