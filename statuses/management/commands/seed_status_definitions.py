"""
Statuses — Management Command: seed_status_definitions

Populates the StatusDefinition table with the standard warehouse statuses,
using the standard color palette.

Usage::

    python manage.py seed_status_definitions

Idempotent: safe to re-run (uses get_or_create on code).

@file statuses/management/commands/seed_status_definitions.py
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from statuses.effects import Effect, StatusType
from statuses.models import StatusDefinition
from statuses.services import StatusRegistryService


DEFAULT_DEFINITIONS = [
    {'code': 'AVAILABLE', 'name': 'Available', 'effect': Effect.TRANSACTIONS_ALLOWED,
     'status_type': StatusType.PRODUCT, 'color': '#22c55e', 'bg_color': '#dcfce7', 'text_color': '#166534',
     'is_default': True},
    {'code': 'ON_HOLD', 'name': 'On hold', 'effect': Effect.TRANSACTIONS_PROHIBITED,
     'status_type': StatusType.PRODUCT, 'color': '#eab308', 'bg_color': '#fef9c3', 'text_color': '#854d0e'},
    {'code': 'DAMAGED', 'name': 'Damaged', 'effect': Effect.OUTBOUND_ONLY,
     'status_type': StatusType.PRODUCT, 'color': '#f97316', 'bg_color': '#ffedd5', 'text_color': '#9a3412'},
    {'code': 'COUNTING', 'name': 'Counting', 'effect': Effect.AUDIT_ONLY,
     'status_type': StatusType.PRODUCT, 'color': '#06b6d4', 'bg_color': '#cffafe', 'text_color': '#155e75'},
    {'code': 'RECEIVING', 'name': 'Receiving', 'effect': Effect.INBOUND_ONLY,
     'status_type': StatusType.LOCATION, 'color': '#3b82f6', 'bg_color': '#dbeafe', 'text_color': '#1e40af'},
    {'code': 'CLOSED', 'name': 'Closed', 'effect': Effect.CLOSED,
     'status_type': StatusType.LOCATION, 'color': '#ef4444', 'bg_color': '#fee2e2', 'text_color': '#991b1b'},
]


class Command(BaseCommand):
    help = 'Seed the default status definitions.'

    @transaction.atomic
    def handle(self, *args, **options):
        created_count = 0
        for position, data in enumerate(DEFAULT_DEFINITIONS):
            defaults = {k: v for k, v in data.items() if k != 'code'}
            defaults['sort_order'] = position * 10
            if defaults.get('is_default') and StatusDefinition.objects.filter(is_default=True).exists():
                defaults['is_default'] = False
            _, created = StatusDefinition.objects.get_or_create(code=data['code'], defaults=defaults)
            if created:
                created_count += 1
                self.stdout.write(f'  Created status: {data["code"]}')
            else:
                self.stdout.write(f'  Exists: {data["code"]}')

        StatusRegistryService.invalidate_cache()
        self.stdout.write(self.style.SUCCESS(
            f'Done. {created_count} new statuses created, '
            f'{len(DEFAULT_DEFINITIONS) - created_count} already existed.'
        ))
