"""
Core — Audit Service

Writes AuditLog entries from any app.

@file core/services.py
"""

import logging
from typing import Any

from django.forms.models import model_to_dict

from core.models import AuditLog

logger = logging.getLogger('wms')


class AuditService:
    """Centralised audit logging for administrative writes."""

    @staticmethod
    def log(
        *,
        actor,
        action: str,
        model_name: str,
        object_id: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        return AuditLog.objects.create(
            actor=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=old_values,
            new_values=new_values,
        )

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        Serialise a model instance to a plain dict suitable for JSON
        storage. DateTimes are ISO-formatted, UUIDs and FKs stringified.
        """
        data = model_to_dict(instance, fields=fields)
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if value is None or isinstance(value, (bool, int, str)):
                cleaned[key] = value
            elif hasattr(value, 'isoformat'):
                cleaned[key] = value.isoformat()
            elif hasattr(value, 'pk'):
                cleaned[key] = str(value.pk)
            else:
                cleaned[key] = str(value)
        return cleaned
