"""
Core — Model Tests

Tests for AuditLog and the insert-only base model.

@file core/tests/test_models.py
"""

import pytest

from core.models import AuditLog
from core.services import AuditService
from tests.factories import AuditLogFactory, UserFactory


@pytest.mark.django_db
class TestAuditLog:
    def test_create_audit_log(self):
        user = UserFactory()
        log = AuditService.log(
            actor=user,
            action=AuditLog.ActionChoices.CREATE,
            model_name='TestModel',
            object_id='test-123',
            new_values={'key': 'value'},
        )
        assert log.pk is not None
        assert log.action == 'CREATE'
        assert log.model_name == 'TestModel'

    def test_audit_log_cannot_be_updated(self):
        log = AuditLogFactory()
        log.model_name = 'Other'
        with pytest.raises(NotImplementedError):
            log.save()

    def test_audit_log_cannot_be_deleted(self):
        log = AuditLogFactory()
        with pytest.raises(NotImplementedError):
            log.delete()
        assert AuditLog.objects.filter(pk=log.pk).exists()

    def test_snapshot_serialises_values(self):
        user = UserFactory()
        snapshot = AuditService.snapshot(user, fields=['email', 'role', 'date_joined'])
        assert snapshot['email'] == user.email
        assert snapshot['role'] == 'STAFF'
        assert isinstance(snapshot['date_joined'], str)

    def test_user_create_triggers_audit(self):
        """User creation via signal should produce an audit log."""
        before = AuditLog.objects.count()
        UserFactory()
        after = AuditLog.objects.count()
        assert after > before
