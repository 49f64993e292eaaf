"""
Users — Service Tests

@file users/tests/test_services.py
"""

import pytest
from rest_framework.test import APIRequestFactory

from core.exceptions import DuplicateResourceError
from core.models import AuditLog
from tests.factories import AdminFactory, SuperuserFactory, UserFactory
from users.models import User
from users.services import UserService, current_actor


@pytest.mark.django_db
class TestUserService:
    def test_create_user_records_actor(self):
        admin = AdminFactory()
        user = UserService.create_user(
            email='new@wms.test', password='New2026!!', role=User.RoleChoices.MANAGER, actor=admin,
        )
        log = AuditLog.objects.get(model_name='User', object_id=str(user.pk))
        assert log.action == AuditLog.ActionChoices.CREATE
        assert log.actor == admin
        assert log.new_values['role'] == 'MANAGER'

    def test_duplicate_email_rejected(self):
        UserFactory(email='dup@wms.test')
        with pytest.raises(DuplicateResourceError):
            UserService.create_user(email='DUP@wms.test', password='x')

    def test_change_role_is_audited(self):
        user = UserFactory()
        UserService.change_role(user=user, role=User.RoleChoices.ADMIN, actor=AdminFactory())
        log = AuditLog.objects.filter(
            object_id=str(user.pk), action=AuditLog.ActionChoices.UPDATE,
        ).get()
        assert log.old_values['role'] == 'STAFF'
        assert log.new_values['role'] == 'ADMIN'

    def test_password_change_is_not_audited(self):
        user = UserFactory()
        before = AuditLog.objects.filter(object_id=str(user.pk)).count()
        user.set_password('Other2026!!')
        user.save(update_fields=['password'])
        assert AuditLog.objects.filter(object_id=str(user.pk)).count() == before


@pytest.mark.django_db
class TestCurrentActor:
    def _request(self, user=None):
        request = APIRequestFactory().get('/')
        if user is not None:
            request.user = user
        return request

    def test_actor_for_staff(self):
        user = UserFactory()
        assert current_actor(self._request(user)) == {'id': str(user.pk), 'role': 'STAFF'}

    def test_superuser_reports_admin(self):
        user = SuperuserFactory(role=User.RoleChoices.STAFF)
        assert current_actor(self._request(user))['role'] == 'ADMIN'

    def test_anonymous(self):
        from django.contrib.auth.models import AnonymousUser
        assert current_actor(self._request(AnonymousUser())) == {'id': None, 'role': None}
