"""
Users — Service Layer

Account creation and the actor lookup shared by the other apps.

@file users/services.py
"""

import logging

from django.db import transaction

from core.exceptions import DuplicateResourceError

from .models import User

logger = logging.getLogger('wms')


class UserService:
    """Creation and role management for operator accounts."""

    @staticmethod
    @transaction.atomic
    def create_user(
        *,
        email: str,
        password: str | None = None,
        role: str = User.RoleChoices.STAFF,
        actor=None,
        **extra_fields,
    ) -> User:
        email = User.objects.normalize_email(email)
        if User.objects.filter(email__iexact=email).exists():
            raise DuplicateResourceError(detail=f'Email {email} already registered.')

        user = User(email=email, role=role, **extra_fields)
        user.set_password(password)
        user._current_user = actor
        user.save()

        logger.info('User %s created with role %s', user.pk, role)
        return user

    @staticmethod
    @transaction.atomic
    def change_role(*, user: User, role: str, actor=None) -> User:
        user.role = role
        user._current_user = actor
        user.save(update_fields=['role', 'updated_at'])
        logger.info('User %s role changed to %s', user.pk, role)
        return user


def current_actor(request) -> dict:
    """
    Identity of the caller as ``{id, role}``. Anonymous callers get
    ``{'id': None, 'role': None}``.
    """
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return {'id': None, 'role': None}
    role = User.RoleChoices.ADMIN if user.is_superuser else user.role
    return {'id': str(user.pk), 'role': role}
