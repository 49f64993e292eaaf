"""
Users — Models

Custom User model with UUID PK, email-based auth and a single
warehouse role (ADMIN, MANAGER, STAFF) used by the API permission
classes.

@file users/models.py
"""

import uuid

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import TimestampMixin
from users.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin, TimestampMixin):
    """
    Warehouse operator account.

    ``role`` drives authorization at the API boundary only; the stock
    and status services receive the user purely to stamp actor fields.
    """

    class RoleChoices(models.TextChoices):
        ADMIN = 'ADMIN', _('Administrator')
        MANAGER = 'MANAGER', _('Manager')
        STAFF = 'STAFF', _('Staff')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(_('email'), unique=True)
    first_name = models.CharField(_('first name'), max_length=100, blank=True)
    last_name = models.CharField(_('last name'), max_length=100, blank=True)

    role = models.CharField(
        _('role'), max_length=10,
        choices=RoleChoices.choices, default=RoleChoices.STAFF,
        db_index=True,
    )

    is_staff = models.BooleanField(_('staff status'), default=False)
    is_active = models.BooleanField(_('active'), default=True)
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role', 'is_active']),
        ]

    def __str__(self):
        return self.get_full_name()

    def get_full_name(self):
        full = f'{self.first_name} {self.last_name}'.strip()
        return full or self.email

    def get_short_name(self):
        return self.first_name or self.email

    def has_role(self, *role_names: str) -> bool:
        return self.role in role_names
