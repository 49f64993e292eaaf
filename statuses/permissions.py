"""
Statuses — DRF Permission Classes

@file statuses/permissions.py
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

from users.models import User


class IsNoteAuthorOrAdmin(BasePermission):
    """Anyone signed in may read notes; only the author or an ADMIN may change one."""

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        user = request.user
        if user.is_superuser or user.has_role(User.RoleChoices.ADMIN):
            return True
        return obj.created_by_id == user.pk
