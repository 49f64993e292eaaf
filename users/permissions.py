"""
Users — DRF Permission Classes

Role checks for ViewSets and APIViews.

@file users/permissions.py
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import User


class HasRole(BasePermission):
    """
    Checks that the user holds one of the roles listed in
    ``view.required_roles``.

    Usage::

        class MyView(APIView):
            permission_classes = [HasRole]
            required_roles = ['ADMIN', 'MANAGER']
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        required = getattr(view, 'required_roles', [])
        if not required or user.is_superuser:
            return True
        return user.has_role(*required)


class IsManagerOrAdmin(BasePermission):
    """User must be superuser or hold MANAGER / ADMIN."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.has_role(User.RoleChoices.ADMIN, User.RoleChoices.MANAGER)


class IsAdminRole(BasePermission):
    """Shortcut: user must be superuser or hold ADMIN."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.has_role(User.RoleChoices.ADMIN)


class IsAdminOrReadOnly(BasePermission):
    """Any authenticated user may read; writes need ADMIN."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        return user.is_superuser or user.has_role(User.RoleChoices.ADMIN)
