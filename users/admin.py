"""
Users — Django Admin Configuration

Admin panel for operator accounts with a role badge.

@file users/admin.py
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'get_full_name', 'role_badge', 'is_active', 'is_staff', 'date_joined')
    list_filter = ('role', 'is_active', 'is_staff', 'is_superuser')
    search_fields = ('email', 'first_name', 'last_name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'date_joined', 'last_login')
    date_hierarchy = 'created_at'
    list_per_page = 30
    ordering = ('-created_at',)

    fieldsets = (
        (None, {
            'fields': ('id', 'email', 'password'),
        }),
        (_('Personal Info'), {
            'fields': ('first_name', 'last_name'),
        }),
        (_('Permissions'), {
            'fields': ('role', 'is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Audit'), {
            'fields': ('date_joined', 'last_login', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'role', 'first_name', 'last_name'),
        }),
    )

    @admin.display(description=_('Role'))
    def role_badge(self, obj):
        colors = {
            'ADMIN': '#ef4444',
            'MANAGER': '#3b82f6',
            'STAFF': '#6b7280',
        }
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            colors.get(obj.role, '#6b7280'), obj.get_role_display(),
        )

    @admin.display(description=_('Full Name'))
    def get_full_name(self, obj):
        return obj.get_full_name()
