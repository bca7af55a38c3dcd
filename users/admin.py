"""
Users — Django Admin Configuration

Admin panel for farm users. Soft-deleted users excluded by default.

@file users/admin.py
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """User admin with status badges and farm filtering."""

    list_display = (
        'email', 'get_full_name', 'farm', 'role',
        'status_badge', 'is_staff', 'date_joined',
    )
    list_filter = ('status', 'role', 'is_staff', 'is_superuser', 'is_deleted')
    search_fields = ('email', 'first_name', 'last_name', 'farm__name')
    readonly_fields = (
        'id', 'created_at', 'updated_at', 'created_by', 'updated_by',
        'date_joined', 'last_login',
    )
    date_hierarchy = 'created_at'
    list_select_related = ('farm',)
    raw_id_fields = ('farm',)
    show_full_result_count = False
    list_per_page = 30
    ordering = ('-created_at',)

    fieldsets = (
        (None, {
            'fields': ('id', 'email', 'password'),
        }),
        (_('Personal Info'), {
            'fields': ('first_name', 'last_name', 'contact'),
        }),
        (_('Farm'), {
            'fields': ('farm', 'role', 'status'),
        }),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Audit'), {
            'fields': ('date_joined', 'last_login', 'created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',),
        }),
        (_('Soft Delete'), {
            'fields': ('is_deleted', 'deleted_at', 'deleted_by'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'first_name', 'last_name', 'farm', 'role'),
        }),
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if not request.GET.get('is_deleted__exact'):
            qs = qs.filter(is_deleted=False)
        return qs

    @admin.display(description=_('Status'))
    def status_badge(self, obj):
        colors = {
            'ACTIVE': '#22c55e',
            'SUSPENDED': '#f97316',
        }
        color = colors.get(obj.status, '#6b7280')
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            color, obj.get_status_display(),
        )

    @admin.display(description=_('Full Name'))
    def get_full_name(self, obj):
        return obj.get_full_name()
