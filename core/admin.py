"""
Core — Django Admin Configuration

Read-only AuditLog viewer. Rows are filtered by farm and show which
fields a write touched.

@file core/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from core.models import AuditLog

ACTION_COLORS = {
    AuditLog.ActionChoices.CREATE: '#22c55e',
    AuditLog.ActionChoices.UPDATE: '#3b82f6',
    AuditLog.ActionChoices.DELETE: '#ef4444',
    AuditLog.ActionChoices.SOFT_DELETE: '#f97316',
    AuditLog.ActionChoices.STATUS_CHANGE: '#eab308',
    AuditLog.ActionChoices.TRANSFER: '#8b5cf6',
}


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):

    list_display = (
        'timestamp', 'action_badge', 'model_name', 'object_id',
        'changed_fields', 'actor', 'farm_id',
    )
    list_filter = ('action', 'model_name')
    search_fields = ('object_id', 'farm_id', 'actor__email')
    readonly_fields = [field.name for field in AuditLog._meta.fields]
    date_hierarchy = 'timestamp'
    list_select_related = ('actor',)
    show_full_result_count = False
    list_per_page = 50

    fieldsets = (
        (_('Event'), {
            'fields': ('id', 'action', 'timestamp', 'actor', 'ip_address', 'user_agent'),
        }),
        (_('Target'), {
            'fields': ('farm_id', 'model_name', 'object_id'),
        }),
        (_('Values'), {
            'fields': ('old_values', 'new_values'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Action'))
    def action_badge(self, obj):
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; border-radius:4px;">{}</span>',
            ACTION_COLORS.get(obj.action, '#6b7280'), obj.get_action_display(),
        )

    @admin.display(description=_('Changed'))
    def changed_fields(self, obj):
        old, new = obj.old_values or {}, obj.new_values or {}
        keys = sorted(key for key in old.keys() | new.keys() if old.get(key) != new.get(key))
        return ', '.join(keys) or '-'
