"""
Flocks — Django Admin Configuration

Batches are editable for descriptive fields only; loss counters and the
revision change solely through the ledger service. Bird-count history is
read-only (insert-only model).

@file flocks/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Batch, BirdCountHistory


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = (
        'name', 'farm', 'chicken_type', 'arrival_date', 'original_count',
        'dead', 'culled', 'offlaid', 'current_count', 'is_archived',
    )
    list_filter = ('chicken_type', 'is_archived', 'is_deleted')
    search_fields = ('name', 'supplier', 'farm__name')
    readonly_fields = (
        'id', 'original_count', 'dead', 'culled', 'offlaid', 'revision',
        'created_at', 'updated_at', 'created_by', 'updated_by',
        'is_deleted', 'deleted_at', 'deleted_by',
    )
    list_select_related = ('farm',)
    raw_id_fields = ('farm',)
    date_hierarchy = 'arrival_date'
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('id', 'farm', 'name', 'chicken_type', 'arrival_date', 'age_at_arrival', 'supplier', 'notes'),
        }),
        (_('Counts'), {
            'fields': ('original_count', 'dead', 'culled', 'offlaid', 'revision', 'is_archived'),
        }),
        (_('Audit'), {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',),
        }),
        (_('Soft Delete'), {
            'fields': ('is_deleted', 'deleted_at', 'deleted_by'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(description=_('Current'))
    def current_count(self, obj):
        return obj.current_count

    def get_readonly_fields(self, request, obj=None):
        if obj is None:
            return tuple(f for f in self.readonly_fields if f != 'original_count')
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(BirdCountHistory)
class BirdCountHistoryAdmin(admin.ModelAdmin):
    list_display = (
        'batch', 'batch_revision', 'dead', 'culled', 'offlaid',
        'house', 'actor_name', 'reason', 'created_at',
    )
    list_filter = ('created_at',)
    search_fields = ('batch__name', 'actor_name', 'reason')
    readonly_fields = (
        'id', 'batch', 'farm', 'actor', 'actor_name', 'batch_revision', 'house',
        'dead', 'culled', 'offlaid', 'reason', 'notes',
        'before_state', 'after_state', 'created_at',
    )
    list_select_related = ('batch', 'house')
    show_full_result_count = False
    list_per_page = 50
    date_hierarchy = 'created_at'
    ordering = ('-created_at',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False  # INSERT ONLY

    def has_delete_permission(self, request, obj=None):
        return False  # INSERT ONLY
