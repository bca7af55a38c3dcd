"""
Allocations — Django Admin Configuration

Read-only: allocations change only through the allocation service so
both capacity ceilings are always checked.

@file allocations/admin.py
"""

from django.contrib import admin

from .models import BatchAllocation


@admin.register(BatchAllocation)
class BatchAllocationAdmin(admin.ModelAdmin):
    list_display = ('batch', 'house', 'quantity', 'created_at', 'updated_at')
    list_filter = ('house__farm',)
    search_fields = ('batch__name', 'house__name')
    readonly_fields = ('id', 'batch', 'house', 'quantity', 'created_at', 'updated_at', 'created_by', 'updated_by')
    list_select_related = ('batch', 'house')
    list_per_page = 50
    ordering = ('-created_at',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
