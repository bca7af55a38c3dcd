"""
Farms — Django Admin Configuration

@file farms/admin.py
"""

from django.contrib import admin
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from .models import Farm, House


class HouseInline(admin.TabularInline):
    model = House
    extra = 0
    fields = ('name', 'capacity', 'house_type', 'is_monitored')
    show_change_link = True


@admin.register(Farm)
class FarmAdmin(admin.ModelAdmin):
    list_display = ('name', 'location', 'contact', 'created_at')
    search_fields = ('name', 'location')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
    inlines = [HouseInline]
    list_per_page = 30


@admin.register(House)
class HouseAdmin(admin.ModelAdmin):
    list_display = ('name', 'farm', 'house_type', 'capacity', 'occupancy', 'is_monitored')
    list_filter = ('house_type', 'is_monitored')
    search_fields = ('name', 'farm__name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
    list_select_related = ('farm',)
    raw_id_fields = ('farm',)
    list_per_page = 50

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _occupancy=Coalesce(Sum('allocations__quantity'), 0),
        )

    @admin.display(description=_('Occupancy'), ordering='_occupancy')
    def occupancy(self, obj):
        return obj._occupancy

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.allocations.exists():
            return False
        return super().has_delete_permission(request, obj)
