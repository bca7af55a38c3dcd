"""
Farms — Serializers

@file farms/serializers.py
"""

from rest_framework import serializers

from .models import Farm, House
from .services import HouseService


class FarmSerializer(serializers.ModelSerializer):
    class Meta:
        model = Farm
        fields = ['id', 'name', 'location', 'contact', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class HouseReadSerializer(serializers.ModelSerializer):
    """House with its occupancy, annotated by the queryset when listing."""

    occupancy = serializers.SerializerMethodField()

    class Meta:
        model = House
        fields = [
            'id', 'farm', 'name', 'capacity', 'house_type', 'is_monitored',
            'occupancy', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_occupancy(self, obj) -> int:
        annotated = getattr(obj, 'occupancy', None)
        if annotated is not None:
            return annotated
        return HouseService.occupancy_of(obj)


class HouseWriteSerializer(serializers.ModelSerializer):
    capacity = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    class Meta:
        model = House
        fields = ['name', 'capacity', 'house_type', 'is_monitored']


class HouseOccupancySerializer(serializers.Serializer):
    house_id = serializers.UUIDField()
    capacity = serializers.IntegerField(allow_null=True)
    occupancy = serializers.IntegerField()
    available_space = serializers.IntegerField(allow_null=True)
