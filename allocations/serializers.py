"""
Allocations — Serializers

@file allocations/serializers.py
"""

from rest_framework import serializers

from .models import BatchAllocation


class AllocationReadSerializer(serializers.ModelSerializer):
    batch_name = serializers.CharField(source='batch.name', read_only=True)
    house_name = serializers.CharField(source='house.name', read_only=True)

    class Meta:
        model = BatchAllocation
        fields = [
            'id', 'batch', 'batch_name', 'house', 'house_name',
            'quantity', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AllocateSerializer(serializers.Serializer):
    batch = serializers.UUIDField()
    house = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class AllocationQuantitySerializer(serializers.Serializer):
    """0 removes the allocation."""
    quantity = serializers.IntegerField(min_value=0)


class TransferSerializer(serializers.Serializer):
    batch = serializers.UUIDField()
    from_house = serializers.UUIDField()
    to_house = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)

    def validate(self, attrs):
        if attrs['from_house'] == attrs['to_house']:
            raise serializers.ValidationError({'to_house': 'Source and destination houses must differ.'})
        return attrs


class TransferResultSerializer(serializers.Serializer):
    source = AllocationReadSerializer()
    destination = AllocationReadSerializer()
    source_removed = serializers.BooleanField()
