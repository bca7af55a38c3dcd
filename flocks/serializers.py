"""
Flocks — Serializers

Batch read/write serializers, the loss-delta input and the bird-count
history representation.

@file flocks/serializers.py
"""

from django.conf import settings
from rest_framework import serializers

from .models import Batch, BirdCountHistory


class BatchReadSerializer(serializers.ModelSerializer):
    """
    Batch with derived counts. ``allocated_count`` / ``unallocated_count``
    are present only when the queryset was annotated with allocation totals.
    """

    current_count = serializers.IntegerField(read_only=True)
    age = serializers.IntegerField(read_only=True)
    allocated_count = serializers.SerializerMethodField()
    unallocated_count = serializers.SerializerMethodField()

    class Meta:
        model = Batch
        fields = [
            'id', 'farm', 'name', 'arrival_date', 'age_at_arrival', 'age',
            'chicken_type', 'original_count', 'supplier', 'notes',
            'dead', 'culled', 'offlaid', 'current_count', 'revision',
            'allocated_count', 'unallocated_count',
            'is_archived', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_allocated_count(self, obj):
        return getattr(obj, 'allocated_count', None)

    def get_unallocated_count(self, obj):
        return getattr(obj, 'unallocated_count', None)


class BatchWriteSerializer(serializers.ModelSerializer):
    age_at_arrival = serializers.IntegerField(min_value=0, max_value=365, required=False)
    original_count = serializers.IntegerField(min_value=1, max_value=1_000_000)

    class Meta:
        model = Batch
        fields = [
            'name', 'arrival_date', 'age_at_arrival', 'chicken_type',
            'original_count', 'supplier', 'notes',
        ]


class BatchUpdateSerializer(serializers.ModelSerializer):
    """original_count and the loss counters are never writable through an update."""

    age_at_arrival = serializers.IntegerField(min_value=0, max_value=365, required=False)

    class Meta:
        model = Batch
        fields = ['name', 'arrival_date', 'age_at_arrival', 'chicken_type', 'supplier', 'notes']


class LossDeltaSerializer(serializers.Serializer):
    dead = serializers.IntegerField(min_value=0, required=False)
    culled = serializers.IntegerField(min_value=0, required=False)
    offlaid = serializers.IntegerField(min_value=0, required=False)
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    house = serializers.UUIDField(required=False, allow_null=True, default=None)

    def deltas(self) -> dict:
        return {
            name: self.validated_data[name]
            for name in ('dead', 'culled', 'offlaid')
            if name in self.validated_data
        }


class AvailabilitySerializer(serializers.Serializer):
    batch_id = serializers.UUIDField()
    original_count = serializers.IntegerField()
    dead = serializers.IntegerField()
    culled = serializers.IntegerField()
    offlaid = serializers.IntegerField()
    current_count = serializers.IntegerField()
    allocated_count = serializers.IntegerField()
    unallocated_count = serializers.IntegerField()


class HistoryQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, required=False)

    def validate_limit(self, value):
        return min(value, settings.BIRD_COUNT_HISTORY_MAX_LIMIT)


class BirdCountHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = BirdCountHistory
        fields = [
            'id', 'batch', 'farm', 'actor', 'actor_name', 'batch_revision',
            'house', 'dead', 'culled', 'offlaid', 'reason', 'notes',
            'before_state', 'after_state', 'created_at',
        ]
        read_only_fields = fields
