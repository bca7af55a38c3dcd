"""
Flocks — Views

Batch records plus the ledger endpoints: bird counts, availability,
history and the batch's allocations. Batches outside the caller's farm
are 404s.

@file flocks/views.py
"""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from allocations.serializers import AllocationReadSerializer
from allocations.services import AllocationService
from core.constants import UUID_LOOKUP_REGEX
from users.permissions import CanManageFarm, IsFarmMember

from .models import Batch
from .serializers import (
    AvailabilitySerializer,
    BatchReadSerializer,
    BatchUpdateSerializer,
    BatchWriteSerializer,
    BirdCountHistorySerializer,
    HistoryQuerySerializer,
    LossDeltaSerializer,
)
from .services import (
    BatchLedgerService,
    BatchService,
    BirdCountHistoryService,
)


class BatchViewSet(viewsets.ModelViewSet):
    """
    CRUD and ledger actions for the caller's batches.

    List/retrieve/history/availability: any farm member.
    Bird counts: any farm member (workers record daily losses).
    Create/update/archive/delete: OWNER or MANAGER.
    """

    permission_classes = [IsFarmMember, CanManageFarm]
    lookup_value_regex = UUID_LOOKUP_REGEX
    member_actions = ('bird_counts',)
    filterset_fields = ['chicken_type', 'is_archived']
    search_fields = ['name', 'supplier']
    ordering_fields = ['name', 'arrival_date', 'original_count', 'created_at']
    ordering = ['-created_at']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        include = self.request.query_params.get('include_allocations', '').lower() in ('1', 'true', 'yes')
        return BatchService.list_batches(
            farm_id=self.request.user.farm_id,
            include_allocations=include and self.action == 'list',
        )

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return BatchReadSerializer
        if self.action == 'partial_update':
            return BatchUpdateSerializer
        if self.action == 'bird_counts':
            return LossDeltaSerializer
        return BatchWriteSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        batch = BatchService.create_batch(
            farm_id=request.user.farm_id,
            actor=request.user,
            **serializer.validated_data,
        )
        return Response(BatchReadSerializer(batch).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        batch = BatchService.update_batch(
            batch_id=instance.pk,
            farm_id=request.user.farm_id,
            actor=request.user,
            **serializer.validated_data,
        )
        return Response(BatchReadSerializer(batch).data)

    def destroy(self, request, *args, **kwargs):
        BatchService.delete_batch(
            batch_id=self.get_object().pk,
            farm_id=request.user.farm_id,
            actor=request.user,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='bird-counts')
    def bird_counts(self, request, pk=None):
        """Apply a loss delta and return the batch, the applied changes and the history id."""
        serializer = LossDeltaSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = BatchLedgerService.apply_loss_delta(
            batch_id=pk,
            farm_id=request.user.farm_id,
            deltas=serializer.deltas(),
            actor=request.user,
            reason=serializer.validated_data['reason'],
            notes=serializer.validated_data['notes'],
            house_id=serializer.validated_data['house'],
        )
        return Response({
            'success': True,
            'data': {
                'message': 'Bird counts updated successfully.',
                'batch': BatchReadSerializer(result.batch).data,
                'changes': result.changes,
                'history_id': str(result.history_id),
            },
        })

    @action(detail=True, methods=['get'], url_path='availability')
    def availability(self, request, pk=None):
        data = BatchLedgerService.get_availability(batch_id=pk, farm_id=request.user.farm_id)
        return Response(AvailabilitySerializer(data).data)

    @action(detail=True, methods=['get'], url_path='history')
    def history(self, request, pk=None):
        """Bird-count history, most recent first (``?limit=``, default 50)."""
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        entries = BirdCountHistoryService.history(
            batch_id=pk,
            farm_id=request.user.farm_id,
            limit=query.validated_data.get('limit'),
        )
        return Response(BirdCountHistorySerializer(entries, many=True).data)

    @action(detail=True, methods=['get'], url_path='allocations')
    def allocations(self, request, pk=None):
        allocations = AllocationService.list_for_batch(batch_id=pk, farm_id=request.user.farm_id)
        return Response(AllocationReadSerializer(allocations, many=True).data)

    @action(detail=True, methods=['post'], url_path='archive')
    def archive(self, request, pk=None):
        batch = BatchService.set_archived(
            batch_id=pk, farm_id=request.user.farm_id, archived=True, actor=request.user,
        )
        return Response(BatchReadSerializer(batch).data)

    @action(detail=True, methods=['post'], url_path='unarchive')
    def unarchive(self, request, pk=None):
        batch = BatchService.set_archived(
            batch_id=pk, farm_id=request.user.farm_id, archived=False, actor=request.user,
        )
        return Response(BatchReadSerializer(batch).data)
