"""
Allocations — Views

Allocate, correct and transfer birds between houses. The allocation list
is scoped to the caller's farm and filterable by batch and house.

@file allocations/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.constants import UUID_LOOKUP_REGEX
from users.permissions import CanManageFarm, IsFarmMember

from .models import BatchAllocation
from .serializers import (
    AllocateSerializer,
    AllocationQuantitySerializer,
    AllocationReadSerializer,
    TransferResultSerializer,
    TransferSerializer,
)
from .services import AllocationService, TransferService


class AllocationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    List/retrieve: any farm member.
    Allocate, update quantity, transfer: OWNER or MANAGER.
    """

    permission_classes = [IsFarmMember, CanManageFarm]
    lookup_value_regex = UUID_LOOKUP_REGEX
    filterset_fields = ['batch', 'house']
    ordering_fields = ['created_at', 'quantity']
    ordering = ['-created_at']

    def get_queryset(self):
        return (
            BatchAllocation.objects
            .filter(batch__farm_id=self.request.user.farm_id, batch__is_deleted=False)
            .select_related('batch', 'house')
        )

    def get_serializer_class(self):
        if self.action == 'create':
            return AllocateSerializer
        if self.action == 'partial_update':
            return AllocationQuantitySerializer
        if self.action == 'transfer':
            return TransferSerializer
        return AllocationReadSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allocation, created = AllocationService.allocate(
            batch_id=serializer.validated_data['batch'],
            house_id=serializer.validated_data['house'],
            quantity=serializer.validated_data['quantity'],
            farm_id=request.user.farm_id,
            actor=request.user,
        )
        return Response(
            AllocationReadSerializer(allocation).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def partial_update(self, request, pk=None):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allocation = AllocationService.update_quantity(
            allocation_id=pk,
            quantity=serializer.validated_data['quantity'],
            farm_id=request.user.farm_id,
            actor=request.user,
        )
        if allocation is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(AllocationReadSerializer(allocation).data)

    @action(detail=False, methods=['post'], url_path='transfer')
    def transfer(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = TransferService.transfer(
            batch_id=serializer.validated_data['batch'],
            from_house_id=serializer.validated_data['from_house'],
            to_house_id=serializer.validated_data['to_house'],
            quantity=serializer.validated_data['quantity'],
            farm_id=request.user.farm_id,
            actor=request.user,
        )
        return Response(TransferResultSerializer(result).data)
