"""
Farms — Views

The caller's farm profile and the House Registry. Houses outside the
caller's farm are never visible, so cross-farm lookups are 404s.

@file farms/views.py
"""

from django.db.models import IntegerField, Sum
from django.db.models.functions import Coalesce
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from allocations.serializers import AllocationReadSerializer
from allocations.services import AllocationService
from core.constants import UUID_LOOKUP_REGEX
from users.permissions import CanManageFarm, IsFarmMember, IsFarmOwner

from .models import Farm, House
from .serializers import (
    FarmSerializer,
    HouseOccupancySerializer,
    HouseReadSerializer,
    HouseWriteSerializer,
)
from .services import FarmService, HouseService


class FarmViewSet(viewsets.GenericViewSet):
    """GET/PATCH /v1/farms/me/ — the farm the caller belongs to."""

    permission_classes = [IsFarmMember, IsFarmOwner]
    serializer_class = FarmSerializer

    def get_queryset(self):
        return Farm.objects.filter(pk=self.request.user.farm_id)

    @action(detail=False, methods=['get', 'patch'], url_path='me')
    def me(self, request):
        if request.method == 'GET':
            farm = self.get_queryset().get()
            return Response(FarmSerializer(farm).data)
        serializer = FarmSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        farm = FarmService.update_farm(
            farm_id=request.user.farm_id,
            actor=request.user,
            **serializer.validated_data,
        )
        return Response(FarmSerializer(farm).data)


class HouseViewSet(viewsets.ModelViewSet):
    """
    CRUD for houses of the caller's farm.

    List/retrieve: any farm member.
    Create/update/delete: OWNER or MANAGER.
    """

    permission_classes = [IsFarmMember, CanManageFarm]
    lookup_value_regex = UUID_LOOKUP_REGEX
    filterset_fields = ['house_type', 'is_monitored']
    search_fields = ['name']
    ordering_fields = ['name', 'capacity', 'created_at']
    ordering = ['-created_at']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return (
            House.objects
            .filter(farm_id=self.request.user.farm_id)
            .annotate(occupancy=Coalesce(Sum('allocations__quantity'), 0, output_field=IntegerField()))
        )

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return HouseReadSerializer
        return HouseWriteSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        house = HouseService.create_house(
            farm_id=request.user.farm_id,
            actor=request.user,
            **serializer.validated_data,
        )
        return Response(HouseReadSerializer(house).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        house = HouseService.update_house(
            house_id=instance.pk,
            farm_id=request.user.farm_id,
            actor=request.user,
            **serializer.validated_data,
        )
        return Response(HouseReadSerializer(house).data)

    def destroy(self, request, *args, **kwargs):
        HouseService.delete_house(
            house_id=self.get_object().pk,
            farm_id=request.user.farm_id,
            actor=request.user,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get'], url_path='allocations')
    def allocations(self, request, pk=None):
        """Allocations placed into this house, most recent first."""
        allocations = AllocationService.list_for_house(
            house_id=pk, farm_id=request.user.farm_id,
        )
        return Response(AllocationReadSerializer(allocations, many=True).data)

    @action(detail=True, methods=['get'], url_path='occupancy')
    def occupancy(self, request, pk=None):
        data = HouseService.get_occupancy(house_id=pk, farm_id=request.user.farm_id)
        return Response(HouseOccupancySerializer(data).data)
