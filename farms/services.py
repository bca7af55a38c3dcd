"""
Farms — Service Layer

Farm profile updates and the House Registry: create, update (capacity
can never drop below what the house already holds), delete (refused
while allocations reference the house) and occupancy reads.

@file farms/services.py
"""

import logging

from django.db import transaction
from django.db.models import Sum

from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_DELETE,
    AUDIT_ACTION_UPDATE,
)
from core.exceptions import (
    CapacityExceededError,
    ConstraintViolation,
    DuplicateResourceError,
    ResourceNotFoundError,
)
from core.services import AuditService

from .models import Farm, House

logger = logging.getLogger('farmtrack')

HOUSE_FIELDS = ['name', 'capacity', 'house_type', 'is_monitored']


class FarmService:

    @staticmethod
    @transaction.atomic
    def update_farm(*, farm_id, actor=None, **fields) -> Farm:
        try:
            farm = Farm.objects.select_for_update().get(pk=farm_id)
        except Farm.DoesNotExist:
            raise ResourceNotFoundError()

        old_snapshot = AuditService.snapshot(farm, fields=['name', 'location', 'contact'])
        for field in ('name', 'location', 'contact'):
            if field in fields:
                setattr(farm, field, fields[field])
        farm.updated_by = actor
        farm.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='Farm',
            object_id=str(farm.pk),
            farm_id=farm.pk,
            old_values=old_snapshot,
            new_values=AuditService.snapshot(farm, fields=['name', 'location', 'contact']),
        )
        return farm


class HouseService:
    """House Registry. Houses are always resolved inside the caller's farm."""

    @staticmethod
    def get_house(*, house_id, farm_id, for_update: bool = False) -> House:
        qs = House.objects.filter(farm_id=farm_id)
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=house_id)
        except House.DoesNotExist:
            raise ResourceNotFoundError(detail='House not found.')

    @staticmethod
    def occupancy_of(house: House) -> int:
        """Total birds allocated into the house across all batches."""
        return house.allocations.aggregate(total=Sum('quantity'))['total'] or 0

    @staticmethod
    def _ensure_name_free(*, farm_id, name: str, exclude_pk=None) -> None:
        qs = House.objects.filter(farm_id=farm_id, name=name)
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        if qs.exists():
            raise DuplicateResourceError(detail=f'A house named "{name}" already exists on this farm.')

    @staticmethod
    @transaction.atomic
    def create_house(*, farm_id, actor=None, **fields) -> House:
        HouseService._ensure_name_free(farm_id=farm_id, name=fields.get('name', ''))
        house = House(farm_id=farm_id, **fields)
        house.full_clean()
        house.created_by = actor
        house.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='House',
            object_id=str(house.pk),
            farm_id=farm_id,
            new_values=AuditService.snapshot(house, fields=HOUSE_FIELDS),
        )
        logger.info('House %s created on farm %s (capacity=%s).', house.pk, farm_id, house.capacity)
        return house

    @staticmethod
    @transaction.atomic
    def update_house(*, house_id, farm_id, actor=None, **fields) -> House:
        """
        Update descriptive fields and capacity. The house row lock blocks
        concurrent allocations into it while the new capacity is checked.
        """
        house = HouseService.get_house(house_id=house_id, farm_id=farm_id, for_update=True)

        if 'name' in fields and fields['name'] != house.name:
            HouseService._ensure_name_free(farm_id=farm_id, name=fields['name'], exclude_pk=house.pk)

        if 'capacity' in fields and fields['capacity'] is not None:
            occupancy = HouseService.occupancy_of(house)
            if fields['capacity'] < occupancy:
                raise CapacityExceededError(
                    detail=(
                        f'Capacity {fields["capacity"]} is below current occupancy '
                        f'{occupancy} of house {house.name}.'
                    ),
                    capacity=fields['capacity'],
                    occupancy=occupancy,
                )

        old_snapshot = AuditService.snapshot(house, fields=HOUSE_FIELDS)
        for field in HOUSE_FIELDS:
            if field in fields:
                setattr(house, field, fields[field])
        house.updated_by = actor
        house.full_clean()
        house.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='House',
            object_id=str(house.pk),
            farm_id=farm_id,
            old_values=old_snapshot,
            new_values=AuditService.snapshot(house, fields=HOUSE_FIELDS),
        )
        return house

    @staticmethod
    @transaction.atomic
    def delete_house(*, house_id, farm_id, actor=None) -> None:
        house = HouseService.get_house(house_id=house_id, farm_id=farm_id, for_update=True)

        allocated = HouseService.occupancy_of(house)
        if house.allocations.exists():
            raise ConstraintViolation(
                detail=f'House {house.name} still holds {allocated} birds; transfer them out first.',
                occupancy=allocated,
            )

        old_snapshot = AuditService.snapshot(house, fields=HOUSE_FIELDS)
        house_pk = house.pk
        house.delete()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_DELETE,
            model_name='House',
            object_id=str(house_pk),
            farm_id=farm_id,
            old_values=old_snapshot,
        )
        logger.info('House %s deleted from farm %s.', house_pk, farm_id)

    @staticmethod
    def get_occupancy(*, house_id, farm_id) -> dict:
        house = HouseService.get_house(house_id=house_id, farm_id=farm_id)
        occupancy = HouseService.occupancy_of(house)
        return {
            'house_id': house.pk,
            'capacity': house.capacity,
            'occupancy': occupancy,
            'available_space': None if house.capacity is None else house.capacity - occupancy,
        }
