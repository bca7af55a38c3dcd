"""
Allocations — Service Layer

Placement of a batch's birds into houses, and transfers between houses.

Two ceilings guard every write:
  * per batch: sum of its allocations <= batch current count
  * per house: sum of all allocations into it <= house capacity (if set)

Writes serialize on row locks taken in a fixed order (batch row first,
then house rows by primary key) so the checks above and the write that
follows see the same state. Debits are conditional updates on top of the
lock. Transfers run debit and credit in one transaction.

@file allocations/services.py
"""

import logging
from dataclasses import dataclass

from django.db import DatabaseError, OperationalError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from core.concurrency import lock_rows, retry_on_conflict
from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_DELETE,
    AUDIT_ACTION_TRANSFER,
    AUDIT_ACTION_UPDATE,
)
from core.exceptions import (
    CapacityExceededError,
    ConstraintViolation,
    InsufficientBirdsError,
    InsufficientUnallocatedError,
    InvalidInputError,
    ResourceNotFoundError,
    TransferAbortedError,
)
from core.services import AuditService
from farms.models import House
from farms.services import HouseService
from flocks.models import Batch

from .models import BatchAllocation

logger = logging.getLogger('farmtrack')


def _require_positive_int(value, field: str, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(detail=f'{field} must be an integer.')
    if value < 0 or (value == 0 and not allow_zero):
        bound = 'zero or more' if allow_zero else 'at least 1'
        raise InvalidInputError(detail=f'{field} must be {bound}; got {value}.')
    return value


@dataclass
class TransferResult:
    source: BatchAllocation
    destination: BatchAllocation
    source_removed: bool


class AllocationService:
    """Allocation Table: allocate, correct quantities, list, debit and credit."""

    # -- reads ---------------------------------------------------------------

    @staticmethod
    def allocated_count(batch_id) -> int:
        total = BatchAllocation.objects.filter(batch_id=batch_id).aggregate(total=Sum('quantity'))['total']
        return total or 0

    @staticmethod
    def house_occupancy(house_id, exclude_allocation_id=None) -> int:
        qs = BatchAllocation.objects.filter(house_id=house_id)
        if exclude_allocation_id is not None:
            qs = qs.exclude(pk=exclude_allocation_id)
        return qs.aggregate(total=Sum('quantity'))['total'] or 0

    @staticmethod
    def list_for_batch(*, batch_id, farm_id):
        batch = Batch.objects.get_for_farm(batch_id=batch_id, farm_id=farm_id)
        return (
            BatchAllocation.objects
            .filter(batch=batch)
            .select_related('batch', 'house')
            .order_by('-created_at', '-id')
        )

    @staticmethod
    def list_for_house(*, house_id, farm_id):
        house = HouseService.get_house(house_id=house_id, farm_id=farm_id)
        return (
            BatchAllocation.objects
            .filter(house=house, batch__is_deleted=False)
            .select_related('batch', 'house')
            .order_by('-created_at', '-id')
        )

    # -- checks --------------------------------------------------------------

    @staticmethod
    def _check_unallocated(batch: Batch, requested: int, released: int = 0) -> None:
        """``released`` birds are already counted in the batch's allocations and get replaced."""
        unallocated = batch.current_count - AllocationService.allocated_count(batch.pk) + released
        if requested > unallocated:
            raise InsufficientUnallocatedError(
                detail=f'Requested {requested}, only {unallocated} unallocated in batch {batch.name}.',
                requested=requested,
                unallocated=unallocated,
            )

    @staticmethod
    def _check_capacity(house: House, incoming: int, exclude_allocation_id=None) -> None:
        if house.capacity is None:
            return
        occupancy = AllocationService.house_occupancy(house.pk, exclude_allocation_id)
        if occupancy + incoming > house.capacity:
            raise CapacityExceededError(
                detail=(
                    f'House {house.name} holds {occupancy} of {house.capacity}; '
                    f'requested {incoming}, only {house.capacity - occupancy} space available.'
                ),
                requested=incoming,
                capacity=house.capacity,
                occupancy=occupancy,
                available_space=house.capacity - occupancy,
            )

    # -- primitive writes (caller holds the batch lock) ----------------------

    @staticmethod
    def credit(*, batch: Batch, house: House, quantity: int, actor=None) -> tuple[BatchAllocation, bool]:
        """Add ``quantity`` to the (batch, house) allocation, creating it if needed."""
        existing = (
            BatchAllocation.objects
            .select_for_update()
            .filter(batch=batch, house=house)
            .first()
        )
        if existing is None:
            allocation = BatchAllocation.objects.create(
                batch=batch, house=house, quantity=quantity,
                created_by=actor, updated_by=actor,
            )
            return allocation, True

        BatchAllocation.objects.filter(pk=existing.pk).update(
            quantity=F('quantity') + quantity,
            updated_by=actor,
            updated_at=timezone.now(),
        )
        existing.refresh_from_db(fields=['quantity', 'updated_by', 'updated_at'])
        return existing, False

    @staticmethod
    def debit(*, allocation: BatchAllocation, quantity: int, actor=None) -> int:
        """
        Remove ``quantity`` birds from a locked allocation. Returns what is
        left; a drained allocation is deleted and 0 is returned.
        """
        if quantity > allocation.quantity:
            raise InsufficientBirdsError(
                detail=f'Requested {quantity}, only {allocation.quantity} in the source house.',
                requested=quantity,
                available=allocation.quantity,
            )

        if quantity == allocation.quantity:
            deleted, _ = BatchAllocation.objects.filter(pk=allocation.pk, quantity=quantity).delete()
            changed = deleted > 0
        else:
            changed = BatchAllocation.objects.filter(
                pk=allocation.pk, quantity__gte=quantity,
            ).update(
                quantity=F('quantity') - quantity,
                updated_by=actor,
                updated_at=timezone.now(),
            ) > 0

        if not changed:
            raise InsufficientBirdsError(
                detail='The source allocation changed while it was being debited.',
                requested=quantity,
            )
        allocation.quantity -= quantity
        return allocation.quantity

    # -- operations ----------------------------------------------------------

    @staticmethod
    @retry_on_conflict()
    def allocate(*, batch_id, house_id, quantity, farm_id, actor=None) -> tuple[BatchAllocation, bool]:
        """
        Place ``quantity`` birds of a batch into a house. Returns the
        allocation and whether it was created.
        """
        quantity = _require_positive_int(quantity, 'quantity')

        with transaction.atomic():
            batch = Batch.objects.get_for_farm(batch_id=batch_id, farm_id=farm_id, for_update=True)
            if batch.is_archived:
                raise ConstraintViolation(detail=f'Batch {batch.name} is archived and cannot be allocated.')
            house = HouseService.get_house(house_id=house_id, farm_id=farm_id, for_update=True)

            AllocationService._check_unallocated(batch, quantity)
            AllocationService._check_capacity(house, quantity)

            allocation, created = AllocationService.credit(
                batch=batch, house=house, quantity=quantity, actor=actor,
            )

            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_CREATE if created else AUDIT_ACTION_UPDATE,
                model_name='BatchAllocation',
                object_id=str(allocation.pk),
                farm_id=farm_id,
                old_values=None if created else {'quantity': allocation.quantity - quantity},
                new_values={
                    'batch': str(batch.pk),
                    'house': str(house.pk),
                    'quantity': allocation.quantity,
                    'allocated': quantity,
                },
            )

        logger.info(
            'Allocated %d birds of batch %s to house %s (now %d).',
            quantity, batch.pk, house.pk, allocation.quantity,
        )
        return allocation, created

    @staticmethod
    @retry_on_conflict()
    def update_quantity(*, allocation_id, quantity, farm_id, actor=None) -> BatchAllocation | None:
        """
        Administrative correction of an allocation. Setting 0 removes the
        allocation and returns None.
        """
        quantity = _require_positive_int(quantity, 'quantity', allow_zero=True)

        with transaction.atomic():
            try:
                target = BatchAllocation.objects.get(
                    pk=allocation_id,
                    batch__farm_id=farm_id,
                    batch__is_deleted=False,
                )
            except BatchAllocation.DoesNotExist:
                raise ResourceNotFoundError(detail='Allocation not found.')

            batch = Batch.objects.get_for_farm(batch_id=target.batch_id, farm_id=farm_id, for_update=True)
            house = HouseService.get_house(house_id=target.house_id, farm_id=farm_id, for_update=True)
            try:
                allocation = BatchAllocation.objects.select_for_update().get(pk=target.pk)
            except BatchAllocation.DoesNotExist:
                raise ResourceNotFoundError(detail='Allocation not found.')

            old_quantity = allocation.quantity
            audit = {
                'actor': actor,
                'model_name': 'BatchAllocation',
                'object_id': str(allocation.pk),
                'farm_id': farm_id,
                'old_values': {'quantity': old_quantity},
            }

            if quantity == 0:
                allocation.delete()
                AuditService.log(action=AUDIT_ACTION_DELETE, new_values={'quantity': 0}, **audit)
                logger.info('Allocation %s removed (was %d).', allocation_id, old_quantity)
                return None

            if quantity > old_quantity:
                AllocationService._check_unallocated(batch, quantity, released=old_quantity)
            AllocationService._check_capacity(house, quantity, exclude_allocation_id=allocation.pk)

            allocation.quantity = quantity
            allocation.updated_by = actor
            allocation.save(update_fields=['quantity', 'updated_by', 'updated_at'])

            AuditService.log(action=AUDIT_ACTION_UPDATE, new_values={'quantity': quantity}, **audit)

        logger.info('Allocation %s corrected from %d to %d.', allocation.pk, old_quantity, quantity)
        return allocation


# ---------------------------------------------------------------------------
# Transfer Orchestrator
# ---------------------------------------------------------------------------

class TransferService:
    """Move birds of one batch between two houses of the same farm."""

    @staticmethod
    def transfer(*, batch_id, from_house_id, to_house_id, quantity, farm_id, actor=None) -> TransferResult:
        """
        Debit the source allocation and credit the destination in one
        transaction. If the credit fails the whole transaction is rolled
        back, the source is re-read to confirm it was restored and
        TransferAbortedError is raised.
        """
        quantity = _require_positive_int(quantity, 'quantity')
        if str(from_house_id) == str(to_house_id):
            raise InvalidInputError(detail='Source and destination houses must differ.')

        source_state: dict = {}
        try:
            return TransferService._transfer(
                batch_id=batch_id,
                from_house_id=from_house_id,
                to_house_id=to_house_id,
                quantity=quantity,
                farm_id=farm_id,
                actor=actor,
                source_state=source_state,
            )
        except TransferAbortedError:
            TransferService._confirm_source_restored(source_state)
            raise

    @staticmethod
    def _confirm_source_restored(source_state: dict) -> None:
        if not source_state:
            return
        remaining = (
            BatchAllocation.objects
            .filter(pk=source_state['pk'])
            .values_list('quantity', flat=True)
            .first()
        )
        if remaining != source_state['quantity']:
            logger.critical(
                'Transfer rollback left allocation %s at %s instead of %d; manual reconciliation required.',
                source_state['pk'], remaining, source_state['quantity'],
            )

    @staticmethod
    @retry_on_conflict()
    def _transfer(*, batch_id, from_house_id, to_house_id, quantity, farm_id, actor, source_state) -> TransferResult:
        with transaction.atomic():
            batch = Batch.objects.get_for_farm(batch_id=batch_id, farm_id=farm_id, for_update=True)
            houses = {
                str(h.pk): h
                for h in lock_rows(House.objects.filter(farm_id=farm_id, pk__in=[from_house_id, to_house_id]))
            }
            source_house = houses.get(str(from_house_id))
            destination_house = houses.get(str(to_house_id))
            if source_house is None or destination_house is None:
                raise ResourceNotFoundError(detail='House not found.')

            source = (
                BatchAllocation.objects
                .select_for_update()
                .filter(batch=batch, house=source_house)
                .first()
            )
            if source is None:
                raise ResourceNotFoundError(
                    detail=f'Batch {batch.name} has no birds in house {source_house.name}.',
                )
            if source.quantity < quantity:
                raise InsufficientBirdsError(
                    detail=f'Requested {quantity}, only {source.quantity} in house {source_house.name}.',
                    requested=quantity,
                    available=source.quantity,
                )
            AllocationService._check_capacity(destination_house, quantity)

            source_state.update(pk=source.pk, quantity=source.quantity)
            AllocationService.debit(allocation=source, quantity=quantity, actor=actor)

            try:
                with transaction.atomic():
                    destination, _ = AllocationService.credit(
                        batch=batch, house=destination_house, quantity=quantity, actor=actor,
                    )
            except OperationalError:
                raise
            except DatabaseError:
                logger.exception(
                    'Credit of %d birds of batch %s into house %s failed; rolling back the debit of allocation %s.',
                    quantity, batch.pk, destination_house.pk, source_state['pk'],
                )
                raise TransferAbortedError()

            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_TRANSFER,
                model_name='BatchAllocation',
                object_id=str(source.pk),
                farm_id=farm_id,
                old_values={'source_quantity': source_state['quantity']},
                new_values={
                    'batch': str(batch.pk),
                    'from_house': str(source_house.pk),
                    'to_house': str(destination_house.pk),
                    'quantity': quantity,
                    'source_quantity': source.quantity,
                    'destination': str(destination.pk),
                    'destination_quantity': destination.quantity,
                },
            )

        logger.info(
            'Transferred %d birds of batch %s from house %s to house %s.',
            quantity, batch.pk, source_house.pk, destination_house.pk,
        )
        return TransferResult(
            source=source,
            destination=destination,
            source_removed=source.quantity == 0,
        )
