"""
Flocks — Service Layer

BatchService: batch records (create, update descriptive fields, archive,
soft delete, list).

BatchLedgerService: the bird-count ledger. Loss deltas are applied as a
conditional increment evaluated by the database
(``original_count >= dead + culled + offlaid + delta``) while the batch
row is locked, so concurrent writers never lose an update and never push
losses past the original count.

BirdCountHistoryService: INSERT ONLY audit trail of loss mutations. A
failed insert never undoes the committed mutation; the entry is handed to
Celery and written later under the same id.

LedgerReconciliationService: read-only sweep that reports any record
breaking a ledger invariant.

@file flocks/services.py
"""

import logging
import uuid
from dataclasses import dataclass, field

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, F, IntegerField, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from allocations.models import BatchAllocation
from allocations.services import AllocationService
from core.concurrency import retry_on_conflict
from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_SOFT_DELETE,
    AUDIT_ACTION_STATUS_CHANGE,
    AUDIT_ACTION_UPDATE,
    LOSS_FIELDS,
)
from core.exceptions import (
    AuditWriteFailure,
    ConstraintViolation,
    InvalidInputError,
    ResourceNotFoundError,
)
from core.services import AuditService
from farms.models import House
from farms.services import HouseService

from .models import Batch, BirdCountHistory
from .tasks import record_bird_count_history_task

logger = logging.getLogger('farmtrack')

BATCH_DESCRIPTIVE_FIELDS = ['name', 'arrival_date', 'age_at_arrival', 'chicken_type', 'supplier', 'notes']


@dataclass
class LossDeltaResult:
    batch: Batch
    changes: dict
    history_id: uuid.UUID
    history_deferred: bool = False
    before: dict = field(default_factory=dict)
    after: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Batch records
# ---------------------------------------------------------------------------

class BatchService:
    """Batch lifecycle around the ledger. Loss counters are never writable here."""

    @staticmethod
    def get_batch(*, batch_id, farm_id, for_update: bool = False) -> Batch:
        return Batch.objects.get_for_farm(batch_id=batch_id, farm_id=farm_id, for_update=for_update)

    @staticmethod
    def list_batches(*, farm_id, include_allocations: bool = False, include_archived: bool = True):
        qs = Batch.objects.for_farm(farm_id)
        if not include_archived:
            qs = qs.filter(is_archived=False)
        if include_allocations:
            qs = qs.with_allocation_totals()
        return qs.order_by('-created_at')

    @staticmethod
    @transaction.atomic
    def create_batch(*, farm_id, actor=None, **fields) -> Batch:
        for key in (*LOSS_FIELDS, 'revision', 'is_archived'):
            fields.pop(key, None)
        batch = Batch(farm_id=farm_id, **fields)
        batch.full_clean()
        batch.created_by = actor
        batch.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='Batch',
            object_id=str(batch.pk),
            farm_id=farm_id,
            new_values=AuditService.snapshot(batch, fields=[*BATCH_DESCRIPTIVE_FIELDS, 'original_count']),
        )
        logger.info('Batch %s created on farm %s with %d birds.', batch.pk, farm_id, batch.original_count)
        return batch

    @staticmethod
    @transaction.atomic
    def update_batch(*, batch_id, farm_id, actor=None, **fields) -> Batch:
        """Update descriptive fields; original_count and loss counters are read-only."""
        batch = BatchService.get_batch(batch_id=batch_id, farm_id=farm_id, for_update=True)

        old_snapshot = AuditService.snapshot(batch, fields=BATCH_DESCRIPTIVE_FIELDS)
        for name in BATCH_DESCRIPTIVE_FIELDS:
            if name in fields:
                setattr(batch, name, fields[name])
        batch.updated_by = actor
        batch.full_clean()
        batch.save(update_fields=[*BATCH_DESCRIPTIVE_FIELDS, 'updated_by', 'updated_at'])

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='Batch',
            object_id=str(batch.pk),
            farm_id=farm_id,
            old_values=old_snapshot,
            new_values=AuditService.snapshot(batch, fields=BATCH_DESCRIPTIVE_FIELDS),
        )
        return batch

    @staticmethod
    @transaction.atomic
    def set_archived(*, batch_id, farm_id, archived: bool, actor=None) -> Batch:
        batch = BatchService.get_batch(batch_id=batch_id, farm_id=farm_id, for_update=True)
        if batch.is_archived == archived:
            return batch

        batch.is_archived = archived
        batch.updated_by = actor
        batch.save(update_fields=['is_archived', 'updated_by', 'updated_at'])

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            model_name='Batch',
            object_id=str(batch.pk),
            farm_id=farm_id,
            old_values={'is_archived': not archived},
            new_values={'is_archived': archived},
        )
        logger.info('Batch %s %s.', batch.pk, 'archived' if archived else 'unarchived')
        return batch

    @staticmethod
    @transaction.atomic
    def delete_batch(*, batch_id, farm_id, actor=None) -> None:
        """Soft delete. Refused while any house still holds birds of the batch."""
        batch = BatchService.get_batch(batch_id=batch_id, farm_id=farm_id, for_update=True)
        allocated = AllocationService.allocated_count(batch.pk)
        if allocated:
            raise ConstraintViolation(
                detail=f'Batch {batch.name} still has {allocated} birds allocated to houses.',
                allocated=allocated,
            )
        batch.soft_delete(user=actor)

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_SOFT_DELETE,
            model_name='Batch',
            object_id=str(batch.pk),
            farm_id=farm_id,
        )


# ---------------------------------------------------------------------------
# Bird-count ledger
# ---------------------------------------------------------------------------

class BatchLedgerService:

    @staticmethod
    def clean_deltas(deltas: dict) -> dict[str, int]:
        """
        Validate loss deltas; returns all three categories with absent ones
        as 0. A category sent as 0 counts as present.
        """
        if not isinstance(deltas, dict):
            raise InvalidInputError(detail='Loss deltas must be an object.')
        unknown = set(deltas) - set(LOSS_FIELDS)
        if unknown:
            raise InvalidInputError(detail=f'Unknown loss categories: {", ".join(sorted(unknown))}.')

        cleaned = {}
        present = False
        for name in LOSS_FIELDS:
            value = deltas.get(name)
            if value is None:
                cleaned[name] = 0
                continue
            present = True
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(detail=f'{name} must be a whole number.')
            if value < 0:
                raise InvalidInputError(detail=f'{name} cannot be negative.')
            cleaned[name] = value

        if not present:
            raise InvalidInputError(detail='At least one of dead, culled or offlaid must be provided.')
        return cleaned

    @staticmethod
    @retry_on_conflict()
    def apply_loss_delta(
        *,
        batch_id,
        farm_id,
        deltas: dict,
        actor=None,
        reason: str = '',
        notes: str = '',
        house_id=None,
    ) -> LossDeltaResult:
        """
        Record deaths, culls and off-lay removals for a batch.

        With ``house_id`` the birds are taken out of that house's
        allocation in the same transaction; without it they must come out
        of the batch's unallocated birds.
        """
        changes = BatchLedgerService.clean_deltas(deltas)
        total = sum(changes.values())

        with transaction.atomic():
            batch = BatchService.get_batch(batch_id=batch_id, farm_id=farm_id, for_update=True)
            before = batch.count_state()

            if batch.total_losses + total > batch.original_count:
                raise ConstraintViolation(
                    detail=(
                        f'Requested {total} losses, only {batch.current_count} birds remain '
                        f'of {batch.original_count}.'
                    ),
                    requested=total,
                    current_count=batch.current_count,
                    original_count=batch.original_count,
                )

            house = None
            if house_id is not None:
                house = HouseService.get_house(house_id=house_id, farm_id=farm_id, for_update=True)
                allocation = (
                    BatchAllocation.objects
                    .select_for_update()
                    .filter(batch=batch, house=house)
                    .first()
                )
                if allocation is None:
                    raise ResourceNotFoundError(
                        detail=f'Batch {batch.name} has no birds in house {house.name}.',
                    )
                if total:
                    AllocationService.debit(allocation=allocation, quantity=total, actor=actor)
            else:
                unallocated = batch.current_count - AllocationService.allocated_count(batch.pk)
                if total > unallocated:
                    raise ConstraintViolation(
                        detail=(
                            f'Requested {total} losses, only {unallocated} unallocated birds; '
                            'record the losses against the house they happened in.'
                        ),
                        requested=total,
                        unallocated=unallocated,
                    )

            updated = Batch.objects.filter(
                pk=batch.pk,
                original_count__gte=F('dead') + F('culled') + F('offlaid') + total,
            ).update(
                dead=F('dead') + changes['dead'],
                culled=F('culled') + changes['culled'],
                offlaid=F('offlaid') + changes['offlaid'],
                revision=F('revision') + 1,
                updated_by=actor,
                updated_at=timezone.now(),
            )
            if not updated:
                raise ConstraintViolation(
                    detail='Losses would exceed the original count.',
                    requested=total,
                )

            batch.refresh_from_db(fields=[*LOSS_FIELDS, 'revision', 'updated_by', 'updated_at'])
            after = batch.count_state()

            history_id, deferred = BirdCountHistoryService.record(
                batch=batch,
                actor=actor,
                deltas=changes,
                reason=reason,
                notes=notes,
                before_state=before,
                after_state=after,
                house=house,
            )

        logger.info(
            'Batch %s r%d: +%d dead, +%d culled, +%d off-laid (current %d).',
            batch.pk, batch.revision, changes['dead'], changes['culled'], changes['offlaid'],
            batch.current_count,
        )
        return LossDeltaResult(
            batch=batch,
            changes=changes,
            history_id=history_id,
            history_deferred=deferred,
            before=before,
            after=after,
        )

    @staticmethod
    def get_availability(*, batch_id, farm_id) -> dict:
        """
        Batch counters first, allocations second. Allocations can only
        shrink the unallocated figure, so it never reads negative.
        """
        batch = BatchService.get_batch(batch_id=batch_id, farm_id=farm_id)
        allocated = AllocationService.allocated_count(batch.pk)
        return {
            'batch_id': batch.pk,
            'original_count': batch.original_count,
            'dead': batch.dead,
            'culled': batch.culled,
            'offlaid': batch.offlaid,
            'current_count': batch.current_count,
            'allocated_count': allocated,
            'unallocated_count': batch.current_count - allocated,
        }


# ---------------------------------------------------------------------------
# Bird-count history (audit trail)
# ---------------------------------------------------------------------------

class BirdCountHistoryService:

    @staticmethod
    def build_payload(*, batch, actor, deltas, reason, notes, before_state, after_state, house=None) -> dict:
        """JSON-safe entry, used both for the direct insert and the deferred task."""
        return {
            'id': str(uuid.uuid4()),
            'batch_id': str(batch.pk),
            'farm_id': str(batch.farm_id),
            'actor_id': str(actor.pk) if getattr(actor, 'pk', None) else None,
            'actor_name': actor.get_full_name() if getattr(actor, 'pk', None) else '',
            'batch_revision': batch.revision,
            'house_id': str(house.pk) if house is not None else None,
            'dead': deltas.get('dead', 0),
            'culled': deltas.get('culled', 0),
            'offlaid': deltas.get('offlaid', 0),
            'reason': (reason or '')[:200],
            'notes': (notes or '')[:500],
            'before_state': before_state,
            'after_state': after_state,
            'created_at': timezone.now().isoformat(),
        }

    @staticmethod
    def record(*, batch, actor, deltas, reason, notes, before_state, after_state, house=None) -> tuple[uuid.UUID, bool]:
        """
        Append one history entry inside the caller's transaction. On a
        database error the entry is queued for the deferred writer once
        the mutation commits. Returns (entry id, deferred).
        """
        payload = BirdCountHistoryService.build_payload(
            batch=batch, actor=actor, deltas=deltas, reason=reason, notes=notes,
            before_state=before_state, after_state=after_state, house=house,
        )
        try:
            with transaction.atomic():
                BirdCountHistoryService._insert(payload)
        except DatabaseError as exc:
            logger.error(
                'Bird count history for batch %s r%d not written (%s); deferring entry %s.',
                payload['batch_id'], payload['batch_revision'], exc, payload['id'],
            )
            transaction.on_commit(lambda: record_bird_count_history_task.delay(payload))
            return uuid.UUID(payload['id']), True
        return uuid.UUID(payload['id']), False

    @staticmethod
    def _insert(payload: dict) -> BirdCountHistory:
        return BirdCountHistory.objects.create(
            id=payload['id'],
            batch_id=payload['batch_id'],
            farm_id=payload['farm_id'],
            actor_id=payload['actor_id'],
            actor_name=payload['actor_name'],
            batch_revision=payload['batch_revision'],
            house_id=payload['house_id'],
            dead=payload['dead'],
            culled=payload['culled'],
            offlaid=payload['offlaid'],
            reason=payload['reason'],
            notes=payload['notes'],
            before_state=payload['before_state'],
            after_state=payload['after_state'],
            created_at=payload['created_at'],
        )

    @staticmethod
    def record_from_payload(payload: dict) -> bool:
        """
        Deferred write. Idempotent on (batch, revision): returns False if
        the entry already exists. Raises AuditWriteFailure on database
        errors so the task can retry.
        """
        exists = BirdCountHistory.objects.filter(
            batch_id=payload['batch_id'],
            batch_revision=payload['batch_revision'],
        ).exists()
        if exists:
            return False
        try:
            with transaction.atomic():
                BirdCountHistoryService._insert(payload)
        except IntegrityError:
            return False
        except DatabaseError as exc:
            raise AuditWriteFailure(
                f'History entry {payload["id"]} for batch {payload["batch_id"]} '
                f'r{payload["batch_revision"]} could not be written: {exc}',
            ) from exc
        logger.info('Deferred history entry %s written for batch %s.', payload['id'], payload['batch_id'])
        return True

    @staticmethod
    def history(*, batch_id, farm_id, limit=None):
        """Most recent first, bounded by the configured maximum."""
        if limit is None:
            limit = settings.BIRD_COUNT_HISTORY_DEFAULT_LIMIT
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidInputError(detail='limit must be a positive integer.')
        limit = min(limit, settings.BIRD_COUNT_HISTORY_MAX_LIMIT)

        batch = BatchService.get_batch(batch_id=batch_id, farm_id=farm_id)
        return list(
            BirdCountHistory.objects
            .filter(batch=batch)
            .select_related('actor', 'house')
            .order_by('-batch_revision')[:limit]
        )


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

class LedgerReconciliationService:
    """Re-checks every ledger invariant and reports what does not hold."""

    @staticmethod
    def find_discrepancies(farm_id=None) -> list[dict]:
        batches = Batch.objects.filter(is_deleted=False)
        houses = House.objects.all()
        if farm_id is not None:
            batches = batches.filter(farm_id=farm_id)
            houses = houses.filter(farm_id=farm_id)

        issues: list[dict] = []

        for batch in batches.filter(original_count__lt=F('dead') + F('culled') + F('offlaid')):
            issues.append({
                'kind': 'losses_exceed_original',
                'batch_id': str(batch.pk),
                'original_count': batch.original_count,
                'losses': batch.total_losses,
            })

        for batch in batches.with_allocation_totals().filter(unallocated_count__lt=0):
            issues.append({
                'kind': 'over_allocated_batch',
                'batch_id': str(batch.pk),
                'current_count': batch.current_count,
                'allocated_count': batch.allocated_count,
            })

        over_capacity = (
            houses
            .filter(capacity__isnull=False)
            .annotate(occupancy=Coalesce(Sum('allocations__quantity'), 0, output_field=IntegerField()))
            .filter(occupancy__gt=F('capacity'))
        )
        for house in over_capacity:
            issues.append({
                'kind': 'house_over_capacity',
                'house_id': str(house.pk),
                'capacity': house.capacity,
                'occupancy': house.occupancy,
            })

        missing_history = (
            batches
            .annotate(entries=Count('count_history'))
            .exclude(entries=F('revision'))
        )
        for batch in missing_history:
            issues.append({
                'kind': 'history_gap',
                'batch_id': str(batch.pk),
                'revision': batch.revision,
                'entries': batch.entries,
            })

        return issues

    @staticmethod
    def reconcile(farm_id=None) -> list[dict]:
        issues = LedgerReconciliationService.find_discrepancies(farm_id=farm_id)
        for issue in issues:
            logger.error('Ledger discrepancy: %s', issue)
        if not issues:
            logger.info('Ledger reconciliation found no discrepancies.')
        return issues
