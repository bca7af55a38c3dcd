"""
Flocks — Models

Batch: a cohort of birds received together. Its loss counters (dead,
culled, offlaid) only ever grow, and only through the ledger service;
the database refuses any row where losses exceed the original count.

BirdCountHistory: INSERT ONLY. One row per successful loss mutation with
before/after snapshots. ``batch_revision`` is the batch revision the
mutation produced, so history order is the order in which updates were
committed, not the order requests arrived.

@file flocks/models.py
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import ExpressionWrapper, F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.exceptions import ResourceNotFoundError
from core.models import RegulatedModel


class BatchQuerySet(models.QuerySet):

    def for_farm(self, farm_id):
        return self.filter(farm_id=farm_id, is_deleted=False)

    def get_for_farm(self, *, batch_id, farm_id, for_update: bool = False):
        """A live batch of the farm; anything else, other farms included, is a 404."""
        qs = self.for_farm(farm_id)
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=batch_id)
        except (self.model.DoesNotExist, ValidationError):
            raise ResourceNotFoundError(detail='Batch not found.')

    def with_allocation_totals(self):
        """Annotate allocated_count / unallocated_count in the same query."""
        allocated = Coalesce(Sum('allocations__quantity'), 0, output_field=models.IntegerField())
        return self.annotate(allocated_count=allocated).annotate(
            unallocated_count=ExpressionWrapper(
                F('original_count') - F('dead') - F('culled') - F('offlaid') - F('allocated_count'),
                output_field=models.IntegerField(),
            ),
        )


class Batch(RegulatedModel):

    class ChickenType(models.TextChoices):
        BROILER = 'Broiler', _('Broiler')
        LAYER = 'Layer', _('Layer')
        DUAL_PURPOSE = 'Dual-Purpose', _('Dual-Purpose')

    farm = models.ForeignKey(
        'farms.Farm',
        on_delete=models.PROTECT,
        related_name='batches',
        verbose_name=_('farm'),
    )
    name = models.CharField(_('name'), max_length=100)
    arrival_date = models.DateField(_('arrival date'), default=timezone.localdate)
    age_at_arrival = models.PositiveIntegerField(
        _('age at arrival (days)'), default=0,
        validators=[MaxValueValidator(365)],
    )
    chicken_type = models.CharField(
        _('chicken type'), max_length=20, choices=ChickenType.choices,
    )
    original_count = models.PositiveIntegerField(
        _('original count'),
        validators=[MinValueValidator(1), MaxValueValidator(1_000_000)],
    )
    supplier = models.CharField(_('supplier'), max_length=200, blank=True)
    notes = models.TextField(_('notes'), blank=True, default='')

    dead = models.PositiveIntegerField(_('dead'), default=0)
    culled = models.PositiveIntegerField(_('culled'), default=0)
    offlaid = models.PositiveIntegerField(_('off-laid'), default=0)
    revision = models.PositiveIntegerField(_('revision'), default=0)

    is_archived = models.BooleanField(_('archived'), default=False, db_index=True)

    objects = BatchQuerySet.as_manager()

    class Meta:
        verbose_name = _('batch')
        verbose_name_plural = _('batches')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['farm', 'is_deleted', 'is_archived'], name='flocks_batch_farm_state_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(original_count__gte=F('dead') + F('culled') + F('offlaid')),
                name='batch_losses_within_original_count',
            ),
            models.CheckConstraint(
                condition=Q(original_count__gte=1),
                name='batch_original_count_positive',
            ),
        ]

    def __str__(self):
        return f'{self.name} ({self.current_count}/{self.original_count})'

    @property
    def total_losses(self) -> int:
        return self.dead + self.culled + self.offlaid

    @property
    def current_count(self) -> int:
        return self.original_count - self.total_losses

    @property
    def age(self) -> int:
        """Age in days today."""
        return self.age_at_arrival + (timezone.localdate() - self.arrival_date).days

    def count_state(self) -> dict:
        return {
            'dead': self.dead,
            'culled': self.culled,
            'offlaid': self.offlaid,
            'current_count': self.current_count,
        }


class BirdCountHistory(models.Model):
    """
    Append-only bird-count audit entry. INSERT ONLY.
    The id may be assigned by the caller so a deferred write stays idempotent.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    batch = models.ForeignKey(
        Batch,
        on_delete=models.PROTECT,
        related_name='count_history',
        verbose_name=_('batch'),
    )
    farm = models.ForeignKey(
        'farms.Farm',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('farm'),
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('actor'),
    )
    actor_name = models.CharField(_('actor name'), max_length=200, blank=True)
    batch_revision = models.PositiveIntegerField(_('batch revision'))

    dead = models.PositiveIntegerField(_('dead delta'), default=0)
    culled = models.PositiveIntegerField(_('culled delta'), default=0)
    offlaid = models.PositiveIntegerField(_('off-laid delta'), default=0)
    house = models.ForeignKey(
        'farms.House',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('house'),
    )

    reason = models.CharField(_('reason'), max_length=200, blank=True)
    notes = models.CharField(_('notes'), max_length=500, blank=True)
    before_state = models.JSONField(_('before state'))
    after_state = models.JSONField(_('after state'))

    created_at = models.DateTimeField(_('created at'), default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _('bird count history entry')
        verbose_name_plural = _('bird count history')
        ordering = ['-batch_revision']
        constraints = [
            models.UniqueConstraint(
                fields=['batch', 'batch_revision'],
                name='uniq_history_per_batch_revision',
            ),
        ]

    def __str__(self):
        return (
            f'{self.batch_id} r{self.batch_revision}: '
            f'+{self.dead} dead, +{self.culled} culled, +{self.offlaid} off-laid'
        )

    def save(self, *args, **kwargs):
        if self.pk and BirdCountHistory.objects.filter(pk=self.pk).exists():
            raise NotImplementedError('BirdCountHistory is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('BirdCountHistory records cannot be deleted.')
