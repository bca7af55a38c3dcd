"""
Allocations — Models

BatchAllocation: how many birds of one batch sit in one house. At most
one row per (batch, house); repeated placements grow the existing row.
A row that would drop to zero is deleted instead, so the existence of an
allocation always means birds are present.

@file allocations/models.py
"""

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class BatchAllocation(BaseModel):
    batch = models.ForeignKey(
        'flocks.Batch',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('batch'),
    )
    house = models.ForeignKey(
        'farms.House',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('house'),
    )
    quantity = models.PositiveIntegerField(_('quantity'))

    class Meta:
        verbose_name = _('batch allocation')
        verbose_name_plural = _('batch allocations')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['batch', 'house'],
                name='uniq_allocation_per_batch_house',
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name='allocation_quantity_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['house', 'created_at'], name='alloc_house_created_idx'),
        ]

    def __str__(self):
        return f'{self.quantity} of {self.batch_id} in {self.house_id}'
