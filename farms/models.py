"""
Farms — Models

Farm is the tenant boundary: every house, batch and allocation belongs to
exactly one farm and is invisible to members of any other. House is the
physical building birds are placed into; its optional capacity caps the
total allocated across all batches.

@file farms/models.py
"""

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class Farm(BaseModel):
    name = models.CharField(_('name'), max_length=200)
    location = models.CharField(_('location'), max_length=255, blank=True)
    contact = models.CharField(_('contact phone'), max_length=20, blank=True)

    class Meta:
        verbose_name = _('farm')
        verbose_name_plural = _('farms')
        ordering = ['name']

    def __str__(self):
        return self.name


class House(BaseModel):
    """A poultry house. ``capacity`` null means no declared ceiling."""

    class HouseType(models.TextChoices):
        CAGED = 'Caged', _('Caged')
        DEEP_LITTER = 'Deep Litter', _('Deep Litter')

    farm = models.ForeignKey(
        Farm,
        on_delete=models.CASCADE,
        related_name='houses',
        verbose_name=_('farm'),
    )
    name = models.CharField(_('name'), max_length=100)
    capacity = models.PositiveIntegerField(
        _('capacity'), null=True, blank=True,
        validators=[MinValueValidator(1)],
    )
    house_type = models.CharField(
        _('house type'), max_length=20,
        choices=HouseType.choices, default=HouseType.DEEP_LITTER,
    )
    is_monitored = models.BooleanField(_('monitored'), default=False)

    class Meta:
        verbose_name = _('house')
        verbose_name_plural = _('houses')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['farm', 'name'], name='uniq_house_name_per_farm'),
            models.CheckConstraint(
                condition=models.Q(capacity__isnull=True) | models.Q(capacity__gte=1),
                name='house_capacity_positive',
            ),
        ]

    def __str__(self):
        return f'{self.name} ({self.farm})'
