"""
Users — Models

Custom User model with UUID PK, email-based auth, a status lifecycle and
farm membership. Every farm-scoped operation resolves its tenant from
``user.farm``; the farm role decides who may reshape allocations.

@file users/models.py
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import RegulatedModel
from users.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin, RegulatedModel):
    """
    A farm owner or staff member.

    OWNER registers the farm and manages staff; MANAGER runs houses,
    batches and allocations; WORKER records daily losses.
    """

    class RoleChoices(models.TextChoices):
        OWNER = 'OWNER', _('Owner')
        MANAGER = 'MANAGER', _('Manager')
        WORKER = 'WORKER', _('Worker')

    class StatusChoices(models.TextChoices):
        ACTIVE = 'ACTIVE', _('Active')
        SUSPENDED = 'SUSPENDED', _('Suspended')

    email = models.EmailField(_('email'), unique=True)
    first_name = models.CharField(_('first name'), max_length=100, blank=True)
    last_name = models.CharField(_('last name'), max_length=100, blank=True)
    contact = models.CharField(_('contact phone'), max_length=20, blank=True)

    farm = models.ForeignKey(
        'farms.Farm',
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='members',
        verbose_name=_('farm'),
    )
    role = models.CharField(
        _('farm role'), max_length=10,
        choices=RoleChoices.choices, default=RoleChoices.WORKER,
        db_index=True,
    )
    status = models.CharField(
        _('status'), max_length=12,
        choices=StatusChoices.choices, default=StatusChoices.ACTIVE,
        db_index=True,
    )

    is_staff = models.BooleanField(_('staff status'), default=False)
    is_active = models.BooleanField(_('active'), default=True)
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'is_deleted'], name='users_user_status_e1b2c3_idx'),
            models.Index(fields=['farm', 'role'], name='users_user_farm_id_4f5a6b_idx'),
        ]

    def __str__(self):
        return self.get_full_name()

    def get_full_name(self):
        full = f'{self.first_name} {self.last_name}'.strip()
        return full or self.email

    def get_short_name(self):
        return self.first_name or self.email

    def has_farm_role(self, *roles: str) -> bool:
        return self.farm_id is not None and self.role in roles
