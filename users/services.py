"""
Users — Service Layer

Owner registration (farm + owner in one transaction), staff management
scoped to the caller's farm, and auth event logging. No HTTP context;
services receive plain Python arguments and raise typed exceptions.

@file users/services.py
"""

import logging

from django.db import transaction

from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_SOFT_DELETE,
    AUDIT_ACTION_STATUS_CHANGE,
    AUDIT_ACTION_UPDATE,
)
from core.exceptions import (
    BusinessRuleViolation,
    DuplicateResourceError,
    ResourceNotFoundError,
)
from core.services import AuditService
from farms.models import Farm

from .models import User

logger = logging.getLogger('farmtrack')


# ---------------------------------------------------------------------------
# User service
# ---------------------------------------------------------------------------

class UserService:
    """Registration and farm staff management."""

    VALID_STATUS_TRANSITIONS = {
        'ACTIVE': {'SUSPENDED'},
        'SUSPENDED': {'ACTIVE'},
    }

    @staticmethod
    def _ensure_email_free(email: str) -> str:
        email = email.strip().lower()
        if User.objects.filter(email=email).exists():
            raise DuplicateResourceError(detail=f'Email {email} already registered.')
        return email

    @staticmethod
    @transaction.atomic
    def register_owner(
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str = '',
        farm_name: str = '',
        **extra_fields,
    ) -> User:
        """Create a farm and its OWNER. The farm defaults to "<first name>'s Farm"."""
        email = UserService._ensure_email_free(email)
        farm = Farm.objects.create(name=farm_name or f"{first_name}'s Farm")
        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            farm=farm,
            role=User.RoleChoices.OWNER,
            **extra_fields,
        )
        farm.created_by = user
        farm.save(update_fields=['created_by'])

        AuditService.log(
            actor=user,
            action=AUDIT_ACTION_CREATE,
            model_name='Farm',
            object_id=str(farm.pk),
            farm_id=farm.pk,
            new_values={'name': farm.name, 'owner': str(user.pk)},
        )
        logger.info('Farm %s registered by %s.', farm.pk, user.pk)
        return user

    @staticmethod
    @transaction.atomic
    def add_staff(
        *,
        farm_id,
        email: str,
        password: str | None = None,
        role: str = User.RoleChoices.WORKER,
        actor=None,
        **extra_fields,
    ) -> User:
        if role == User.RoleChoices.OWNER:
            raise BusinessRuleViolation(detail='A farm has exactly one owner; staff cannot be added as OWNER.')
        email = UserService._ensure_email_free(email)
        user = User.objects.create_user(
            email=email,
            password=password,
            farm_id=farm_id,
            role=role,
            **extra_fields,
        )
        user.created_by = actor
        user.save(update_fields=['created_by'])

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='User',
            object_id=str(user.pk),
            farm_id=farm_id,
            new_values={'email': email, 'role': role},
        )
        return user

    @staticmethod
    @transaction.atomic
    def update_user(*, user_id, farm_id, actor=None, **fields) -> User:
        try:
            user = User.objects.select_for_update().get(
                pk=user_id, farm_id=farm_id, is_deleted=False,
            )
        except User.DoesNotExist:
            raise ResourceNotFoundError()

        if fields.get('role') == User.RoleChoices.OWNER and user.role != User.RoleChoices.OWNER:
            raise BusinessRuleViolation(detail='Ownership cannot be granted through a staff update.')

        old_snapshot = AuditService.snapshot(user, fields=['first_name', 'last_name', 'contact', 'role'])

        for field, value in fields.items():
            if field in ('first_name', 'last_name', 'contact', 'role'):
                setattr(user, field, value)

        user.updated_by = actor
        user.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='User',
            object_id=str(user.pk),
            farm_id=farm_id,
            old_values=old_snapshot,
            new_values=AuditService.snapshot(user, fields=['first_name', 'last_name', 'contact', 'role']),
        )
        return user

    @classmethod
    @transaction.atomic
    def change_status(cls, *, user_id, farm_id, new_status: str, actor=None, reason: str = '') -> User:
        try:
            user = User.objects.select_for_update().get(
                pk=user_id, farm_id=farm_id, is_deleted=False,
            )
        except User.DoesNotExist:
            raise ResourceNotFoundError()

        if user.role == User.RoleChoices.OWNER:
            raise BusinessRuleViolation(detail='The farm owner cannot be suspended.')

        allowed = cls.VALID_STATUS_TRANSITIONS.get(user.status, set())
        if new_status not in allowed:
            raise BusinessRuleViolation(
                detail=f'Cannot transition from {user.status} to {new_status}.',
            )

        old_status = user.status
        user.status = new_status
        user.is_active = new_status == User.StatusChoices.ACTIVE
        user.updated_by = actor
        user.save(update_fields=['status', 'is_active', 'updated_by', 'updated_at'])

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            model_name='User',
            object_id=str(user.pk),
            farm_id=farm_id,
            old_values={'status': old_status},
            new_values={'status': new_status, 'reason': reason},
        )
        return user

    @staticmethod
    @transaction.atomic
    def remove_staff(*, user_id, farm_id, actor=None) -> None:
        try:
            user = User.objects.select_for_update().get(
                pk=user_id, farm_id=farm_id, is_deleted=False,
            )
        except User.DoesNotExist:
            raise ResourceNotFoundError()

        if user.role == User.RoleChoices.OWNER:
            raise BusinessRuleViolation(detail='The farm owner cannot be removed.')

        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        user.soft_delete(user=actor)

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_SOFT_DELETE,
            model_name='User',
            object_id=str(user.pk),
            farm_id=farm_id,
            old_values={'email': user.email, 'role': user.role},
        )


# ---------------------------------------------------------------------------
# Auth service
# ---------------------------------------------------------------------------

class AuthService:
    """Authentication event logging."""

    @staticmethod
    def log_auth_event(*, action: str, user=None, ip_address=None, user_agent=''):
        AuditService.log(
            actor=user,
            action=action,
            model_name='User',
            object_id=str(user.pk) if user else '',
            farm_id=getattr(user, 'farm_id', None),
            ip_address=ip_address,
            user_agent=user_agent,
        )
