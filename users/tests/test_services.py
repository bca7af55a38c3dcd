"""
Users — Service Tests

Tests for owner registration, staff management and status changes.

@file users/tests/test_services.py
"""

import pytest

from core.exceptions import (
    BusinessRuleViolation,
    DuplicateResourceError,
    ResourceNotFoundError,
)
from core.models import AuditLog
from farms.models import Farm
from tests.factories import FarmFactory, UserFactory, WorkerFactory
from users.models import User
from users.services import UserService

pytestmark = pytest.mark.django_db


class TestRegisterOwner:
    def test_creates_farm_and_owner(self):
        user = UserService.register_owner(
            email='Owner@Farm.test',
            password='Secure2026!',
            first_name='Amina',
            farm_name='Sunrise Poultry',
        )
        assert user.email == 'owner@farm.test'
        assert user.role == User.RoleChoices.OWNER
        assert user.farm.name == 'Sunrise Poultry'
        assert user.farm.created_by == user

    def test_default_farm_name(self):
        user = UserService.register_owner(
            email='amina@farm.test', password='Secure2026!', first_name='Amina',
        )
        assert user.farm.name == "Amina's Farm"

    def test_duplicate_email_creates_nothing(self):
        UserFactory(email='taken@farm.test')
        farms_before = Farm.objects.count()
        with pytest.raises(DuplicateResourceError):
            UserService.register_owner(
                email='taken@farm.test', password='Secure2026!', first_name='X',
            )
        assert Farm.objects.count() == farms_before

    def test_registration_is_audited(self):
        user = UserService.register_owner(
            email='audit@farm.test', password='Secure2026!', first_name='A',
        )
        assert AuditLog.objects.filter(
            model_name='Farm', object_id=str(user.farm_id), action='CREATE',
        ).exists()


class TestStaffManagement:
    def test_add_staff(self, owner):
        staff = UserService.add_staff(
            farm_id=owner.farm_id,
            email='worker@farm.test',
            password='Secure2026!',
            actor=owner,
        )
        assert staff.farm_id == owner.farm_id
        assert staff.role == User.RoleChoices.WORKER
        assert staff.created_by == owner

    def test_add_staff_as_owner_rejected(self, owner):
        with pytest.raises(BusinessRuleViolation):
            UserService.add_staff(
                farm_id=owner.farm_id,
                email='second-owner@farm.test',
                role=User.RoleChoices.OWNER,
                actor=owner,
            )

    def test_update_user(self, owner, worker):
        updated = UserService.update_user(
            user_id=worker.pk, farm_id=owner.farm_id, actor=owner,
            role=User.RoleChoices.MANAGER, first_name='Promoted',
        )
        assert updated.role == User.RoleChoices.MANAGER
        assert updated.first_name == 'Promoted'
        log = AuditLog.objects.get(model_name='User', object_id=str(worker.pk), action='UPDATE')
        assert log.old_values['role'] == 'WORKER'
        assert log.new_values['role'] == 'MANAGER'

    def test_update_user_on_other_farm_not_found(self, owner):
        stranger = WorkerFactory(farm=FarmFactory())
        with pytest.raises(ResourceNotFoundError):
            UserService.update_user(
                user_id=stranger.pk, farm_id=owner.farm_id, actor=owner, first_name='X',
            )

    def test_cannot_grant_ownership(self, owner, worker):
        with pytest.raises(BusinessRuleViolation):
            UserService.update_user(
                user_id=worker.pk, farm_id=owner.farm_id, actor=owner,
                role=User.RoleChoices.OWNER,
            )

    def test_remove_staff(self, owner, worker):
        UserService.remove_staff(user_id=worker.pk, farm_id=owner.farm_id, actor=owner)
        worker.refresh_from_db()
        assert worker.is_deleted is True
        assert worker.is_active is False

    def test_remove_owner_rejected(self, owner):
        with pytest.raises(BusinessRuleViolation):
            UserService.remove_staff(user_id=owner.pk, farm_id=owner.farm_id, actor=owner)


class TestChangeStatus:
    def test_suspend_and_reactivate(self, owner, worker):
        suspended = UserService.change_status(
            user_id=worker.pk, farm_id=owner.farm_id,
            new_status=User.StatusChoices.SUSPENDED, actor=owner, reason='Left shift',
        )
        assert suspended.status == User.StatusChoices.SUSPENDED
        assert suspended.is_active is False

        active = UserService.change_status(
            user_id=worker.pk, farm_id=owner.farm_id,
            new_status=User.StatusChoices.ACTIVE, actor=owner,
        )
        assert active.is_active is True

    def test_same_status_rejected(self, owner, worker):
        with pytest.raises(BusinessRuleViolation):
            UserService.change_status(
                user_id=worker.pk, farm_id=owner.farm_id,
                new_status=User.StatusChoices.ACTIVE, actor=owner,
            )

    def test_owner_cannot_be_suspended(self, owner):
        with pytest.raises(BusinessRuleViolation):
            UserService.change_status(
                user_id=owner.pk, farm_id=owner.farm_id,
                new_status=User.StatusChoices.SUSPENDED, actor=owner,
            )
