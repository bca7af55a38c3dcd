"""
Users — Model Tests

Tests for the User model, its manager and farm-role helpers.

@file users/tests/test_models.py
"""

import pytest

from tests.factories import FarmFactory, OwnerFactory, UserFactory, WorkerFactory
from users.models import User


@pytest.mark.django_db
class TestUserModel:
    def test_create_user(self):
        user = UserFactory(email='grace@farm.test')
        assert user.pk is not None
        assert user.email == 'grace@farm.test'
        assert user.check_password('TestPass2026!')
        assert user.status == User.StatusChoices.ACTIVE

    def test_full_name(self):
        user = UserFactory(first_name='Grace', last_name='Mwangi')
        assert user.get_full_name() == 'Grace Mwangi'

    def test_full_name_falls_back_to_email(self):
        user = UserFactory(first_name='', last_name='', email='anon@farm.test')
        assert user.get_full_name() == 'anon@farm.test'
        assert str(user) == 'anon@farm.test'

    def test_soft_delete(self):
        user = UserFactory()
        user.soft_delete()
        user.refresh_from_db()
        assert user.is_deleted is True
        assert user.deleted_at is not None

    def test_has_farm_role(self):
        owner = OwnerFactory()
        worker = WorkerFactory(farm=owner.farm)
        assert owner.has_farm_role('OWNER', 'MANAGER')
        assert not worker.has_farm_role('OWNER', 'MANAGER')

    def test_has_farm_role_without_farm(self):
        user = UserFactory(farm=None, role=User.RoleChoices.OWNER)
        assert not user.has_farm_role('OWNER')


@pytest.mark.django_db
class TestUserManager:
    def test_create_user_normalises_email(self):
        user = User.objects.create_user(email='Mixed@Farm.TEST', password='Secure2026!')
        assert user.email == 'mixed@farm.test'
        assert user.is_staff is False

    def test_create_user_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='Secure2026!')

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email='root@farm.test', password='Secure2026!')
        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_for_farm_excludes_other_farms_and_deleted(self):
        farm = FarmFactory()
        kept = UserFactory(farm=farm)
        removed = UserFactory(farm=farm)
        removed.soft_delete()
        UserFactory()
        members = list(User.objects.for_farm(farm.pk))
        assert members == [kept]
