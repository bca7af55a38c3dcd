"""
Core — Model Tests

Tests for AuditLog, the audit service and base model mixins.

@file core/tests/test_models.py
"""

import pytest

from core.models import AuditLog
from core.services import AuditService
from tests.factories import AuditLogFactory, HouseFactory, UserFactory


@pytest.mark.django_db
class TestAuditLog:
    def test_create_audit_log(self):
        user = UserFactory()
        log = AuditService.log(
            actor=user,
            action=AuditLog.ActionChoices.CREATE,
            model_name='House',
            object_id='house-123',
            farm_id=user.farm_id,
            new_values={'name': 'H1'},
        )
        assert log.pk is not None
        assert log.action == 'CREATE'
        assert log.farm_id == user.farm_id

    def test_factory(self):
        log = AuditLogFactory()
        assert log.pk is not None
        assert str(log).startswith('CREATE House:')

    def test_snapshot_serialises_uuid_and_fk(self):
        house = HouseFactory(capacity=500)
        snapshot = AuditService.snapshot(house, fields=['name', 'capacity', 'farm'])
        assert snapshot['capacity'] == 500
        assert snapshot['farm'] == str(house.farm_id)


@pytest.mark.django_db
class TestSoftDeleteMixin:
    def test_soft_delete_keeps_row(self):
        user = UserFactory()
        actor = UserFactory()
        user.soft_delete(user=actor)
        user.refresh_from_db()
        assert user.is_deleted is True
        assert user.deleted_by == actor
        assert user.deleted_at is not None
        assert type(user).objects.filter(pk=user.pk).exists()
