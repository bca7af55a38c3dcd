"""
Flocks — Task Tests

Deferred history writer and the reconciliation task.

@file flocks/tests/test_tasks.py
"""

from unittest.mock import patch

import pytest

from core.exceptions import AuditWriteFailure
from flocks.models import BirdCountHistory
from flocks.services import BirdCountHistoryService
from flocks.tasks import reconcile_ledgers_task, record_bird_count_history_task
from tests.factories import BatchFactory

pytestmark = pytest.mark.django_db


@pytest.fixture
def payload():
    batch = BatchFactory(original_count=100, dead=2, revision=1)
    return BirdCountHistoryService.build_payload(
        batch=batch, actor=None, deltas={'dead': 2}, reason='heat stress', notes='',
        before_state={'dead': 0, 'culled': 0, 'offlaid': 0, 'current_count': 100},
        after_state=batch.count_state(),
    )


class TestRecordBirdCountHistoryTask:
    def test_writes_entry_with_given_id(self, payload):
        result = record_bird_count_history_task(payload)
        assert result == {'id': payload['id'], 'written': True}
        entry = BirdCountHistory.objects.get(pk=payload['id'])
        assert entry.reason == 'heat stress'
        assert entry.after_state['current_count'] == 98

    def test_second_delivery_is_a_no_op(self, payload):
        record_bird_count_history_task(payload)
        result = record_bird_count_history_task(payload)
        assert result['written'] is False
        assert BirdCountHistory.objects.filter(batch_id=payload['batch_id']).count() == 1

    def test_write_failure_is_raised_for_retry(self, payload):
        with patch.object(
            BirdCountHistoryService, 'record_from_payload',
            side_effect=AuditWriteFailure('still down'),
        ):
            with pytest.raises(AuditWriteFailure):
                record_bird_count_history_task(payload)


class TestReconcileLedgersTask:
    def test_reports_discrepancy_count(self):
        BatchFactory(revision=1)
        result = reconcile_ledgers_task.delay().get()
        assert result == {'discrepancies': 1}
