"""
Flocks — Celery Tasks

Deferred bird-count history writes and the periodic ledger
reconciliation sweep.

@file flocks/tasks.py
"""

import logging

from celery import shared_task

from core.exceptions import AuditWriteFailure

logger = logging.getLogger('farmtrack')


@shared_task(
    bind=True,
    name='flocks.record_bird_count_history',
    max_retries=5,
    default_retry_delay=30,
)
def record_bird_count_history_task(self, payload: dict):
    """
    Write a history entry whose direct insert failed after the count
    mutation had committed. Idempotent on (batch, revision).
    """
    from .services import BirdCountHistoryService

    try:
        written = BirdCountHistoryService.record_from_payload(payload)
    except AuditWriteFailure as exc:
        logger.warning(
            'Deferred history %s failed (attempt %d): %s',
            payload.get('id'), self.request.retries + 1, exc,
        )
        if self.request.retries >= self.max_retries:
            logger.critical(
                'Giving up on history entry %s for batch %s r%s; manual reconciliation required.',
                payload.get('id'), payload.get('batch_id'), payload.get('batch_revision'),
            )
            raise
        raise self.retry(exc=exc, countdown=30 * (2 ** self.request.retries))
    return {'id': payload.get('id'), 'written': written}


@shared_task(name='flocks.reconcile_ledgers')
def reconcile_ledgers_task():
    """Daily task: report every batch or house that breaks a ledger invariant."""
    from .services import LedgerReconciliationService

    issues = LedgerReconciliationService.reconcile()
    logger.info('reconcile_ledgers_task completed: %d discrepancies.', len(issues))
    return {'discrepancies': len(issues)}
