"""
Core — Concurrency Helpers

Bounded retry with exponential backoff for writes that lose a
storage-level race (deadlock, serialization failure, lock timeout), and
row-lock helpers that fix the lock order used by the ledger:
batch row first, then house rows in primary-key order.

@file core/concurrency.py
"""

import logging
import time
from functools import wraps

from django.conf import settings
from django.db import OperationalError, connection

from core.exceptions import ConcurrencyConflict

logger = logging.getLogger('farmtrack')


def retry_on_conflict(attempts: int | None = None, base_delay: float | None = None):
    """
    Retry the wrapped service call when the database reports a lost race.

    The wrapped function must own its transaction (``transaction.atomic``
    inside), so every attempt starts from a fresh snapshot. When called
    inside a caller-owned atomic block there is nothing safe to retry:
    the error is surfaced as ConcurrencyConflict immediately.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or settings.LEDGER_WRITE_ATTEMPTS
            delay = base_delay if base_delay is not None else settings.LEDGER_RETRY_BASE_DELAY
            if connection.in_atomic_block:
                max_attempts = 1

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except OperationalError as exc:
                    if attempt >= max_attempts:
                        logger.error(
                            '%s lost the race %d time(s); giving up: %s',
                            func.__name__, attempt, exc,
                        )
                        raise ConcurrencyConflict() from exc
                    wait = delay * (2 ** (attempt - 1))
                    logger.warning(
                        'Retry %d/%d for %s after %.3fs: %s',
                        attempt, max_attempts - 1, func.__name__, wait, exc,
                    )
                    time.sleep(wait)
        return wrapper
    return decorator


def lock_rows(queryset):
    """SELECT ... FOR UPDATE ordered by primary key; returns a list."""
    return list(queryset.select_for_update().order_by('pk'))
