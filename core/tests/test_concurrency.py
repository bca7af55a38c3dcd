"""
Core — Concurrency Helper Tests

Bounded retry behaviour of ``retry_on_conflict``.

@file core/tests/test_concurrency.py
"""

from unittest.mock import patch

import pytest
from django.db import OperationalError

from core.concurrency import retry_on_conflict
from core.exceptions import ConcurrencyConflict


@pytest.fixture
def outside_atomic():
    with patch('core.concurrency.connection') as conn:
        conn.in_atomic_block = False
        yield conn


class TestRetryOnConflict:
    def test_returns_on_first_success(self, outside_atomic):
        calls = []

        @retry_on_conflict(attempts=3, base_delay=0)
        def write():
            calls.append(1)
            return 'ok'

        assert write() == 'ok'
        assert len(calls) == 1

    def test_retries_lost_race_then_succeeds(self, outside_atomic):
        calls = []

        @retry_on_conflict(attempts=3, base_delay=0)
        def write():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError('deadlock detected')
            return 'ok'

        assert write() == 'ok'
        assert len(calls) == 3

    def test_gives_up_with_concurrency_conflict(self, outside_atomic):
        calls = []

        @retry_on_conflict(attempts=2, base_delay=0)
        def write():
            calls.append(1)
            raise OperationalError('could not serialize access')

        with pytest.raises(ConcurrencyConflict):
            write()
        assert len(calls) == 2

    def test_single_attempt_inside_caller_transaction(self):
        calls = []

        @retry_on_conflict(attempts=5, base_delay=0)
        def write():
            calls.append(1)
            raise OperationalError('lock timeout')

        with patch('core.concurrency.connection') as conn:
            conn.in_atomic_block = True
            with pytest.raises(ConcurrencyConflict):
                write()
        assert len(calls) == 1

    def test_other_errors_propagate(self, outside_atomic):
        @retry_on_conflict(attempts=3, base_delay=0)
        def write():
            raise ValueError('bad')

        with pytest.raises(ValueError):
            write()
