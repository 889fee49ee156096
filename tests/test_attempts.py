"""
tests/test_attempts.py -- Unit tests for AttemptsStore (failed-login lockout).

A mutable clock is injected so window and lockout expiry can be tested
without sleeping.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from auth.attempts import AttemptsStore
from auth.errors import TooManyAttemptsError

IP = "203.0.113.7"


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def attempts(db_url, clock):
    store = AttemptsStore(db_url, max_attempts=3, window_seconds=600, lockout_seconds=300, clock=clock)
    yield store
    store.close()


def _lock(attempts: AttemptsStore) -> None:
    attempts.attempts(IP)
    attempts.attempts(IP)
    with pytest.raises(TooManyAttemptsError):
        attempts.attempts(IP)


def test_counts_failures(attempts):
    assert attempts.attempts(IP) == 1
    assert attempts.attempts(IP) == 2
    assert attempts.get(IP).count == 2


def test_check_passes_for_unknown_address(attempts):
    attempts.check(IP)


def test_reaching_max_locks_with_retry_after(attempts):
    attempts.attempts(IP)
    attempts.attempts(IP)
    with pytest.raises(TooManyAttemptsError) as exc:
        attempts.attempts(IP)
    assert exc.value.retry_after == 300
    assert exc.value.status_code == 429
    assert attempts.get(IP).locked_until is not None


def test_lock_is_persisted_when_raised(attempts):
    _lock(attempts)
    record = attempts.get(IP)
    assert record.count == 3
    assert record.locked_until is not None
    with pytest.raises(TooManyAttemptsError):
        attempts.check(IP)


def test_check_raises_while_locked(attempts, clock):
    _lock(attempts)
    clock.advance(100)
    with pytest.raises(TooManyAttemptsError) as exc:
        attempts.check(IP)
    assert 0 < exc.value.retry_after <= 201


def test_lock_expires(attempts, clock):
    _lock(attempts)
    clock.advance(301)
    attempts.check(IP)


def test_failure_after_expired_lock_starts_fresh(attempts, clock):
    _lock(attempts)
    clock.advance(301)
    assert attempts.attempts(IP) == 1
    assert attempts.get(IP).locked_until is None


def test_window_lapse_resets_count(attempts, clock):
    attempts.attempts(IP)
    attempts.attempts(IP)
    clock.advance(601)
    assert attempts.attempts(IP) == 1


def test_addresses_are_independent(attempts):
    _lock(attempts)
    attempts.check("198.51.100.1")
    assert attempts.attempts("198.51.100.1") == 1


def test_delete_attempts(attempts):
    _lock(attempts)
    attempts.delete_attempts(IP)
    assert attempts.get(IP) is None
    attempts.check(IP)


def test_purge_expired_keeps_active_rows(attempts, clock):
    attempts.attempts("198.51.100.1")
    clock.advance(601)
    _lock(attempts)

    assert attempts.purge_expired() == 1
    assert attempts.get("198.51.100.1") is None
    assert attempts.get(IP) is not None


def test_purge_expired_drops_lapsed_locks(attempts, clock):
    _lock(attempts)
    clock.advance(601)
    assert attempts.purge_expired() == 1
    assert attempts.get(IP) is None


def test_rejects_zero_max_attempts(db_url):
    with pytest.raises(ValueError):
        AttemptsStore(db_url, max_attempts=0)
