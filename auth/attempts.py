"""
auth/attempts.py -- Failed-login tracker keyed by originating address.

Counts wrong-password logins per client IP and locks the address out once the
count reaches max_attempts inside the counting window. The slowapi limit on
POST /auth/login caps request volume; this tracker caps credential guessing,
which slowapi cannot see because it does not know which requests failed.

Lifecycle of one address:
  1. First failure creates the row: count=1, first_attempt_at=now.
  2. Further failures inside window_seconds increment count. A failure after
     the window (or an expired lock) has lapsed starts a fresh window at count=1.
  3. The failure that brings count to max_attempts sets locked_until and
     raises TooManyAttemptsError.
  4. check() raises TooManyAttemptsError until locked_until passes.
  5. A successful login calls delete_attempts(), removing the row.

purge_expired() drops rows whose window and lock have both lapsed. The API
lifespan runs it periodically so the table does not grow without bound.

Layer rule: no imports from api/, internship/, or mail/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from auth.errors import TooManyAttemptsError
from auth.models import LoginAttempts
from core.db import make_engine

logger = logging.getLogger("interntrack.auth.attempts")

_metadata = MetaData()

_attempts = Table(
    "login_attempts",
    _metadata,
    Column("ip", String(45), primary_key=True),
    Column("count", Integer, nullable=False, server_default="0"),
    Column("first_attempt_at", String(32), nullable=False),
    Column("locked_until", String(32)),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptsStore:
    """Per-address failed-login counter with lockout.

    Usage:
        attempts = AttemptsStore(db_url, max_attempts=5, window_seconds=900, lockout_seconds=900)
        attempts.check(ip)            # raises TooManyAttemptsError while locked
        attempts.attempts(ip)         # record a failure; raises on the one that locks
        attempts.delete_attempts(ip)  # successful login
    """

    def __init__(
        self,
        db_url: str,
        max_attempts: int = 5,
        window_seconds: int = 900,
        lockout_seconds: int = 900,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.window = timedelta(seconds=window_seconds)
        self.lockout = timedelta(seconds=lockout_seconds)
        self._clock = clock
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def get(self, ip: str) -> LoginAttempts | None:
        with self.engine.connect() as conn:
            row = conn.execute(_attempts.select().where(_attempts.c.ip == ip)).fetchone()
        if row is None:
            return None
        return LoginAttempts(
            ip=row.ip,
            count=row.count,
            first_attempt_at=row.first_attempt_at,
            locked_until=row.locked_until,
        )

    def check(self, ip: str) -> None:
        """Raise TooManyAttemptsError if the address is currently locked out."""
        record = self.get(ip)
        if record is None or not record.locked_until:
            return
        now = self._clock()
        locked_until = datetime.fromisoformat(record.locked_until)
        if locked_until > now:
            raise TooManyAttemptsError(retry_after=int((locked_until - now).total_seconds()) + 1)

    def attempts(self, ip: str) -> int:
        """Record one failed login for ip and return the count in the current window.

        Raises TooManyAttemptsError when this failure reaches max_attempts.
        """
        now = self._clock()
        with self.engine.begin() as conn:
            row = conn.execute(_attempts.select().where(_attempts.c.ip == ip)).fetchone()
            if row is None:
                count = 1
                conn.execute(_attempts.insert().values(ip=ip, count=count, first_attempt_at=now.isoformat()))
            elif datetime.fromisoformat(row.first_attempt_at) + self.window <= now or (
                row.locked_until and datetime.fromisoformat(row.locked_until) <= now
            ):
                count = 1
                conn.execute(
                    _attempts.update()
                    .where(_attempts.c.ip == ip)
                    .values(count=count, first_attempt_at=now.isoformat(), locked_until=None)
                )
            else:
                count = row.count + 1
                conn.execute(_attempts.update().where(_attempts.c.ip == ip).values(count=count))

            locked = count >= self.max_attempts
            if locked:
                locked_until = now + self.lockout
                conn.execute(
                    _attempts.update().where(_attempts.c.ip == ip).values(locked_until=locked_until.isoformat())
                )

        # Raised after the block so the lock is committed, not rolled back.
        if locked:
            logger.warning("Login locked for %s after %d failed attempts", ip, count)
            raise TooManyAttemptsError(retry_after=int(self.lockout.total_seconds()))
        return count

    def delete_attempts(self, ip: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(_attempts.delete().where(_attempts.c.ip == ip))

    def purge_expired(self) -> int:
        """Delete rows whose counting window and lock have both lapsed. Returns rows removed."""
        now = self._clock()
        window_cutoff = (now - self.window).isoformat()
        now_iso = now.isoformat()
        with self.engine.begin() as conn:
            result = conn.execute(
                _attempts.delete().where(
                    (_attempts.c.first_attempt_at <= window_cutoff)
                    & ((_attempts.c.locked_until.is_(None)) | (_attempts.c.locked_until <= now_iso))
                )
            )
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()
