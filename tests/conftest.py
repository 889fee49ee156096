"""
tests/conftest.py -- Shared test fixtures for InternTrack unit and integration tests.

This module provides:
  - RecordingMailer: stands in for MailSender and keeps every message it was asked to send
  - make_stores(): creates isolated in-memory DBs for users, attempts and internship data
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - db_url / stores / mailer / service: per-test fixtures for unit tests of AuthService
  - api_client: TestClient plus an admin session for API integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates the token secrets in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import asyncio
import os
import re
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate the token secrets in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
# Minimum bcrypt cost keeps the suite fast.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.attempts import AttemptsStore
from auth.models import ERole, User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import create_token_pair, hash_password
from internship.store import InternshipStore

BASE_URL = "http://interntrack.test"
ADMIN_EMAIL = "admin@interntrack.test"
ADMIN_PASSWORD = "AdminPass1"

_TOKEN_IN_LINK = re.compile(r"/api/v1/auth/(verify-email|verify-change-password)/([0-9a-f-]{36})")


# ---------------------------------------------------------------------------
# Mail
# ---------------------------------------------------------------------------


@dataclass
class SentMail:
    to_email: str
    html_body: str
    name: str

    @property
    def path(self) -> str:
        return _TOKEN_IN_LINK.search(self.html_body).group(1)

    @property
    def token(self) -> str:
        return _TOKEN_IN_LINK.search(self.html_body).group(2)


@dataclass
class RecordingMailer:
    """In-process replacement for MailSender. Set fail=True to simulate SMTP errors."""

    fail: bool = False
    sent: list[SentMail] = field(default_factory=list)

    def send_email(self, to_email: str, html_body: str, name: str) -> bool:
        if self.fail:
            return False
        self.sent.append(SentMail(to_email, html_body, name))
        return True

    def last_to(self, email: str) -> SentMail:
        return [m for m in self.sent if m.to_email == email][-1]


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


@dataclass
class Stores:
    users: UserStore
    attempts: AttemptsStore
    internship: InternshipStore

    def close(self) -> None:
        self.users.close()
        self.attempts.close()
        self.internship.close()


def make_stores(db_suffix: str) -> Stores:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   (and individual unit tests) don't share state.
    """
    db_url = f"sqlite:///file:test_interntrack_{db_suffix}?mode=memory&cache=shared&uri=true"
    return Stores(
        users=UserStore(db_url=db_url),
        attempts=AttemptsStore(db_url=db_url, max_attempts=5, window_seconds=900, lockout_seconds=900),
        internship=InternshipStore(db_url=db_url),
    )


def create_session_user(
    user_store: UserStore,
    email: str,
    password: str,
    roles: list[str] | None = None,
    verified: bool = True,
) -> tuple[User, str]:
    """Insert a user and store a fresh token pair. Returns (user, access_token)."""
    user = User(
        email=email,
        password=hash_password(password),
        verified=verified,
        roles=roles or [ERole.USER.value],
    )
    user.id = user_store.create_user(user)
    pair = create_token_pair(user)
    user_store.store_tokens(user.id, pair.access_token, pair.refresh_token)
    return user, pair.access_token


def _patch_lifespan(stores: Stores, mailer: RecordingMailer):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and the recording mailer into app.state so
    TestClient routes see isolated test DBs and never open an SMTP connection.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = stores.users
        app.state.attempts = stores.attempts
        app.state.internship = stores.internship
        app.state.mail_sender = mailer
        app.state.auth_service = AuthService(
            user_store=stores.users,
            attempts=stores.attempts,
            mail_sender=mailer,
            streams=stores.internship,
            base_url=BASE_URL,
        )
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit-test fixtures -- one fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def db_url() -> str:
    return f"sqlite:///file:test_unit_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def stores() -> Generator[Stores, None, None]:
    s = make_stores(f"unit_{uuid.uuid4().hex}")
    yield s
    s.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def service(stores: Stores, mailer: RecordingMailer) -> AuthService:
    return AuthService(
        user_store=stores.users,
        attempts=stores.attempts,
        mail_sender=mailer,
        streams=stores.internship,
        base_url=BASE_URL,
    )


# ---------------------------------------------------------------------------
# Integration fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    stores: Stores
    mailer: RecordingMailer
    admin_id: int
    admin_token: str

    @property
    def admin_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.admin_token}"}


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores. The
    slowapi limiter is switched off: every TestClient request comes from the
    same address and would otherwise trip the per-IP limits mid-module.
    """
    stores = make_stores(request.module.__name__.rsplit(".", 1)[-1])
    mailer = RecordingMailer()

    admin, token = create_session_user(
        stores.users, ADMIN_EMAIL, ADMIN_PASSWORD, roles=[ERole.USER.value, ERole.ADMIN.value]
    )

    app.router.lifespan_context = _patch_lifespan(stores, mailer)
    limiter.enabled = False

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client=client, stores=stores, mailer=mailer, admin_id=admin.id, admin_token=token)

    limiter.enabled = True
    stores.close()
