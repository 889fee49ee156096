"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in internship/models.py -- dataclasses own domain shape; stores and the auth
service do the work.

Layer rule: no imports from api/, core/, internship/, or mail/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ERole(str, Enum):
    """Permission labels attached to users. Every registered user gets USER."""

    USER = "user"
    MENTOR = "mentor"
    ADMIN = "admin"


@dataclass
class User:
    """A registered account.

    password is None for accounts imported without a local password; login
    answers those with "Update your password" rather than a credential check.

    verify_token holds the single-use token from the most recent verification
    or password-reset email. It is cleared as soon as the link is followed.

    access_token / refresh_token are the currently issued pair. A bearer token
    is only honoured while it equals the stored copy, so logout (which clears
    both) and every re-issue revoke the previous pair.
    """

    email: str
    id: int | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    avatar: str | None = None
    direction: str | None = None
    telegram: str | None = None
    stream_id: int | None = None
    is_label_stream: bool = False
    verified: bool = False
    verify_token: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    is_sent_test: bool = False
    is_passed_test: bool = False
    is_sent_technical_task: bool = False
    is_passed_technical_task: bool = False
    created_at: str | None = None
    roles: list[str] = field(default_factory=list)


@dataclass
class TokenPair:
    """A freshly signed access/refresh token pair."""

    access_token: str
    refresh_token: str


@dataclass
class LoginAttempts:
    """Failed-login bookkeeping for one originating address.

    first_attempt_at anchors the counting window; locked_until is set once
    count reaches the configured maximum. Both are ISO 8601 UTC strings.
    """

    ip: str
    count: int = 0
    first_attempt_at: str | None = None
    locked_until: str | None = None
