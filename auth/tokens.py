"""
auth/tokens.py -- Password hashing, JWT issuing, and verify-token utilities.

Security design decisions:
  JWT: python-jose with HS256. Two token kinds, each with its own secret:
       access  -- short-lived (15 minutes by default), authorizes API calls.
       refresh -- long-lived (30 days by default), only mints new pairs.
       Both carry email, id and roles. A jti claim makes every issued token
       unique, so a re-issue inside the same second still revokes the old one.
       Decoding returns None on any failure -- the dependency layer turns that
       into a 401.

  Passwords: bcrypt directly (no passlib wrapper). The cost factor comes from
       Settings.bcrypt_rounds (default 10).

  Verify tokens: uuid4 strings. They are single-use bearer secrets emailed to
       the account owner, so they only need to be unguessable, not signed.

Layer rule: no imports from api/, internship/, or mail/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import TokenPair
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User

_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. PASSWORD_PATTERN caps passwords
    at 64 characters at the API layer, which keeps ASCII input under that limit.
    """
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the DB (e.g. imported from another system).
        return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def _secret_for(kind: str) -> str:
    settings = get_settings()
    return settings.access_token_secret if kind == ACCESS else settings.refresh_token_secret


def _encode(payload: dict, kind: str, expire_seconds: int) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        **payload,
        "type": kind,
        "iat": now,
        "exp": now + timedelta(seconds=expire_seconds),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, _secret_for(kind), algorithm=_ALGORITHM)


def token_payload(user: User) -> dict:
    """Claims shared by both token kinds: email, id and role labels."""
    roles = [r.value if hasattr(r, "value") else str(r) for r in user.roles]
    return {"email": user.email, "id": user.id, "roles": roles}


def create_token_pair(user: User) -> TokenPair:
    """Sign a fresh access/refresh pair for user with the configured lifetimes."""
    settings = get_settings()
    payload = token_payload(user)
    return TokenPair(
        access_token=_encode(payload, ACCESS, settings.access_token_expire_seconds),
        refresh_token=_encode(payload, REFRESH, settings.refresh_token_expire_seconds),
    )


def decode_token(token: str, kind: str) -> dict | None:
    """Decode and verify a JWT of the given kind. Returns the claims or None on any failure.

    A refresh token presented as an access token (or vice versa) fails twice
    over: the signature is checked against the wrong secret, and the type
    claim would not match even if the secrets were shared.
    """
    try:
        payload = jwt.decode(token, _secret_for(kind), algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != kind or "id" not in payload or "email" not in payload:
        return None
    return payload


def decode_access_token(token: str) -> dict | None:
    return decode_token(token, ACCESS)


def decode_refresh_token(token: str) -> dict | None:
    return decode_token(token, REFRESH)


# ---------------------------------------------------------------------------
# Verify tokens
# ---------------------------------------------------------------------------


def generate_verify_token() -> str:
    """Return a new single-use verify token (uuid4, 36 chars)."""
    return str(uuid.uuid4())
