"""
tests/test_tokens.py -- Unit tests for password hashing and JWT helpers.
"""

from __future__ import annotations

import uuid

from jose import jwt

from auth.models import ERole, User
from auth.tokens import (
    create_token_pair,
    decode_access_token,
    decode_refresh_token,
    generate_verify_token,
    hash_password,
    verify_password,
)
from core.config import get_settings


def _user() -> User:
    return User(id=7, email="intern@example.com", roles=[ERole.USER.value, ERole.MENTOR.value])


def test_hash_and_verify_password():
    hashed = hash_password("Secret123")
    assert hashed.startswith("$2")
    assert verify_password("Secret123", hashed)
    assert not verify_password("Secret124", hashed)


def test_verify_password_with_malformed_hash():
    assert verify_password("Secret123", "not-a-bcrypt-hash") is False


def test_pair_carries_email_id_roles():
    pair = create_token_pair(_user())
    access = decode_access_token(pair.access_token)
    refresh = decode_refresh_token(pair.refresh_token)
    for claims in (access, refresh):
        assert claims["email"] == "intern@example.com"
        assert claims["id"] == 7
        assert claims["roles"] == ["user", "mentor"]
    assert access["type"] == "access"
    assert refresh["type"] == "refresh"


def test_token_kinds_are_not_interchangeable():
    pair = create_token_pair(_user())
    assert decode_access_token(pair.refresh_token) is None
    assert decode_refresh_token(pair.access_token) is None


def test_every_pair_is_unique():
    first = create_token_pair(_user())
    second = create_token_pair(_user())
    assert first.access_token != second.access_token
    assert first.refresh_token != second.refresh_token


def test_expired_token_is_rejected():
    settings = get_settings()
    expired = jwt.encode(
        {"email": "intern@example.com", "id": 7, "roles": [], "type": "access", "exp": 1},
        settings.access_token_secret,
        algorithm="HS256",
    )
    assert decode_access_token(expired) is None


def test_garbage_token_is_rejected():
    assert decode_access_token("not.a.jwt") is None


def test_verify_token_is_uuid4():
    token = generate_verify_token()
    assert uuid.UUID(token).version == 4
    assert generate_verify_token() != token
