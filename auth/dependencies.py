"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Tokens arrive as "Authorization: Bearer <token>". Two kinds are accepted,
each on its own set of routes:

  get_current_user()  -- access token, for every authenticated route.
  get_refresh_user()  -- refresh token, only for GET /auth/refresh.

A token is honoured only while it equals the copy stored on the user row.
Logout clears the stored pair and every re-issue overwrites it, so a stolen
token stops working as soon as its owner logs out or logs in again.

require_roles() wraps get_current_user() and raises HTTP 403 unless the user
holds at least one of the given roles.

Layer rule: no imports from internship/ or mail/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac
from collections.abc import Callable

from fastapi import Depends, HTTPException, Request

from auth.models import ERole, User
from auth.store import UserStore
from auth.tokens import ACCESS, REFRESH, decode_access_token, decode_refresh_token


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header[:7].lower() == "bearer ":
        token = auth_header[7:].strip()
        return token or None
    return None


def _unauthorized(message: str = "Authentication required.") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": message},
    )


def _resolve(request: Request, kind: str) -> User | None:
    """Decode the bearer token of the given kind and load its still-current owner."""
    token = _bearer_token(request)
    if not token:
        return None
    payload = decode_access_token(token) if kind == ACCESS else decode_refresh_token(token)
    if payload is None:
        return None
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(payload["id"])
    if user is None:
        return None
    stored = user.access_token if kind == ACCESS else user.refresh_token
    # Constant-time comparison; a revoked token must not be distinguishable by timing.
    if not stored or not hmac.compare_digest(stored.encode(), token.encode()):
        return None
    return user


def try_get_current_user(request: Request) -> User | None:
    """Return the user behind a valid access token, or None. Never raises."""
    return _resolve(request, ACCESS)


def get_current_user(request: Request) -> User:
    """Require a valid, unrevoked access token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise _unauthorized()
    return user


def get_refresh_user(request: Request) -> User:
    """Require a valid, unrevoked refresh token. Raises HTTP 401 otherwise."""
    user = _resolve(request, REFRESH)
    if user is None:
        raise _unauthorized("Valid refresh token required.")
    return user


def require_verified(user: User = Depends(get_current_user)) -> User:
    """Require an authenticated user whose email is verified. Raises HTTP 403 if not."""
    if not user.verified:
        raise HTTPException(
            status_code=403,
            detail={"code": "email_not_verified", "message": "Email not verified."},
        )
    return user


def require_roles(*roles: ERole) -> Callable[..., User]:
    """Build a dependency that requires one of the given roles.

    Use as a FastAPI dependency:
        @router.post("/directions")
        async def route(user: User = Depends(require_roles(ERole.ADMIN))): ...
    """
    allowed = {ERole(r).value for r in roles}

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not allowed.intersection(user.roles):
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "Insufficient role."},
            )
        return user

    return dependency
