"""
api/routes/v1/auth.py -- Registration, verification, session and reference-data endpoints.

Routes:
  POST  /api/v1/auth/register                       -- create account, email verify link
  GET   /api/v1/auth/verify-email/{token}           -- confirm email; returns token pair
  POST  /api/v1/auth/login                          -- email/password login; returns pair + user
  POST  /api/v1/auth/check-phone                    -- 409 if the phone is taken
  POST  /api/v1/auth/request-change-password        -- email a reset link
  POST  /api/v1/auth/resend-email                   -- resend the pending link
  GET   /api/v1/auth/verify-change-password/{token} -- confirm reset link; returns token pair
  PATCH /api/v1/auth/change-password                -- set new password (access token)
  GET   /api/v1/auth/refresh                        -- new pair (refresh token)
  POST  /api/v1/auth/logout                         -- revoke the stored pair (access token)
  GET   /api/v1/auth/me                             -- current user's roles, stream, progress
  GET   /api/v1/auth/phone-codes                    -- country calling codes
  GET   /api/v1/auth/regex                          -- validation patterns for the frontend

Security:
  [H2] Login, register and the two mail-triggering routes are rate-limited
       per IP (Settings.login_rate_limit). The attempts tracker additionally
       locks an IP out after repeated wrong passwords.
  [M5] Cache-Control: no-store on every response that carries tokens.

Handlers are plain `def` because every one of them does blocking work
(SQLAlchemy, bcrypt, SMTP); FastAPI runs them in its thread pool.
Workflow errors are raised by AuthService as AuthError and rendered by the
exception handler in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import auth_rate_limit, limiter
from api.models import (
    ChangePasswordRequest,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PhoneCode,
    PhoneRequest,
    RegexResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserData,
)
from auth.dependencies import get_current_user, get_refresh_user
from auth.models import TokenPair, User
from auth.service import AuthService

# Auth policy:
# - register, verify-*, login, check-phone, request-change-password,
#   resend-email, phone-codes, regex:         public
# - change-password, logout, me:              access token (get_current_user)
# - refresh:                                  refresh token (get_refresh_user)
router = APIRouter(prefix="/auth")


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _tokens(pair: TokenPair, response: Response) -> TokenResponse:
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


# ---------------------------------------------------------------------------
# Registration and verification
# ---------------------------------------------------------------------------


@limiter.limit(auth_rate_limit)
@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create an unverified account and email the verification link."""
    user = _service(request).register_user(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        telegram=body.telegram,
        direction=body.direction,
    )
    return RegisterResponse(id=user.id, email=user.email, roles=user.roles, is_verified_email=user.verified)


@router.get("/verify-email/{verify_token}", response_model=TokenResponse)
def verify_email(request: Request, response: Response, verify_token: str) -> TokenResponse:
    """Mark the email as verified and start a session."""
    return _tokens(_service(request).verify_email(verify_token), response)


@limiter.limit(auth_rate_limit)
@router.post("/resend-email", response_model=MessageResponse)
def resend_email(request: Request, body: EmailRequest) -> MessageResponse:
    return MessageResponse(**_service(request).resend_email(body.email))


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@limiter.limit(auth_rate_limit)  # [H2]
@router.post("/login", response_model=LoginResponse, response_model_exclude_unset=True)
def login(request: Request, response: Response, body: LoginRequest) -> dict:
    """Authenticate with email and password.

    Returns the token pair together with the user's roles, stream and
    progress flags (see AuthService.response_data).
    """
    data = _service(request).login(body.email, body.password, _client_ip(request))
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return data


@router.get("/refresh", response_model=TokenResponse)
def refresh(request: Request, response: Response, user: User = Depends(get_refresh_user)) -> TokenResponse:
    """Exchange a valid refresh token for a new pair. The old pair is revoked."""
    return _tokens(_service(request).refresh_token(user), response)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, user: User = Depends(get_current_user)) -> MessageResponse:
    """Revoke the current access/refresh pair."""
    _service(request).logout(user.email)
    return MessageResponse(message="Logged out.")


@router.get("/me", response_model=UserData, response_model_exclude_unset=True)
def me(request: Request, user: User = Depends(get_current_user)) -> dict:
    """Return the authenticated user's roles, stream and progress. Issues no tokens."""
    return _service(request).user_data(user)


# ---------------------------------------------------------------------------
# Password change
# ---------------------------------------------------------------------------


@limiter.limit(auth_rate_limit)
@router.post("/request-change-password", response_model=MessageResponse)
def request_change_password(request: Request, body: EmailRequest) -> MessageResponse:
    return MessageResponse(**_service(request).request_change_password(body.email))


@router.get("/verify-change-password/{verify_token}", response_model=TokenResponse)
def verify_change_password(request: Request, response: Response, verify_token: str) -> TokenResponse:
    """Confirm a reset link. The returned access token authorizes PATCH /change-password."""
    return _tokens(_service(request).verify_change_password(verify_token), response)


@router.patch("/change-password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
) -> MessageResponse:
    result = _service(request).change_password(body.password, body.confirm_password, user.id)
    return MessageResponse(**result)


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@router.post("/check-phone", response_model=MessageResponse)
def check_phone(request: Request, body: PhoneRequest) -> MessageResponse:
    """Return {"message": "OK"} when no account uses this phone, 409 otherwise."""
    return MessageResponse(message=_service(request).check_phone(body.phone))


@router.get("/phone-codes", response_model=list[PhoneCode])
def phone_codes(request: Request) -> list[dict]:
    return _service(request).get_phone_codes()


@router.get("/regex", response_model=RegexResponse)
def regular_expressions(request: Request) -> dict:
    return _service(request).get_regular_expressions()
