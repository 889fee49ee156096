"""
API request and response models for InternTrack REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
internship/models.py, which own the internal domain representation. Route
handlers map between the two.

Wire format: the frontend speaks camelCase (accessToken, isVerifiedEmail), so
every model derives its aliases with to_camel. populate_by_name=True lets
Python callers (and tests) still construct models with snake_case names.
The phone-code entries are the exception -- their keys (phone_code, flag_url)
are snake_case on the wire.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.patterns import EMAIL_PATTERN, LINK_PATTERN, PASSWORD_PATTERN, PHONE_PATTERN, TELEGRAM_PATTERN
from internship.models import Difficulty

_Email = Annotated[str, Field(max_length=255, pattern=EMAIL_PATTERN)]
_Password = Annotated[str, Field(pattern=PASSWORD_PATTERN)]
_Phone = Annotated[str, Field(pattern=PHONE_PATTERN)]
_Link = Annotated[str, Field(max_length=2048, pattern=LINK_PATTERN)]


class CamelModel(BaseModel):
    """Base for every model that travels as camelCase JSON."""

    # Lookaheads in PASSWORD_PATTERN need the Python regex engine.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        regex_engine="python-re",
    )


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(CamelModel):
    """Request body for POST /api/v1/auth/register."""

    email: _Email
    password: _Password
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[_Phone] = None
    telegram: Optional[str] = Field(default=None, pattern=TELEGRAM_PATTERN)
    direction: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(CamelModel):
    """Request body for POST /api/v1/auth/login.

    The password is not checked against PASSWORD_PATTERN here: accounts
    created before a pattern change must still be able to log in.
    """

    email: _Email
    password: str = Field(min_length=1, max_length=255)


class EmailRequest(CamelModel):
    """Request body for POST /auth/request-change-password and /auth/resend-email."""

    email: _Email


class PhoneRequest(CamelModel):
    """Request body for POST /api/v1/auth/check-phone."""

    phone: _Phone


class ChangePasswordRequest(CamelModel):
    """Request body for PATCH /api/v1/auth/change-password."""

    password: _Password
    confirm_password: str = Field(max_length=255)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class TokenResponse(CamelModel):
    """A freshly issued access/refresh pair."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    refresh_token: str
    access_token: str


class ProgressFlags(CamelModel):
    is_sent: bool
    is_success: bool


class UserData(CamelModel):
    """The user block of a login response.

    stream is an empty object when the user has no stream. first_name, avatar
    and direction are omitted (not null) until the profile is complete, so
    routes serialize with exclude_unset.
    """

    id: int
    roles: list[str]
    is_label_stream: bool
    stream: dict[str, Any]
    is_verified_email: bool
    test: ProgressFlags
    task: ProgressFlags
    first_name: Optional[str] = None
    avatar: Optional[str] = None
    direction: Optional[str] = None


class LoginResponse(CamelModel):
    """Response for POST /auth/login."""

    refresh_token: str
    access_token: str
    user: UserData


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class RegisterResponse(CamelModel):
    """Response for POST /api/v1/auth/register. Never includes the verify token."""

    id: int
    email: str
    roles: list[str]
    is_verified_email: bool


class PhoneCode(BaseModel):
    """One entry of GET /api/v1/auth/phone-codes. Keys are snake_case on the wire."""

    model_config = ConfigDict(frozen=True)

    phone_code: str
    name: str
    alpha2: str
    flag_url: str


class RegexResponse(CamelModel):
    """Response for GET /api/v1/auth/regex. Values are JavaScript regex literals."""

    link_regex: str
    telegram_regex: str
    phone_regex: str
    password_regex: str
    email_regex: str


# ---------------------------------------------------------------------------
# Internship reference data
# ---------------------------------------------------------------------------


class DirectionCreate(CamelModel):
    """Request body for POST /api/v1/directions. Surrounding whitespace is stripped."""

    direction: str = Field(min_length=1, max_length=100)


class DirectionResponse(CamelModel):
    id: int
    direction: str


class StreamResponse(CamelModel):
    id: int
    stream_direction: str
    is_active: bool
    start_date: str


class TechnicalTestSubmit(CamelModel):
    """Request body for POST /api/v1/technical-tests."""

    live_page_link: _Link
    repository_link: _Link
    difficulty: Difficulty = Difficulty.EASY
    comments: str = Field(default="", max_length=5000)


class TechnicalTestResponse(CamelModel):
    id: int
    user_id: int
    live_page_link: str
    repository_link: str
    difficulty: Difficulty
    comments: str
    created_at: str


class TechnicalTestReview(CamelModel):
    """Request body for PATCH /api/v1/technical-tests/{user_id}/review."""

    is_passed: bool


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
