"""
auth/service.py -- The account workflow: register, verify, login, refresh, reset, logout.

AuthService orchestrates the collaborators:

  UserStore      -- users, roles, stored token pair
  AttemptsStore  -- failed-login counter per originating address
  EmailSender    -- delivers verify / reset links (mail.sender.MailSender)
  StreamLookup   -- resolves a user's internship stream (internship.store)

Verification state machine (per user):

  register ──> verified=False, verify_token=T1 ──(GET verify-email/T1)──> verified=True, token cleared
  request-change-password ──> verify_token=T2 ──(GET verify-change-password/T2)──> token cleared, pair issued
  PATCH change-password (with the issued access token) ──> password replaced

Every successful verification, login and refresh issues a new token pair and
stores it on the user row. The dependency layer only accepts a bearer token
that equals the stored copy, so issuing a pair revokes the previous one and
logout (which clears both) ends the session everywhere.

Errors are raised as auth.errors.AuthError subclasses; nothing here imports
FastAPI.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Protocol

from sqlalchemy.exc import IntegrityError

from auth.attempts import AttemptsStore
from auth.errors import BadRequestError, ConflictError, MailDeliveryError, NotFoundError, UnauthorizedError
from auth.models import ERole, TokenPair, User
from auth.store import UserStore
from auth.tokens import create_token_pair, generate_verify_token, hash_password, verify_password
from core.countries import phone_codes
from core.patterns import regular_expressions

logger = logging.getLogger("interntrack.auth")

VERIFY_EMAIL_PATH = "verify-email"
VERIFY_CHANGE_PASSWORD_PATH = "verify-change-password"

# Lookup fields accepted by _get_user(); mirrors UserStore.find_by().
_USER_FIELDS = ("email", "verify_token", "id")


class EmailSender(Protocol):
    def send_email(self, to_email: str, html_body: str, name: str) -> bool: ...


class StreamLookup(Protocol):
    def get_stream(self, stream_id: int | None) -> Any: ...


class AuthService:
    """Account workflow over the user store, attempts tracker and mail sender.

    Usage:
        service = AuthService(user_store, attempts, mail_sender, internship_store, base_url)
        user = service.register_user("intern@example.com", "Secret123")
        pair = service.verify_email(user.verify_token)
        data = service.login("intern@example.com", "Secret123", "203.0.113.7")
    """

    def __init__(
        self,
        user_store: UserStore,
        attempts: AttemptsStore,
        mail_sender: EmailSender,
        streams: StreamLookup,
        base_url: str,
    ) -> None:
        self.user_store = user_store
        self.attempts = attempts
        self.mail_sender = mail_sender
        self.streams = streams
        self.base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Registration and email verification
    # ------------------------------------------------------------------

    def register_user(
        self,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
        telegram: str | None = None,
        direction: str | None = None,
    ) -> User:
        """Create an unverified account and email its verification link.

        A failed send does not undo the registration: the account exists and
        POST /auth/resend-email delivers the same token again.
        """
        email = email.strip().lower()
        if self.user_store.get_by_email(email) is not None:
            raise ConflictError("User is already exists")
        if phone and self.user_store.get_by_phone(phone) is not None:
            raise ConflictError("Phone number already exists")

        verify_token = generate_verify_token()
        user = User(
            email=email,
            password=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            telegram=telegram,
            direction=direction,
            verify_token=verify_token,
            roles=[ERole.USER.value],
        )
        try:
            user.id = self.user_store.create_user(user)
        except IntegrityError as exc:
            # Two registrations for the same email raced past the check above.
            raise ConflictError("User is already exists") from exc

        if not self._send_email_handler(verify_token, VERIFY_EMAIL_PATH, email, first_name):
            logger.warning("Verification email for user_id=%s was not delivered", user.id)
        logger.info("Registered user_id=%s", user.id)
        return user

    def verify_email(self, verify_token: str) -> TokenPair:
        user = self.user_store.get_by_verify_token(verify_token)
        if user is None:
            raise NotFoundError("User not found")
        self.user_store.update_user(user.id, verified=True, verify_token=None)
        logger.info("Email verified for user_id=%s", user.id)
        return self._generate_tokens(user)

    def resend_email(self, email: str) -> dict[str, str]:
        """Resend the pending verify token.

        Unverified users get the verify-email link again; verified users with
        a pending reset get the verify-change-password link.
        """
        user = self._get_user("email", email)
        path = VERIFY_EMAIL_PATH if not user.verified else VERIFY_CHANGE_PASSWORD_PATH
        if not self._send_email_handler(user.verify_token, path, user.email, user.first_name):
            raise MailDeliveryError()
        return {"message": "Email resend"}

    # ------------------------------------------------------------------
    # Login, refresh, logout
    # ------------------------------------------------------------------

    def login(self, email: str, password: str, user_ip: str) -> dict[str, Any]:
        """Authenticate and return the session payload built by response_data().

        Order of checks:
          1. address locked out          -> TooManyAttemptsError
          2. unknown email               -> NotFoundError
          3. account without a password  -> BadRequestError
          4. wrong password              -> failed attempt recorded, UnauthorizedError
                                            (TooManyAttemptsError if it reached the limit)
          5. email not verified          -> UnauthorizedError
        A successful login clears the address' failed attempts.
        """
        self.attempts.check(user_ip)
        user = self._user_validate(email, password, user_ip)
        logger.info("Login user_id=%s from %s", user.id, user_ip)
        return self.response_data(user.email)

    def response_data(self, email: str) -> dict[str, Any]:
        """Issue a token pair and describe the user's progress for the frontend."""
        user = self._get_user("email", email)
        tokens = self._generate_tokens(user)
        return {
            "refreshToken": tokens.refresh_token,
            "accessToken": tokens.access_token,
            "user": self.user_data(user),
        }

    def user_data(self, user: User) -> dict[str, Any]:
        """Describe the user's roles, stream and progress without issuing tokens.

        firstName, avatar and direction are only present once the profile is
        filled in (first name AND phone set); the frontend uses their absence
        to route the user to the profile form.
        """
        stream = self.streams.get_stream(user.stream_id)
        stream_data: dict[str, Any] = {}
        if stream is not None:
            stream_data = {
                "id": stream.id,
                "streamDirection": stream.stream_direction,
                "isActive": stream.is_active,
                "startDate": stream.start_date,
            }
        data: dict[str, Any] = {
            "id": user.id,
            "roles": list(user.roles),
            "isLabelStream": user.is_label_stream,
            "stream": stream_data,
            "isVerifiedEmail": user.verified,
            "test": {"isSent": user.is_sent_test, "isSuccess": user.is_passed_test},
            "task": {"isSent": user.is_sent_technical_task, "isSuccess": user.is_passed_technical_task},
        }
        if user.first_name and user.phone:
            data["firstName"] = user.first_name
            data["avatar"] = user.avatar
            data["direction"] = user.direction
        return data

    def refresh_token(self, user: User) -> TokenPair:
        return self._generate_tokens(user)

    def logout(self, email: str) -> None:
        user = self.user_store.get_by_email(email)
        if user is None:
            raise NotFoundError("Not found")
        self.user_store.store_tokens(user.id, None, None)
        logger.info("Logout user_id=%s", user.id)

    # ------------------------------------------------------------------
    # Password change
    # ------------------------------------------------------------------

    def request_change_password(self, email: str) -> dict[str, str]:
        """Email a fresh verify-change-password link.

        The new token is stored only after the mail went out, so a failed
        send leaves any earlier pending link valid.
        """
        user = self._get_user("email", email)
        verify_token = generate_verify_token()
        if not self._send_email_handler(verify_token, VERIFY_CHANGE_PASSWORD_PATH, user.email, user.first_name):
            raise MailDeliveryError()
        self.user_store.update_user(user.id, verify_token=verify_token)
        logger.info("Password change requested for user_id=%s", user.id)
        return {"message": "Email send"}

    def verify_change_password(self, verify_token: str) -> TokenPair:
        user = self._get_user("verify_token", verify_token)
        self.user_store.update_user(user.id, verify_token=None)
        return self._generate_tokens(user)

    def change_password(self, password: str, confirm_password: str, user_id: int) -> dict[str, str]:
        if password != confirm_password:
            raise BadRequestError("Passwords do not match")
        if not self.user_store.update_user(user_id, password=hash_password(password)):
            raise NotFoundError("Not found")
        logger.info("Password changed for user_id=%s", user_id)
        return {"message": "Password changed"}

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    def check_phone(self, phone: str) -> str:
        if self.user_store.get_by_phone(phone) is not None:
            raise ConflictError("Phone number already exists")
        return "OK"

    def get_phone_codes(self) -> list[dict[str, str]]:
        return [dict(entry) for entry in phone_codes()]

    def get_regular_expressions(self) -> dict[str, str]:
        return regular_expressions()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _user_validate(self, email: str, password: str, user_ip: str) -> User:
        user = self._get_user("email", email)
        if not user.password:
            raise BadRequestError("Update your password")
        if not verify_password(password, user.password):
            self.attempts.attempts(user_ip)
            raise UnauthorizedError("Password is wrong", code="bad_credentials")
        if not user.verified:
            raise UnauthorizedError("Email not verified", code="email_not_verified")
        self.attempts.delete_attempts(user_ip)
        return user

    def _get_user(self, field: str, value: Any) -> User:
        if field not in _USER_FIELDS:
            raise ValueError(f"Unsupported user lookup field: {field!r}")
        if field == "email":
            user = self.user_store.get_by_email(value)
        else:
            user = self.user_store.find_by(field, value)
        if user is None:
            raise NotFoundError("Not found")
        return user

    def _generate_tokens(self, user: User) -> TokenPair:
        pair = create_token_pair(user)
        self.user_store.store_tokens(user.id, pair.access_token, pair.refresh_token)
        return pair

    def _verification_html(self, name: str, path: str, verify_token: str) -> str:
        link = f"{self.base_url}/api/v1/auth/{path}/{verify_token}"
        return (
            f"<p>Hi {html.escape(name)}, please confirm that this is your email address</p>"
            f'<a href="{link}">Confirm email</a>'
        )

    def _send_email_handler(self, verify_token: str | None, path: str, email: str, name: str | None) -> bool:
        if not verify_token:
            raise ConflictError("Email is already verified")
        name_for_send = name or email
        html_body = self._verification_html(name_for_send, path, verify_token)
        return bool(self.mail_sender.send_email(email, html_body, name_for_send))
