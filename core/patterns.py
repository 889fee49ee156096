"""
core/patterns.py -- Validation regular expressions shared by every layer.

These are domain rules, not API contracts. The request models in api/models.py
validate against them, and GET /api/v1/auth/regex hands the same patterns to
the browser so client-side and server-side validation never drift apart.

Every pattern is written in the common subset of Python `re` and JavaScript
RegExp syntax. Forward slashes are escaped so the literal form produced by
to_js_literal() is a valid JavaScript regex.
"""

import re

LINK_PATTERN = r"^https?:\/\/(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&\/=]*)$"
TELEGRAM_PATTERN = r"^@[a-zA-Z0-9_]{5,32}$"
PHONE_PATTERN = r"^\+[1-9]\d{7,14}$"
# At least one lowercase letter, one uppercase letter and one digit; 8-64 chars, no whitespace.
PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)\S{8,64}$"
EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

LINK_RE = re.compile(LINK_PATTERN)
TELEGRAM_RE = re.compile(TELEGRAM_PATTERN)
PHONE_RE = re.compile(PHONE_PATTERN)
PASSWORD_RE = re.compile(PASSWORD_PATTERN)
EMAIL_RE = re.compile(EMAIL_PATTERN)


def to_js_literal(pattern: str) -> str:
    """Render a pattern as a JavaScript regex literal, e.g. ``/^a+$/``."""
    return f"/{pattern}/"


def regular_expressions() -> dict[str, str]:
    """Return every validation pattern keyed by its client-side name."""
    return {
        "linkRegex": to_js_literal(LINK_PATTERN),
        "telegramRegex": to_js_literal(TELEGRAM_PATTERN),
        "phoneRegex": to_js_literal(PHONE_PATTERN),
        "passwordRegex": to_js_literal(PASSWORD_PATTERN),
        "emailRegex": to_js_literal(EMAIL_PATTERN),
    }
