"""
tests/test_patterns.py -- Validation patterns and the phone-code list.
"""

from __future__ import annotations

import pytest

from core.countries import phone_codes
from core.patterns import EMAIL_RE, LINK_RE, PASSWORD_RE, PHONE_RE, TELEGRAM_RE, regular_expressions, to_js_literal


@pytest.mark.parametrize(
    "password,ok",
    [
        ("Secret123", True),
        ("secret123", False),  # no uppercase
        ("SECRET123", False),  # no lowercase
        ("SecretPass", False),  # no digit
        ("Sec1", False),  # too short
        ("Secret 123", False),  # whitespace
        ("Aa1" + "x" * 61, True),
        ("Aa1" + "x" * 62, False),
    ],
)
def test_password_pattern(password, ok):
    assert bool(PASSWORD_RE.match(password)) is ok


@pytest.mark.parametrize(
    "phone,ok",
    [("+441234567890", True), ("441234567890", False), ("+0123456789", False), ("+1234567", False)],
)
def test_phone_pattern(phone, ok):
    assert bool(PHONE_RE.match(phone)) is ok


def test_telegram_pattern():
    assert TELEGRAM_RE.match("@intern_1")
    assert not TELEGRAM_RE.match("intern_1")
    assert not TELEGRAM_RE.match("@abc")


def test_email_pattern():
    assert EMAIL_RE.match("intern.one+tag@example.co.uk")
    assert not EMAIL_RE.match("intern@localhost")


def test_link_pattern():
    assert LINK_RE.match("https://github.com/intern/task?tab=readme")
    assert not LINK_RE.match("ftp://example.com")
    assert not LINK_RE.match("javascript:alert(1)")


def test_js_literal():
    assert to_js_literal(r"^\d+$") == r"/^\d+$/"
    assert regular_expressions()["phoneRegex"] == r"/^\+[1-9]\d{7,14}$/"


def test_phone_codes_sorted_and_complete():
    codes = phone_codes()
    names = [c["name"] for c in codes]
    assert names == sorted(names)
    by_alpha2 = {c["alpha2"]: c for c in codes}
    assert by_alpha2["US"]["phone_code"] == "+1"
    assert by_alpha2["DE"]["phone_code"] == "+49"
    assert "001" not in by_alpha2
    assert all(c["phone_code"].startswith("+") for c in codes)
