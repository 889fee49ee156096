#!/usr/bin/env python3
"""
InternTrack -- administration commands.

Usage:
  python main.py create-admin --email admin@example.com --password 'Secret123'
  python main.py add-stream --direction FullStack --start-date 2026-11-01
  python main.py add-stream --direction QA --start-date 2026-09-01 --inactive
  python main.py add-direction "Project Manager"

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the database the API uses (see core/config.py).
"""

import argparse
import re
import sys
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import ERole, User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings
from core.patterns import EMAIL_RE, PASSWORD_RE
from internship.models import InternshipStream
from internship.store import InternshipStore

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def create_admin(store: UserStore, email: str, password: str) -> Optional[int]:
    """Create a verified admin account, or promote an existing account to admin.

    Returns the user id, or None if the input was rejected.
    """
    email = email.strip().lower()
    if not EMAIL_RE.match(email):
        print(f"  [!] '{email}' is not a valid email address.")
        return None

    existing = store.get_by_email(email)
    if existing is not None:
        store.add_role(existing.id, ERole.ADMIN)
        print(f"  Granted admin to existing user {email} (id={existing.id}).")
        return existing.id

    if not PASSWORD_RE.match(password):
        print("  [!] Password needs 8-64 characters with a lowercase letter, an uppercase letter and a digit.")
        return None

    user_id = store.create_user(
        User(
            email=email,
            password=hash_password(password),
            verified=True,
            roles=[ERole.USER.value, ERole.ADMIN.value],
        )
    )
    print(f"  Created admin {email} (id={user_id}).")
    return user_id


def add_stream(store: InternshipStore, direction: str, start_date: str, active: bool = True) -> Optional[int]:
    direction = direction.strip()
    if not direction:
        print("  [!] Stream direction must not be empty.")
        return None
    if not _DATE_RE.match(start_date):
        print(f"  [!] '{start_date}' is not a date. Expected format: YYYY-MM-DD")
        return None
    try:
        date.fromisoformat(start_date)
    except ValueError:
        print(f"  [!] '{start_date}' is not a valid calendar date.")
        return None
    stream_id = store.create_stream(InternshipStream(stream_direction=direction, start_date=start_date, is_active=active))
    print(f"  Created stream {direction} starting {start_date} (id={stream_id}).")
    return stream_id


def add_direction(store: InternshipStore, direction: str) -> Optional[int]:
    direction = direction.strip()
    if not direction:
        print("  [!] Direction must not be empty.")
        return None
    try:
        direction_id = store.add_direction(direction)
    except IntegrityError:
        print(f"  [!] Direction '{direction}' already exists.")
        return None
    print(f"  Added direction {direction} (id={direction_id}).")
    return direction_id


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="interntrack",
        description="InternTrack administration commands.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin --email admin@example.com --password 'Secret123'
  python main.py add-stream --direction FullStack --start-date 2026-11-01
  python main.py add-direction QA
        """,
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="Override DATABASE_URL for this command",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    admin = commands.add_parser("create-admin", help="Create a verified admin or promote an existing user")
    admin.add_argument("--email", required=True)
    admin.add_argument("--password", default="", help="Required when the account does not exist yet")

    stream = commands.add_parser("add-stream", help="Create an internship stream")
    stream.add_argument("--direction", required=True)
    stream.add_argument("--start-date", required=True, metavar="YYYY-MM-DD")
    stream.add_argument("--inactive", action="store_true", help="Create the stream as inactive")

    direction = commands.add_parser("add-direction", help="Add an internship direction")
    direction.add_argument("name")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    db_url = args.database_url or get_settings().database_url

    if args.command == "create-admin":
        store = UserStore(db_url)
        try:
            result = create_admin(store, args.email, args.password)
        finally:
            store.close()
    else:
        internship = InternshipStore(db_url)
        try:
            if args.command == "add-stream":
                result = add_stream(internship, args.direction, args.start_date, active=not args.inactive)
            else:
                result = add_direction(internship, args.name)
        finally:
            internship.close()

    return 0 if result is not None else 1


if __name__ == "__main__":
    sys.exit(main())
