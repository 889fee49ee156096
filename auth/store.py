"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as internship/store.py).
UserStore is the repository; _row_to_user is the mapper. The auth service
and route code never touch SQL directly.

Tables:
  users       -- credentials, verification state, issued token pair, progress flags
  roles       -- one row per ERole label, created on first use
  user_roles  -- many-to-many link between users and roles

Security:
  All queries use bound parameters. No f-strings in SQL.
  Column names for find_by() and update_user() come from fixed whitelists,
  never from request input.

Layer rule: no imports from api/, internship/, or mail/. The engine comes from
core.db so every store opens SQLite connections the same way.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.engine import Connection, Engine

from auth.models import ERole, User
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text),  # bcrypt hash; NULL for imported accounts
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("phone", String(20), unique=True),
    Column("avatar", Text),
    Column("direction", String(100)),
    Column("telegram", String(40)),
    Column("stream_id", Integer),
    Column("is_label_stream", Boolean, nullable=False, server_default="0"),
    Column("verified", Boolean, nullable=False, server_default="0"),
    Column("verify_token", String(36), unique=True),
    Column("access_token", Text),
    Column("refresh_token", Text),
    Column("is_sent_test", Boolean, nullable=False, server_default="0"),
    Column("is_passed_test", Boolean, nullable=False, server_default="0"),
    Column("is_sent_technical_task", Boolean, nullable=False, server_default="0"),
    Column("is_passed_technical_task", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)

_roles = Table(
    "roles",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("role", String(30), nullable=False, unique=True),
)

_user_roles = Table(
    "user_roles",
    _metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("user_id", "role_id", name="uq_user_role"),
)

# Columns a caller may look a single user up by.
_LOOKUP_FIELDS: frozenset[str] = frozenset({"id", "email", "phone", "verify_token"})

# Columns update_user() may write. id, email and created_at are immutable.
_MUTABLE_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "first_name",
        "last_name",
        "phone",
        "avatar",
        "direction",
        "telegram",
        "stream_id",
        "is_label_stream",
        "verified",
        "verify_token",
        "access_token",
        "refresh_token",
        "is_sent_test",
        "is_passed_test",
        "is_sent_technical_task",
        "is_passed_technical_task",
    }
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and Role entities.

    Usage:
        store = UserStore("sqlite:///interntrack.db")
        user_id = store.create_user(User(email="a@b.io", password=hash_password("Secret123")))
        user = store.get_by_email("a@b.io")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    def find_by(self, field: str, value) -> User | None:
        """Look up one user by a whitelisted column. Returns None if not found.

        Raises ValueError for columns outside _LOOKUP_FIELDS so a typo in a
        caller fails loudly instead of silently matching nothing.
        """
        if field not in _LOOKUP_FIELDS:
            raise ValueError(f"Unsupported user lookup field: {field!r}")
        if value is None:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c[field] == value)).fetchone()
            if row is None:
                return None
            return _row_to_user(row, self._roles_for(conn, row.id))

    def get_by_id(self, user_id: int) -> User | None:
        return self.find_by("id", user_id)

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email. Emails are stored lowercased, so the lookup is too."""
        return self.find_by("email", email.strip().lower())

    def get_by_phone(self, phone: str) -> User | None:
        return self.find_by("phone", phone)

    def get_by_verify_token(self, verify_token: str) -> User | None:
        return self.find_by("verify_token", verify_token)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user with its role links and return the assigned ID.

        The user row, any missing role rows and the links are written in one
        transaction. A user created with no roles gets ERole.USER.

        Raises sqlalchemy.exc.IntegrityError if the email (or phone) is taken.
        The auth service checks first; the constraint covers the race where two
        registrations for the same email interleave.
        """
        roles = user.roles or [ERole.USER.value]
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email.strip().lower(),
                    password=user.password,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    phone=user.phone,
                    avatar=user.avatar,
                    direction=user.direction,
                    telegram=user.telegram,
                    stream_id=user.stream_id,
                    is_label_stream=user.is_label_stream,
                    verified=user.verified,
                    verify_token=user.verify_token,
                    created_at=_now_iso(),
                )
            )
            user_id = result.inserted_primary_key[0]
            for role in roles:
                self._link_role(conn, user_id, role)
        return user_id

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable columns on an existing user.

        Returns True if a row was updated, False if user_id was not found.
        Raises ValueError for columns outside _MUTABLE_FIELDS.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if not fields:
            return False
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
        return result.rowcount > 0

    def store_tokens(self, user_id: int, access_token: str | None, refresh_token: str | None) -> bool:
        """Persist the currently issued pair. Passing None for both revokes the session."""
        return self.update_user(user_id, access_token=access_token, refresh_token=refresh_token)

    def add_role(self, user_id: int, role: ERole | str) -> None:
        """Attach a role to a user. Attaching a role the user already has is a no-op."""
        with self.engine.begin() as conn:
            self._link_role(conn, user_id, role)

    def ensure_role(self, role: ERole | str) -> int:
        """Return the id of the role row, creating it if this is its first use."""
        with self.engine.begin() as conn:
            return self._role_id(conn, role)

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _role_id(self, conn: Connection, role: ERole | str) -> int:
        label = ERole(role).value
        role_id = conn.execute(select(_roles.c.id).where(_roles.c.role == label)).scalar()
        if role_id is None:
            role_id = conn.execute(_roles.insert().values(role=label)).inserted_primary_key[0]
        return role_id

    def _link_role(self, conn: Connection, user_id: int, role: ERole | str) -> None:
        role_id = self._role_id(conn, role)
        exists = conn.execute(
            select(_user_roles.c.user_id).where(
                (_user_roles.c.user_id == user_id) & (_user_roles.c.role_id == role_id)
            )
        ).first()
        if exists is None:
            conn.execute(_user_roles.insert().values(user_id=user_id, role_id=role_id))

    def _roles_for(self, conn: Connection, user_id: int) -> list[str]:
        rows = conn.execute(
            select(_roles.c.role)
            .select_from(_user_roles.join(_roles, _user_roles.c.role_id == _roles.c.id))
            .where(_user_roles.c.user_id == user_id)
            .order_by(_roles.c.id)
        ).fetchall()
        return [r.role for r in rows]


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row, roles: list[str]) -> User:
    return User(
        id=row.id,
        email=row.email,
        password=row.password,
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        avatar=row.avatar,
        direction=row.direction,
        telegram=row.telegram,
        stream_id=row.stream_id,
        is_label_stream=bool(row.is_label_stream),
        verified=bool(row.verified),
        verify_token=row.verify_token,
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        is_sent_test=bool(row.is_sent_test),
        is_passed_test=bool(row.is_passed_test),
        is_sent_technical_task=bool(row.is_sent_technical_task),
        is_passed_technical_task=bool(row.is_passed_technical_task),
        created_at=row.created_at,
        roles=roles,
    )
