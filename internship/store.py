"""
internship/store.py -- SQLAlchemy-backed persistence for internship reference data.

Uses SQLAlchemy Core (not ORM) so the dataclasses in internship/models.py
remain the authoritative domain representation.

Pattern: Repository + Data Mapper. InternshipStore is the repository; the
_row_to_* functions are the mappers.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = InternshipStore("sqlite:///interntrack.db")
    stream_id = store.create_stream(InternshipStream("FullStack", "2026-11-01"))
    store.get_stream(stream_id)
    store.add_direction("QA")
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, select
from sqlalchemy.engine import Engine

from core.db import make_engine
from internship.models import Difficulty, Direction, InternshipStream, TechnicalTestResult

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_streams = Table(
    "internship_streams",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("stream_direction", String(100), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("start_date", String(10), nullable=False),  # YYYY-MM-DD
)

_directions = Table(
    "directions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("direction", String(100), nullable=False, unique=True),
)

_test_results = Table(
    "technical_test_results",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, unique=True),
    Column("live_page_link", Text, nullable=False),
    Column("repository_link", Text, nullable=False),
    Column("difficulty", String(10), nullable=False, server_default=Difficulty.EASY.value),
    Column("comments", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class InternshipStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def create_stream(self, stream: InternshipStream) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                _streams.insert().values(
                    stream_direction=stream.stream_direction,
                    is_active=stream.is_active,
                    start_date=stream.start_date,
                )
            )
        return result.inserted_primary_key[0]

    def get_stream(self, stream_id: Optional[int]) -> Optional[InternshipStream]:
        """Return the stream with this id, or None (also for a None id)."""
        if stream_id is None:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_streams.select().where(_streams.c.id == stream_id)).fetchone()
        return _row_to_stream(row) if row is not None else None

    def list_streams(self, active_only: bool = False) -> list[InternshipStream]:
        """Return streams ordered by start date, newest first."""
        query = _streams.select().order_by(_streams.c.start_date.desc(), _streams.c.id.desc())
        if active_only:
            query = query.where(_streams.c.is_active.is_(True))
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_stream(r) for r in rows]

    # ------------------------------------------------------------------
    # Directions
    # ------------------------------------------------------------------

    def add_direction(self, direction: str) -> int:
        """Insert a direction and return its id.

        Raises sqlalchemy.exc.IntegrityError if the direction already exists.
        """
        with self.engine.begin() as conn:
            result = conn.execute(_directions.insert().values(direction=direction))
        return result.inserted_primary_key[0]

    def list_directions(self) -> list[Direction]:
        with self.engine.connect() as conn:
            rows = conn.execute(_directions.select().order_by(_directions.c.direction)).fetchall()
        return [Direction(id=r.id, direction=r.direction) for r in rows]

    # ------------------------------------------------------------------
    # Technical test results
    # ------------------------------------------------------------------

    def save_test_result(self, result: TechnicalTestResult) -> int:
        """Insert or replace the user's submission and return its id."""
        values = {
            "live_page_link": result.live_page_link,
            "repository_link": result.repository_link,
            "difficulty": Difficulty(result.difficulty).value,
            "comments": result.comments,
            "created_at": _now_iso(),
        }
        with self.engine.begin() as conn:
            existing = conn.execute(
                select(_test_results.c.id).where(_test_results.c.user_id == result.user_id)
            ).scalar()
            if existing is not None:
                conn.execute(_test_results.update().where(_test_results.c.id == existing).values(**values))
                return existing
            inserted = conn.execute(_test_results.insert().values(user_id=result.user_id, **values))
            return inserted.inserted_primary_key[0]

    def get_test_result(self, user_id: int) -> Optional[TechnicalTestResult]:
        with self.engine.connect() as conn:
            row = conn.execute(_test_results.select().where(_test_results.c.user_id == user_id)).fetchone()
        return _row_to_test_result(row) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_stream(row) -> InternshipStream:
    return InternshipStream(
        id=row.id,
        stream_direction=row.stream_direction,
        is_active=bool(row.is_active),
        start_date=row.start_date,
    )


def _row_to_test_result(row) -> TechnicalTestResult:
    return TechnicalTestResult(
        id=row.id,
        user_id=row.user_id,
        live_page_link=row.live_page_link,
        repository_link=row.repository_link,
        difficulty=Difficulty(row.difficulty),
        comments=row.comments,
        created_at=row.created_at,
    )
