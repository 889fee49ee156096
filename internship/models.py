"""
internship/models.py -- Domain dataclasses for internship reference data.

These are pure data containers with zero logic. Persistence lives in
internship/store.py.

id is None before a record is written to the database.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


@dataclass
class InternshipStream:
    """A cohort of interns working in one direction, starting on start_date."""

    stream_direction: str
    start_date: str  # YYYY-MM-DD
    is_active: bool = True
    id: Optional[int] = None


@dataclass
class Direction:
    """A track an intern can apply to (e.g. "FullStack", "QA")."""

    direction: str
    id: Optional[int] = None


@dataclass
class TechnicalTestResult:
    """An intern's technical task submission.

    One row per user: resubmitting replaces the previous links and comments.
    """

    user_id: int
    live_page_link: str
    repository_link: str
    difficulty: Difficulty = Difficulty.EASY
    comments: str = ""
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
