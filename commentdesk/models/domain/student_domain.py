"""
Student Domain Models
Point-in-time facts about a student, gathered for drafting comments.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

BEHAVIOR_TAG = "behavior"
MISSING_SCORE = "missing"
DEFAULT_ASSIGNMENT_TITLE = "Assignment"
DEFAULT_NOTE_LABEL = "Note"


def _number(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _format_number(value: float | None) -> str:
    if value is None:
        return MISSING_SCORE
    return f"{value:g}"


@dataclass(slots=True)
class StudentIdentity:
    id: str
    first_name: str
    last_name: str = ""
    grade: str | None = None
    pronouns: str | None = None
    iep: bool = False
    ell: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "StudentIdentity":
        grade = row.get("grade")
        return cls(
            id=str(row["id"]),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            grade=str(grade) if grade is not None else None,
            pronouns=row.get("pronouns"),
            iep=bool(row.get("iep")),
            ell=bool(row.get("ell")),
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(slots=True)
class GradeRecord:
    """One graded assignment. ``score`` is None when the assignment is unset."""

    assignment_title: str
    score: float | None
    max_score: float | None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "GradeRecord":
        return cls(
            assignment_title=(row.get("assignment_title") or "").strip() or DEFAULT_ASSIGNMENT_TITLE,
            score=_number(row.get("score")),
            max_score=_number(row.get("max_score")),
            created_at=row.get("created_at"),
        )

    def summary_line(self) -> str:
        return (
            f"{self.assignment_title}: {_format_number(self.score)} / "
            f"{_format_number(self.max_score)}"
        )


@dataclass(slots=True)
class BehaviorNote:
    body: str
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "BehaviorNote":
        return cls(
            body=row.get("body") or "",
            tags=[str(t).lower() for t in (row.get("tags") or [])],
            created_at=row.get("created_at"),
        )

    @property
    def label(self) -> str:
        """First tag other than ``behavior``, used as a short display label."""
        for tag in self.tags:
            if tag != BEHAVIOR_TAG:
                return tag
        return DEFAULT_NOTE_LABEL

    def brief_line(self) -> str:
        return f"- {self.label}: {self.body}"


@dataclass(slots=True)
class StudentContext:
    """Everything the generator gets to know about one student."""

    student: StudentIdentity
    courses: list[str] = field(default_factory=list)
    grades: list[GradeRecord] = field(default_factory=list)
    behavior_notes: list[BehaviorNote] = field(default_factory=list)
    inspirations: list[str] = field(default_factory=list)

    @classmethod
    def minimal(cls, first_name: str = "", ell: bool = False, **identity: Any) -> "StudentContext":
        """Context for drafts that are not tied to a stored student."""
        return cls(
            student=StudentIdentity(
                id=identity.pop("id", ""), first_name=first_name, ell=ell, **identity
            )
        )

    @property
    def first_name(self) -> str:
        return self.student.first_name

    @property
    def is_ell(self) -> bool:
        return self.student.ell

    def grade_summary(self, count: int = 5) -> list[str]:
        return [g.summary_line() for g in self.grades[:count]]

    def behavior_brief(self, count: int = 5) -> list[str]:
        return [n.brief_line() for n in self.behavior_notes[:count]]
