"""
Read-only access to students, grades and notes.
"""

from datetime import datetime

from commentdesk.db.helpers import DatabaseError, fetch_all, fetch_one
from commentdesk.errors import StoreUnavailable
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.student_domain import (
    BEHAVIOR_TAG,
    BehaviorNote,
    GradeRecord,
    StudentIdentity,
)

logger = get_logger(__name__)


class StudentRepository:
    """Raw SQL helpers for the student side of the record store."""

    async def get_student(
        self, tenant_id: str, student_id: str
    ) -> tuple[StudentIdentity, list[str]] | None:
        """Student identity plus enrolled course names, or None."""
        query = """
            SELECT
                s.id, s.first_name, s.last_name, s.grade, s.pronouns,
                COALESCE(s.iep, false) AS iep,
                COALESCE(s.ell, false) AS ell,
                ARRAY(
                    SELECT c.name
                    FROM enrollments e
                    JOIN courses c ON c.id = e.course_id
                    WHERE e.student_id = s.id AND e.tenant_id = s.tenant_id
                    ORDER BY c.name
                ) AS courses
            FROM students s
            WHERE s.tenant_id = %s AND s.id::text = %s
        """
        try:
            row = await fetch_one(query, (tenant_id, student_id))
        except DatabaseError as e:
            logger.error("Student lookup failed", tenant_id=tenant_id, student_id=student_id, error=str(e))
            raise StoreUnavailable("Student store unavailable", operation="get_student") from e

        if not row:
            return None
        return StudentIdentity.from_row(row), [c for c in (row.get("courses") or []) if c]

    async def recent_grades(self, tenant_id: str, student_id: str, limit: int) -> list[GradeRecord]:
        query = """
            SELECT
                g.score,
                COALESCE(g.out_of, a.max_points) AS max_score,
                a.title AS assignment_title,
                g.created_at
            FROM grades g
            LEFT JOIN assignments a
                ON a.id = g.assignment_id AND a.tenant_id = g.tenant_id
            WHERE g.tenant_id = %s AND g.student_id::text = %s
            ORDER BY g.created_at DESC
            LIMIT %s
        """
        try:
            rows = await fetch_all(query, (tenant_id, student_id, limit))
        except DatabaseError as e:
            logger.error("Grade read failed", tenant_id=tenant_id, student_id=student_id, error=str(e))
            raise StoreUnavailable("Grade store unavailable", operation="recent_grades") from e
        return [GradeRecord.from_row(row) for row in rows]

    async def recent_notes(
        self,
        tenant_id: str,
        student_id: str,
        limit: int,
        tags: tuple[str, ...] = (BEHAVIOR_TAG,),
        since: datetime | None = None,
    ) -> list[BehaviorNote]:
        """Newest notes carrying any of ``tags``, optionally bounded by ``since``."""
        query = """
            SELECT body, tags, created_at
            FROM notes
            WHERE tenant_id = %s
              AND student_id::text = %s
              AND tags && %s::text[]
              AND (%s::timestamptz IS NULL OR created_at >= %s::timestamptz)
            ORDER BY created_at DESC
            LIMIT %s
        """
        try:
            rows = await fetch_all(query, (tenant_id, student_id, list(tags), since, since, limit))
        except DatabaseError as e:
            logger.error("Note read failed", tenant_id=tenant_id, student_id=student_id, error=str(e))
            raise StoreUnavailable("Note store unavailable", operation="recent_notes") from e
        return [BehaviorNote.from_row(row) for row in rows]


student_repository = StudentRepository()
