"""
Student Context Service
Gathers student, grade, behavior and template facts into a StudentContext.
"""

import asyncio

from commentdesk.config import settings
from commentdesk.errors import MissingTenant, NotFound
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.student_domain import StudentContext
from commentdesk.repositories.student_repository import student_repository
from commentdesk.repositories.template_repository import template_repository

logger = get_logger(__name__)


class StudentContextService:
    """
    Builds a fresh StudentContext per draft request.

    The student row is required. Grades, behavior notes and inspiration
    templates are read concurrently; note and template reads are optional and
    degrade to empty lists when they fail.
    """

    def __init__(self, students=None, templates=None):
        self.students = students or student_repository
        self.templates = templates or template_repository

    async def build(self, student_id: str, tenant_id: str) -> StudentContext:
        if not (tenant_id or "").strip():
            raise MissingTenant()

        found = await self.students.get_student(tenant_id, student_id)
        if found is None:
            raise NotFound(f"Student {student_id} not found")
        identity, courses = found

        grades, notes, templates = await asyncio.gather(
            self.students.recent_grades(tenant_id, student_id, settings.CONTEXT_GRADE_LIMIT),
            self.students.recent_notes(tenant_id, student_id, settings.CONTEXT_NOTE_LIMIT),
            self.templates.sample(tenant_id, settings.CONTEXT_TEMPLATE_LIMIT),
            return_exceptions=True,
        )

        # Grade history is part of the required facts
        if isinstance(grades, BaseException):
            raise grades

        notes = self._optional("behavior_notes", notes, tenant_id, student_id)
        templates = self._optional("templates", templates, tenant_id, student_id)

        context = StudentContext(
            student=identity,
            courses=courses,
            grades=grades,
            behavior_notes=notes,
            inspirations=[t.text for t in templates if t.text],
        )

        logger.info(
            "Student context built",
            tenant_id=tenant_id,
            student_id=student_id,
            grades=len(context.grades),
            behavior_notes=len(context.behavior_notes),
            inspirations=len(context.inspirations),
        )
        return context

    def _optional(self, name: str, result, tenant_id: str, student_id: str) -> list:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.warning(
                "Optional context read failed, continuing without it",
                read=name,
                tenant_id=tenant_id,
                student_id=student_id,
                error=str(result),
                error_type=type(result).__name__,
            )
            return []
        return list(result)


student_context_service = StudentContextService()
