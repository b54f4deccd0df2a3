"""
Draft Service
Entry point for comment draft requests.

generate: aggregate the student's context, then hand it to the generator.
rephrase/condense/proofread: rewrite an existing draft, through the
generator when one is configured, otherwise through the local transforms.
"""

from commentdesk.errors import InvalidPayload, MissingTenant
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.draft_domain import (
    DraftKind,
    DraftMode,
    DraftRequest,
    DraftResult,
    DraftSections,
    DraftSource,
    Tone,
)
from commentdesk.models.domain.student_domain import StudentContext
from commentdesk.services.generation_service import generation_service
from commentdesk.services.student_context_service import student_context_service
from commentdesk.services.text_transforms import transform_sections, transform_text

logger = get_logger(__name__)


class DraftService:
    def __init__(self, contexts=None, generator=None):
        self.contexts = contexts or student_context_service
        self.generator = generator or generation_service

    async def compose(self, tenant_id: str | None, request: DraftRequest) -> DraftResult:
        tenant_id = (tenant_id or "").strip()
        if not tenant_id:
            raise MissingTenant()

        if request.kind is DraftKind.GENERATE and not request.student_id:
            raise InvalidPayload("student_id is required to generate a draft")
        if request.kind.rewrites_existing and not request.has_existing_draft():
            raise InvalidPayload(f"An existing draft is required to {request.kind.value}")

        use_generator = self.generator.is_configured() and not request.fallback_only
        if request.kind.rewrites_existing and not use_generator:
            result = self._transform(request)
        else:
            context = await self._context_for(tenant_id, request)
            result = await self.generator.draft(context, request)

        logger.info(
            "Draft composed",
            tenant_id=tenant_id,
            student_id=request.student_id,
            kind=request.kind.value,
            mode=request.mode.value,
            source=result.source.value,
        )
        return result

    async def generate_report(
        self, tenant_id: str | None, student_id: str, term: str, tone: Tone = Tone.PROFESSIONAL
    ) -> DraftResult:
        """One flat paragraph for a reporting term."""
        request = DraftRequest(
            kind=DraftKind.GENERATE,
            mode=DraftMode.FLAT,
            tone=tone,
            student_id=student_id,
            term=term,
            topic="Term progress report",
        )
        return await self.compose(tenant_id, request)

    async def _context_for(self, tenant_id: str, request: DraftRequest) -> StudentContext:
        if request.student_id:
            return await self.contexts.build(request.student_id, tenant_id)
        return StudentContext.minimal()

    def _transform(self, request: DraftRequest) -> DraftResult:
        if request.mode is DraftMode.SECTIONED:
            sections = transform_sections(request.kind, request.sections or DraftSections())
            return DraftResult(mode=request.mode, source=DraftSource.TRANSFORM, sections=sections)
        return DraftResult(
            mode=request.mode,
            source=DraftSource.TRANSFORM,
            text=transform_text(request.kind, request.text),
        )


draft_service = DraftService()
