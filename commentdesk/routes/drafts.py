"""
Drafting Routes
Report-card comments, term reports and guardian emails.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from commentdesk.auth.tenant import Caller, caller_dependency
from commentdesk.errors import CommentDeskError
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.api.draft_request import (
    ComposeDraftRequest,
    ComposeEmailRequest,
    GenerateReportRequest,
)
from commentdesk.models.api.draft_response import DraftResponse, EmailDraftResponse
from commentdesk.services.draft_service import draft_service
from commentdesk.services.email_compose_service import email_compose_service

logger = get_logger(__name__)

router = APIRouter(tags=["drafts"])


@router.post("/comments/compose", response_model=DraftResponse, response_model_exclude_none=True)
async def compose_comment(payload: ComposeDraftRequest, caller: Caller = Depends(caller_dependency)):
    """
    Generate a comment for a student, or rephrase, condense or proofread an
    existing draft. Works in flat or sectioned mode.
    """
    try:
        result = await draft_service.compose(caller.tenant_id, payload.to_domain())
        return DraftResponse.from_domain(result)
    except CommentDeskError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error composing comment",
            tenant_id=caller.tenant_id,
            kind=payload.kind.value,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compose comment",
        ) from e


@router.post("/comments/compose-email", response_model=EmailDraftResponse)
async def compose_email(payload: ComposeEmailRequest, caller: Caller = Depends(caller_dependency)):
    """Draft or rewrite a guardian email. No generator call is made."""
    draft = email_compose_service.compose(payload.to_domain())
    return EmailDraftResponse.from_domain(draft)


@router.post("/reports/generate", response_model=DraftResponse, response_model_exclude_none=True)
async def generate_report(payload: GenerateReportRequest, caller: Caller = Depends(caller_dependency)):
    """One flat progress paragraph for a reporting term."""
    try:
        result = await draft_service.generate_report(
            caller.tenant_id, payload.student_id, payload.term, payload.tone
        )
        return DraftResponse.from_domain(result)
    except CommentDeskError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error generating report",
            tenant_id=caller.tenant_id,
            student_id=payload.student_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate report",
        ) from e
