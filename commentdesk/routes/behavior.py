"""
Behavior Routes
Follow-up suggestions from a student's recent behavior and incident notes.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from commentdesk.auth.tenant import Caller, caller_dependency
from commentdesk.errors import CommentDeskError
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.api.draft_request import BehaviorSuggestRequest
from commentdesk.models.api.draft_response import BehaviorSuggestResponse
from commentdesk.services.behavior_service import behavior_service

logger = get_logger(__name__)

router = APIRouter(prefix="/behavior", tags=["behavior"])


@router.post("/suggest", response_model=BehaviorSuggestResponse)
async def suggest(payload: BehaviorSuggestRequest, caller: Caller = Depends(caller_dependency)):
    """Suggestions from the student's recent behavior and incident notes."""
    try:
        summary = await behavior_service.suggest(caller.tenant_id, payload.student_id, payload.days)
        return BehaviorSuggestResponse(count=summary.count, suggestions=summary.suggestions)
    except CommentDeskError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error suggesting behavior follow-ups",
            tenant_id=caller.tenant_id,
            student_id=payload.student_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to suggest behavior follow-ups",
        ) from e
