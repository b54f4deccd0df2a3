"""
Template Library Routes
HTTP endpoints for searching and maintaining a tenant's comment templates.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from commentdesk.auth.tenant import Caller, caller_dependency, writer_dependency
from commentdesk.errors import CommentDeskError
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.api.template_request import CreateTemplateRequest, UpdateTemplateRequest
from commentdesk.models.api.template_response import (
    DeleteTemplateResponse,
    SeedResponse,
    TemplateResponse,
    TemplateSummaryResponse,
)
from commentdesk.services.template_search_service import template_search_service
from commentdesk.services.template_service import template_service

logger = get_logger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])


def _internal_error(action: str, caller: Caller, error: Exception) -> HTTPException:
    logger.error(
        f"Unexpected error while {action}",
        tenant_id=caller.tenant_id,
        error=str(error),
        error_type=type(error).__name__,
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed while {action}",
    )


@router.get("", response_model=list[TemplateResponse])
async def search_templates(
    caller: Caller = Depends(caller_dependency),
    search: str | None = Query(default=None, description="Free-text search"),
    jurisdiction: str | None = Query(default=None, description="Jurisdiction tag"),
    type: str | None = Query(default=None, description="learning, email or subject"),
    limit: str | None = Query(default=None, description="Maximum results (1-2000, default 500)"),
):
    """Search the tenant's templates, newest first."""
    try:
        query = template_search_service.make_query(
            caller.tenant_id, search=search, jurisdiction=jurisdiction, type=type, limit=limit
        )
        templates = await template_search_service.search(query)
        return [TemplateResponse.from_domain(t) for t in templates]
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("searching templates", caller, e) from e


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: CreateTemplateRequest, caller: Caller = Depends(writer_dependency)
):
    """Author a new template."""
    try:
        template = await template_service.create(
            caller.tenant_id, payload.model_dump(by_alias=True)
        )
        return TemplateResponse.from_domain(template)
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("creating template", caller, e) from e


@router.post("/seed/{jurisdiction}", response_model=SeedResponse)
async def seed_templates(jurisdiction: str, caller: Caller = Depends(writer_dependency)):
    """Seed the starter bank for a jurisdiction if the tenant has none yet."""
    try:
        result = await template_service.seed_jurisdiction(caller.tenant_id, jurisdiction)
        return SeedResponse(**result)
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("seeding templates", caller, e) from e


@router.get("/by-skill", response_model=list[TemplateResponse])
async def templates_by_skill(
    caller: Caller = Depends(caller_dependency),
    skill: str | None = Query(default=None, description="Skill category label or slug"),
    level: str | None = Query(default=None, description="e, g, s or n"),
):
    """Templates tagged with a skill category, optionally at one level."""
    try:
        templates = await template_search_service.by_skill(caller.tenant_id, skill, level)
        return [TemplateResponse.from_domain(t) for t in templates]
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("loading skill templates", caller, e) from e


@router.get("/summary", response_model=TemplateSummaryResponse)
async def template_summary(caller: Caller = Depends(caller_dependency)):
    try:
        summary = await template_search_service.summary(caller.tenant_id)
        return TemplateSummaryResponse.from_domain(summary)
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("summarizing templates", caller, e) from e


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(template_id: str, caller: Caller = Depends(caller_dependency)):
    try:
        template = await template_service.get(caller.tenant_id, template_id)
        return TemplateResponse.from_domain(template)
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("loading template", caller, e) from e


@router.patch("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    payload: UpdateTemplateRequest,
    caller: Caller = Depends(writer_dependency),
):
    """Update whitelisted fields: text, tags, subject, gradeBand, topic."""
    try:
        template = await template_service.update(caller.tenant_id, template_id, payload.to_payload())
        return TemplateResponse.from_domain(template)
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("updating template", caller, e) from e


@router.delete("/{template_id}", response_model=DeleteTemplateResponse)
async def delete_template(template_id: str, caller: Caller = Depends(writer_dependency)):
    try:
        await template_service.delete(caller.tenant_id, template_id)
        return DeleteTemplateResponse(ok=True)
    except CommentDeskError:
        raise
    except Exception as e:
        raise _internal_error("deleting template", caller, e) from e
