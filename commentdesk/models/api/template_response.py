"""
Template API response models.
Used by routes for output formatting.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from commentdesk.models.domain.template_domain import LEVELS, Template, TemplateSummary


class TemplateResponse(BaseModel):
    """Response model for a comment template."""

    id: str = Field(..., description="Template ID")
    tenant_id: str = Field(..., description="Owning tenant")
    text: str = Field(..., description="Template body")
    tags: list[str] = Field(default_factory=list, description="Lower-cased tags")
    subject: str | None = Field(None, description="Subject")
    grade_band: str | None = Field(None, description="Grade band")
    topic: str | None = Field(None, description="Topic")
    created_at: datetime | None = Field(None, description="Creation timestamp")

    @classmethod
    def from_domain(cls, template: Template) -> "TemplateResponse":
        return cls(
            id=template.id,
            tenant_id=template.tenant_id,
            text=template.text,
            tags=list(template.tags),
            subject=template.subject,
            grade_band=template.grade_band,
            topic=template.topic,
            created_at=template.created_at,
        )


class DeleteTemplateResponse(BaseModel):
    ok: bool = Field(True, description="Whether the template was deleted")


class SeedResponse(BaseModel):
    ok: bool = Field(True, description="Whether the request succeeded")
    seeded: bool = Field(..., description="False when the jurisdiction was already seeded")
    count: int = Field(0, description="Templates inserted")
    jurisdiction: str = Field(..., description="Normalized jurisdiction tag")


class TemplateSummaryResponse(BaseModel):
    total: int = Field(0, description="Templates the tenant owns")
    by_level: dict[str, int] = Field(default_factory=dict, description="Count per level tag, (none) when untagged")
    by_category: dict[str, int] = Field(default_factory=dict, description="Count per skill category slug")
    levels: list[str] = Field(default_factory=lambda: list(LEVELS), description="Known levels, best first")

    @classmethod
    def from_domain(cls, summary: TemplateSummary) -> "TemplateSummaryResponse":
        return cls(total=summary.total, by_level=summary.by_level, by_category=summary.by_category)
