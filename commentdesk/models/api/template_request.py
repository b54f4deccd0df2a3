"""
Template API request models.
Used by routes for input validation.
"""

from pydantic import BaseModel, ConfigDict, Field


class CreateTemplateRequest(BaseModel):
    """Request for authoring a template."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    text: str = Field(..., description="Template body, may contain {{placeholders}}")
    tags: list[str] = Field(default_factory=list, description="Tags, lower-cased on save")
    subject: str | None = Field(default=None, description="Optional subject")
    grade_band: str | None = Field(default=None, alias="gradeBand", description="Optional grade band")
    topic: str | None = Field(default=None, description="Optional topic")


class UpdateTemplateRequest(BaseModel):
    """
    Partial update for a template.

    Only provided fields change. Unknown fields are accepted here and
    dropped by the service.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    text: str | None = Field(default=None, description="New template body")
    tags: list[str] | None = Field(default=None, description="Replacement tag set")
    subject: str | None = Field(default=None, description="New subject, null clears it")
    grade_band: str | None = Field(default=None, alias="gradeBand", description="New grade band, null clears it")
    topic: str | None = Field(default=None, description="New topic, null clears it")

    def to_payload(self) -> dict:
        return self.model_dump(exclude_unset=True, by_alias=True)
