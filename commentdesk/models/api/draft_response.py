"""
Draft API response models.
Used by routes for output formatting.
"""

from pydantic import BaseModel, ConfigDict, Field

from commentdesk.models.domain.draft_domain import DraftMode, DraftResult, EmailDraft


class SectionsResponse(BaseModel):
    """Serialized with ``nextSteps`` so it can be posted back as a draft to rewrite."""

    model_config = ConfigDict(populate_by_name=True)

    opener: str = Field("", description="Opening sentence(s)")
    evidence: str = Field("", description="Evidence of learning")
    next_steps: str = Field("", alias="nextSteps", description="Next steps")
    conclusion: str = Field("", description="Closing sentence(s)")


class DraftResponse(BaseModel):
    """A flat draft carries ``text``; a sectioned draft carries ``sections``."""

    mode: str = Field(..., description="flat or sectioned")
    source: str = Field(..., description="generator, fallback or transform")
    text: str | None = Field(None, description="Flat draft text")
    sections: SectionsResponse | None = Field(None, description="Sectioned draft")

    @classmethod
    def from_domain(cls, result: DraftResult) -> "DraftResponse":
        if result.mode is DraftMode.SECTIONED:
            sections = result.sections.as_dict() if result.sections else {}
            return cls(
                mode=result.mode.value,
                source=result.source.value,
                sections=SectionsResponse(**sections),
            )
        return cls(mode=result.mode.value, source=result.source.value, text=result.text or "")


class EmailDraftResponse(BaseModel):
    subject: str = Field(..., description="Email subject")
    body: str = Field(..., description="Email body")

    @classmethod
    def from_domain(cls, draft: EmailDraft) -> "EmailDraftResponse":
        return cls(subject=draft.subject, body=draft.body)


class BehaviorSuggestResponse(BaseModel):
    count: int = Field(..., description="Notes found in the window")
    suggestions: list[str] = Field(default_factory=list, description="Suggested follow-ups")
