"""
Draft API request models.
Used by routes for input validation.
"""

from pydantic import BaseModel, ConfigDict, Field

from commentdesk.models.domain.draft_domain import (
    DraftKind,
    DraftMode,
    DraftRequest,
    DraftSections,
    EmailDraftRequest,
    Tone,
)


class SectionsPayload(BaseModel):
    """The four parts of a sectioned draft."""

    model_config = ConfigDict(populate_by_name=True)

    opener: str = Field(default="", description="Opening sentence(s)")
    evidence: str = Field(default="", description="Evidence of learning")
    next_steps: str = Field(default="", alias="nextSteps", description="Next steps")
    conclusion: str = Field(default="", description="Closing sentence(s)")

    def to_domain(self) -> DraftSections:
        return DraftSections(
            opener=self.opener or "",
            evidence=self.evidence or "",
            next_steps=self.next_steps or "",
            conclusion=self.conclusion or "",
        )


class ComposeDraftRequest(BaseModel):
    """Request for generating or rewriting a report-card comment."""

    kind: DraftKind = Field(default=DraftKind.GENERATE, description="generate, rephrase, condense or proofread")
    mode: DraftMode = Field(default=DraftMode.FLAT, description="flat or sectioned")
    tone: Tone = Field(default=Tone.NEUTRAL, description="Desired tone")
    student_id: str | None = Field(default=None, description="Student to draft for (required for generate)")
    topic: str | None = Field(default=None, description="Free-form topic")
    subject: str | None = Field(default=None, description="Course subject")
    jurisdiction: str | None = Field(default=None, description="Jurisdiction, e.g. ontario")
    term: str | None = Field(default=None, description="Reporting term, e.g. T1")
    text: str | None = Field(default=None, description="Existing flat draft")
    sections: SectionsPayload | None = Field(default=None, description="Existing sectioned draft")
    fallback_only: bool = Field(default=False, description="Use the deterministic fallback, no network")

    def to_domain(self) -> DraftRequest:
        return DraftRequest(
            kind=self.kind,
            mode=self.mode,
            tone=self.tone,
            student_id=self.student_id,
            topic=self.topic,
            subject=self.subject,
            jurisdiction=self.jurisdiction,
            term=self.term,
            text=self.text,
            sections=self.sections.to_domain() if self.sections else None,
            fallback_only=self.fallback_only,
        )


class ComposeEmailRequest(BaseModel):
    """Request for drafting or rewriting a guardian email."""

    kind: DraftKind = Field(default=DraftKind.GENERATE, description="generate, rephrase, condense or proofread")
    first_name: str | None = Field(default=None, description="Student first name")
    topic: str | None = Field(default=None, description="progress, concern, positive, attendance, ...")
    tone: Tone = Field(default=Tone.NEUTRAL, description="Desired tone")
    subject: str = Field(default="", description="Existing subject")
    body: str = Field(default="", description="Existing body")

    def to_domain(self) -> EmailDraftRequest:
        return EmailDraftRequest(
            kind=self.kind,
            first_name=self.first_name,
            topic=self.topic,
            tone=self.tone,
            subject=self.subject,
            body=self.body,
        )


class GenerateReportRequest(BaseModel):
    """Request for a term progress paragraph."""

    student_id: str = Field(..., min_length=1, description="Student ID")
    term: str = Field(default="T1", description="Reporting term")
    tone: Tone = Field(default=Tone.PROFESSIONAL, description="Desired tone")


class BehaviorSuggestRequest(BaseModel):
    """Request for behavior suggestions."""

    student_id: str = Field(..., min_length=1, description="Student ID")
    days: int = Field(default=14, ge=1, le=365, description="Look-back window in days")
