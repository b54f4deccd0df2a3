"""
Draft Domain Models
Requests and results for comment drafting and guardian emails.
"""

from dataclasses import dataclass
from enum import Enum


class DraftKind(str, Enum):
    GENERATE = "generate"
    REPHRASE = "rephrase"
    CONDENSE = "condense"
    PROOFREAD = "proofread"

    @property
    def rewrites_existing(self) -> bool:
        return self is not DraftKind.GENERATE


class Tone(str, Enum):
    NEUTRAL = "Neutral"
    WARM = "Warm"
    PROFESSIONAL = "Professional"
    ENCOURAGING = "Encouraging"
    DIRECT = "Direct"


class DraftMode(str, Enum):
    FLAT = "flat"
    SECTIONED = "sectioned"


class DraftSource(str, Enum):
    GENERATOR = "generator"
    FALLBACK = "fallback"
    TRANSFORM = "transform"


SECTION_NAMES: tuple[str, ...] = ("opener", "evidence", "next_steps", "conclusion")


@dataclass(slots=True)
class DraftSections:
    opener: str = ""
    evidence: str = ""
    next_steps: str = ""
    conclusion: str = ""

    @classmethod
    def from_parts(cls, parts: list[str]) -> "DraftSections":
        """Assign parts in order; anything past the fourth joins the conclusion."""
        parts = [p or "" for p in parts]
        return cls(
            opener=parts[0] if len(parts) > 0 else "",
            evidence=parts[1] if len(parts) > 1 else "",
            next_steps=parts[2] if len(parts) > 2 else "",
            conclusion="\n\n".join(parts[3:]),
        )

    def as_dict(self) -> dict[str, str]:
        return {name: getattr(self, name) or "" for name in SECTION_NAMES}

    def is_empty(self) -> bool:
        return not any(self.as_dict().values())


@dataclass(slots=True)
class DraftRequest:
    kind: DraftKind = DraftKind.GENERATE
    mode: DraftMode = DraftMode.FLAT
    tone: Tone = Tone.NEUTRAL
    student_id: str | None = None
    topic: str | None = None
    subject: str | None = None
    jurisdiction: str | None = None
    term: str | None = None
    text: str | None = None
    sections: DraftSections | None = None
    fallback_only: bool = False

    def has_existing_draft(self) -> bool:
        if self.mode is DraftMode.SECTIONED:
            return self.sections is not None and not self.sections.is_empty()
        return bool((self.text or "").strip())


@dataclass(slots=True)
class DraftResult:
    mode: DraftMode
    source: DraftSource
    text: str | None = None
    sections: DraftSections | None = None


@dataclass(slots=True)
class EmailDraftRequest:
    kind: DraftKind = DraftKind.GENERATE
    first_name: str | None = None
    topic: str | None = None
    tone: Tone = Tone.NEUTRAL
    subject: str = ""
    body: str = ""


@dataclass(slots=True)
class EmailDraft:
    subject: str
    body: str
