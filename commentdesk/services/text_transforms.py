"""
Network-free text transforms for drafts that already exist.

These never call the generation service, so they work the same whether or
not a generator is configured.
"""

import re

from commentdesk.config import settings
from commentdesk.models.domain.draft_domain import DraftKind, DraftSections

_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BREAK = re.compile(r"[.!?]\s+")
_SPACE_BEFORE_COMMA = re.compile(r" ,")
_TERMINAL_PUNCTUATION = ".!?"


def tidy(s: str | None) -> str:
    """Collapse runs of whitespace to one space and trim the ends."""
    return _WHITESPACE.sub(" ", s or "").strip()


def split_sentences(s: str | None) -> list[str]:
    """Split on ``.``, ``!`` or ``?`` followed by whitespace, dropping empty parts."""
    return [part.strip() for part in _SENTENCE_BREAK.split(s or "") if part.strip()]


def condense(s: str | None, n: int | None = None) -> str:
    """
    Keep the first ``n`` sentences, rejoined with ``". "``.

    A single trailing period is appended when any sentence survives, so
    terminal punctuation is never doubled. Empty input gives empty output.
    """
    if n is None:
        n = settings.CONDENSE_SENTENCES
    kept = []
    for sentence in split_sentences(tidy(s))[: max(n, 0)]:
        sentence = sentence.rstrip(_TERMINAL_PUNCTUATION).strip()
        if sentence:
            kept.append(sentence)
    if not kept:
        return ""
    return ". ".join(kept) + "."


def clean_body(s: str | None) -> str:
    """``tidy`` plus removal of a stray space before a comma."""
    return _SPACE_BEFORE_COMMA.sub(",", tidy(s))


def rephrase(subject: str | None, body: str | None) -> tuple[str, str]:
    return tidy(subject), clean_body(body)


def proofread(subject: str | None, body: str | None) -> tuple[str, str]:
    return tidy(subject), clean_body(body)


def condense_draft(subject: str | None, body: str | None, n: int | None = None) -> tuple[str, str]:
    return tidy(subject), condense(body, n)


def transform_text(kind: DraftKind, text: str | None) -> str:
    """Apply the transform for ``kind`` to a single body of text."""
    if kind is DraftKind.CONDENSE:
        return condense(text)
    if kind in (DraftKind.REPHRASE, DraftKind.PROOFREAD):
        return clean_body(text)
    return text or ""


def transform_sections(kind: DraftKind, sections: DraftSections) -> DraftSections:
    """Apply the transform for ``kind`` to each section independently."""
    return DraftSections(
        opener=transform_text(kind, sections.opener),
        evidence=transform_text(kind, sections.evidence),
        next_steps=transform_text(kind, sections.next_steps),
        conclusion=transform_text(kind, sections.conclusion),
    )


def transform_email(kind: DraftKind, subject: str | None, body: str | None) -> tuple[str, str]:
    """Dispatch an email rewrite to the transform for ``kind``."""
    if kind is DraftKind.CONDENSE:
        return condense_draft(subject, body)
    if kind is DraftKind.PROOFREAD:
        return proofread(subject, body)
    if kind is DraftKind.REPHRASE:
        return rephrase(subject, body)
    return subject or "", body or ""
