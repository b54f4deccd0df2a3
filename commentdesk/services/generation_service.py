"""
Generation Service
Dispatches a student context and draft instructions to the OpenAI chat
completions API, or produces a deterministic fallback draft when no API key
is configured.

A missing key is a supported configuration. A provider failure during an
active call is not: it raises GenerationUnavailable and is never replaced by
the fallback.
"""

import asyncio
import re
from typing import Any

import openai
from openai import AsyncOpenAI

from commentdesk.config import settings
from commentdesk.errors import GenerationUnavailable
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.draft_domain import (
    DraftKind,
    DraftMode,
    DraftRequest,
    DraftResult,
    DraftSections,
    DraftSource,
)
from commentdesk.models.domain.student_domain import StudentContext

logger = get_logger(__name__)

SYSTEM_MESSAGE = "You write concise, professional teacher comments."

ROLE_FRAMING = "You are a helpful teacher assistant creating report card comments."

TASK_SENTENCES: dict[DraftKind, str] = {
    DraftKind.GENERATE: "Task: generate a clean, teacher-ready comment.",
    DraftKind.REPHRASE: "Task: rephrase the comment to be clearer, same meaning.",
    DraftKind.CONDENSE: "Task: shorten the comment while keeping key points.",
    DraftKind.PROOFREAD: "Task: fix grammar/tone, keep content and meaning.",
}

SECTIONED_FORMAT = (
    "Format: return four paragraphs separated by blank lines, in this order: "
    "opener, evidence, next steps, conclusion."
)

FORMATTING_RULES = (
    "Rules: Write in plain language, no emojis unless already present, keep placeholder "
    "braces like {{first}} or {{they}} if included."
)

SECTION_LABELS: tuple[tuple[str, str], ...] = (
    ("opener", "Opener"),
    ("evidence", "Evidence"),
    ("next_steps", "Next"),
    ("conclusion", "Conclusion"),
)

# Kinds that must preserve meaning run cooler
LOW_TEMPERATURE_KINDS = (DraftKind.CONDENSE, DraftKind.PROOFREAD)
LOW_TEMPERATURE = 0.2
DEFAULT_TEMPERATURE = 0.7

INSPIRATION_COUNT = 10

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SECTION_LABEL = re.compile(r"^(opener|evidence|next steps|next|conclusion)\s*:\s*", re.IGNORECASE)


def temperature_for(kind: DraftKind) -> float:
    return LOW_TEMPERATURE if kind in LOW_TEMPERATURE_KINDS else DEFAULT_TEMPERATURE


def format_current_draft(request: DraftRequest) -> str:
    """
    The existing draft as shown to the generator.

    Flat mode passes the text through; sectioned mode labels each non-empty
    section on its own line.
    """
    if request.mode is DraftMode.SECTIONED:
        sections = request.sections or DraftSections()
        lines = []
        for attr, label in SECTION_LABELS:
            value = (getattr(sections, attr) or "").strip()
            if value:
                lines.append(f"{label}: {value}")
        return "\n".join(lines)
    return (request.text or "").strip()


def build_instructions(context: StudentContext, request: DraftRequest) -> str:
    """Assemble the single user message sent to the generator."""
    student = context.student
    parts: list[str] = [ROLE_FRAMING]

    grade = f", grade {student.grade}" if student.grade else ""
    parts.append(f"Student: {student.full_name}{grade}".rstrip())
    parts.append(f"Pronouns: {student.pronouns or 'they/them'}")
    if student.iep:
        parts.append("IEP: yes")
    if student.ell:
        parts.append("ELL: yes")
    if context.courses:
        parts.append(f"Courses: {', '.join(context.courses)}")

    parts.append(f"Jurisdiction: {request.jurisdiction or 'generic'}, Term: {request.term or ''}".rstrip())
    subject = f" (subject: {request.subject})" if request.subject else ""
    parts.append(f"Mode: {request.mode.value}{subject}")
    parts.append(f"Tone: {request.tone.value}")
    if request.topic:
        parts.append(f"Topic: {request.topic}")
    parts.append(TASK_SENTENCES[request.kind])

    grade_lines = context.grade_summary()
    if grade_lines:
        parts.append("Recent grades:\n" + "\n".join(grade_lines))
    behavior_lines = context.behavior_brief()
    if behavior_lines:
        parts.append("Recent behavior notes:\n" + "\n".join(behavior_lines))
    if context.inspirations:
        examples = "\n".join(f"- {text}" for text in context.inspirations[:INSPIRATION_COUNT])
        parts.append(f"Comment library (inspirations):\n{examples}")

    if request.kind.rewrites_existing:
        current = format_current_draft(request)
        if current:
            parts.append(f"Current draft:\n{current}")

    if request.mode is DraftMode.SECTIONED:
        parts.append(SECTIONED_FORMAT)
    parts.append(FORMATTING_RULES)

    return "\n".join(parts)


def split_sections(raw: str) -> DraftSections:
    """
    Split a generator response into the four sections.

    Paragraphs are separated by blank lines. The first three fill opener,
    evidence and next steps; everything after joins the conclusion. Missing
    sections are empty strings. A leading section label is dropped.
    """
    paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(raw.strip()) if p.strip()]
    paragraphs = [_SECTION_LABEL.sub("", p, count=1) for p in paragraphs]
    return DraftSections.from_parts(paragraphs)


def fallback_draft(context: StudentContext, mode: DraftMode) -> DraftResult:
    """Canned, tone-agnostic draft from the first name and ELL flag alone."""
    name = context.first_name.strip() or "{{first}}"
    ell = context.is_ell

    if mode is DraftMode.SECTIONED:
        opener = f"{name} has been engaged in class this term."
        if ell:
            opener += f" With targeted language supports, {name} is building confidence with classroom English."
        sections = DraftSections(
            opener=opener,
            evidence=f"{name} demonstrates growing accuracy and independence on recent tasks.",
            next_steps="We will focus on goal-setting and consistent routines.",
            conclusion=f"I am proud of {name}'s effort.",
        )
        return DraftResult(mode=mode, source=DraftSource.FALLBACK, sections=sections)

    support = "With targeted language supports, " if ell else ""
    text = (
        f"{name} has shown steady progress this term. "
        f"{support}{name} is building confidence and consistency."
    )
    return DraftResult(mode=mode, source=DraftSource.FALLBACK, text=text)


class GenerationService:
    """
    Adapter over the OpenAI chat completions API.

    One call per draft, no retry, bounded by GENERATION_TIMEOUT_SECONDS.
    """

    def __init__(self, client: Any = None):
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or settings.generation_enabled()

    def _get_client(self):
        if self._client is None and settings.generation_enabled():
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.GENERATION_TIMEOUT_SECONDS,
                max_retries=0,
            )
            logger.info(
                "OpenAI client initialized",
                model=settings.OPENAI_MODEL,
                timeout=settings.GENERATION_TIMEOUT_SECONDS,
            )
        return self._client

    async def draft(self, context: StudentContext, request: DraftRequest) -> DraftResult:
        if request.fallback_only or not self.is_configured():
            logger.info(
                "Using deterministic fallback draft",
                kind=request.kind.value,
                mode=request.mode.value,
                requested=request.fallback_only,
            )
            return fallback_draft(context, request.mode)

        instructions = build_instructions(context, request)
        raw = await self.complete(instructions, temperature_for(request.kind))

        if request.mode is DraftMode.SECTIONED:
            return DraftResult(
                mode=request.mode, source=DraftSource.GENERATOR, sections=split_sections(raw)
            )
        return DraftResult(mode=request.mode, source=DraftSource.GENERATOR, text=raw.strip())

    async def complete(self, instructions: str, temperature: float) -> str:
        """Single chat completion call. Raises GenerationUnavailable on any provider failure."""
        client = self._get_client()
        if client is None:
            raise GenerationUnavailable("Generation service is not configured")

        logger.debug(
            "Calling OpenAI API for draft",
            model=settings.OPENAI_MODEL,
            temperature=temperature,
            prompt_length=len(instructions),
        )

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=settings.OPENAI_MODEL,
                    messages=[
                        {"role": "system", "content": SYSTEM_MESSAGE},
                        {"role": "user", "content": instructions},
                    ],
                    temperature=temperature,
                    max_tokens=settings.OPENAI_MAX_TOKENS,
                    timeout=settings.GENERATION_TIMEOUT_SECONDS,
                ),
                timeout=settings.GENERATION_TIMEOUT_SECONDS,
            )
        except (openai.APITimeoutError, TimeoutError) as e:
            logger.error("OpenAI API timeout", timeout=settings.GENERATION_TIMEOUT_SECONDS, error=str(e))
            raise GenerationUnavailable("Generation service timed out", provider_error=str(e)) from e
        except openai.APIStatusError as e:
            logger.error("OpenAI API returned an error status", status_code=e.status_code, error=str(e))
            raise GenerationUnavailable(
                f"Generation service returned status {e.status_code}", provider_error=str(e)
            ) from e
        except openai.APIError as e:
            logger.error("OpenAI API call failed", error=str(e), error_type=type(e).__name__)
            raise GenerationUnavailable("Generation service unavailable", provider_error=str(e)) from e

        content = ""
        if response.choices and response.choices[0].message.content:
            content = response.choices[0].message.content.strip()
        if not content:
            logger.error("Empty response from OpenAI API")
            raise GenerationUnavailable("Generation service returned an empty response")

        logger.info(
            "OpenAI API call successful",
            response_length=len(content),
            usage_tokens=response.usage.total_tokens if getattr(response, "usage", None) else 0,
        )
        return content

    def status(self) -> dict[str, Any]:
        """Configuration snapshot for the readiness probe. Makes no network call."""
        return {
            "ok": True,
            "mode": "openai" if self.is_configured() else "fallback",
            "model": settings.OPENAI_MODEL,
            "timeout_seconds": settings.GENERATION_TIMEOUT_SECONDS,
        }


generation_service = GenerationService()
