"""
Tests for the generation adapter: instruction assembly, output splitting,
the deterministic fallback and provider error mapping.
"""

import asyncio
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from commentdesk.errors import GenerationUnavailable
from commentdesk.models.domain.draft_domain import (
    DraftKind,
    DraftMode,
    DraftRequest,
    DraftSections,
    DraftSource,
    Tone,
)
from commentdesk.models.domain.student_domain import (
    BehaviorNote,
    GradeRecord,
    StudentContext,
    StudentIdentity,
)
from commentdesk.services.generation_service import (
    FORMATTING_RULES,
    SECTIONED_FORMAT,
    GenerationService,
    build_instructions,
    fallback_draft,
    split_sections,
    temperature_for,
)
from tests.fakes import make_completion

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def _context(first_name="Mara", ell=False, **fields) -> StudentContext:
    return StudentContext(
        student=StudentIdentity(id="s1", first_name=first_name, last_name="Lopez", grade="5", ell=ell, **fields),
        courses=["Math", "Science"],
        grades=[
            GradeRecord(assignment_title="Fractions quiz", score=8, max_score=10),
            GradeRecord(assignment_title="Lab report", score=None, max_score=20),
        ],
        behavior_notes=[BehaviorNote(body="Helped a classmate", tags=["behavior", "kindness"])],
        inspirations=[f"Inspiration {i}" for i in range(12)],
    )


def test_temperature_per_kind():
    assert temperature_for(DraftKind.CONDENSE) == 0.2
    assert temperature_for(DraftKind.PROOFREAD) == 0.2
    assert temperature_for(DraftKind.GENERATE) == 0.7
    assert temperature_for(DraftKind.REPHRASE) == 0.7


def test_build_instructions_for_generate():
    request = DraftRequest(
        kind=DraftKind.GENERATE,
        tone=Tone.WARM,
        jurisdiction="ontario",
        term="T1",
        subject="Math",
        topic="Fractions",
    )

    text = build_instructions(_context(ell=True, iep=True), request)

    assert "Student: Mara Lopez, grade 5" in text
    assert "Pronouns: they/them" in text
    assert "IEP: yes" in text
    assert "ELL: yes" in text
    assert "Courses: Math, Science" in text
    assert "Jurisdiction: ontario, Term: T1" in text
    assert "Mode: flat (subject: Math)" in text
    assert "Tone: Warm" in text
    assert "Topic: Fractions" in text
    assert "Task: generate a clean, teacher-ready comment." in text
    assert "Fractions quiz: 8 / 10" in text
    assert "Lab report: missing / 20" in text
    assert "- kindness: Helped a classmate" in text
    assert "- Inspiration 9" in text
    assert "- Inspiration 10" not in text
    assert "Current draft" not in text
    assert SECTIONED_FORMAT not in text
    assert text.endswith(FORMATTING_RULES)


def test_build_instructions_for_sectioned_rewrite_includes_labelled_draft():
    request = DraftRequest(
        kind=DraftKind.PROOFREAD,
        mode=DraftMode.SECTIONED,
        sections=DraftSections(opener="Mara is kind.", evidence="", next_steps="Read daily.", conclusion=""),
    )

    text = build_instructions(_context(), request)

    assert "Task: fix grammar/tone, keep content and meaning." in text
    assert "Current draft:\nOpener: Mara is kind.\nNext: Read daily." in text
    assert "Evidence:" not in text
    assert SECTIONED_FORMAT in text


def test_split_sections_four_paragraphs():
    sections = split_sections("Opener: Hello.\n\nEvidence text.\n\n  \nNext steps: Read.\n\nBye.")

    assert sections == DraftSections(opener="Hello.", evidence="Evidence text.", next_steps="Read.", conclusion="Bye.")


def test_split_sections_overflow_joins_conclusion():
    sections = split_sections("A\n\nB\n\nC\n\nD\n\nE")

    assert sections.conclusion == "D\n\nE"


def test_split_sections_fewer_paragraphs_leaves_empty_strings():
    sections = split_sections("Only one paragraph.")

    assert sections.opener == "Only one paragraph."
    assert sections.evidence == ""
    assert sections.next_steps == ""
    assert sections.conclusion == ""


def test_fallback_flat_mentions_first_name():
    result = fallback_draft(_context(), DraftMode.FLAT)

    assert result.source is DraftSource.FALLBACK
    assert result.text == "Mara has shown steady progress this term. Mara is building confidence and consistency."


def test_fallback_uses_placeholder_without_name():
    result = fallback_draft(StudentContext.minimal(), DraftMode.FLAT)

    assert result.text.startswith("{{first}} has shown steady progress")


def test_fallback_sectioned_for_ell_student():
    result = fallback_draft(_context(ell=True), DraftMode.SECTIONED)

    sections = result.sections
    assert "Mara" in sections.opener
    assert "language supports" in sections.opener
    for value in sections.as_dict().values():
        assert isinstance(value, str) and value


@pytest.mark.asyncio
async def test_draft_without_credential_uses_fallback_and_no_network(monkeypatch):
    monkeypatch.setattr("commentdesk.config.settings.OPENAI_API_KEY", None)
    client_factory = MagicMock(side_effect=AssertionError("client must not be created"))
    monkeypatch.setattr("commentdesk.services.generation_service.AsyncOpenAI", client_factory)
    service = GenerationService()

    result = await service.draft(_context(), DraftRequest(kind=DraftKind.GENERATE))

    assert result.source is DraftSource.FALLBACK
    assert "Mara" in result.text
    client_factory.assert_not_called()


@pytest.mark.asyncio
async def test_draft_calls_generator_once_with_expected_parameters(fake_openai, monkeypatch):
    monkeypatch.setattr("commentdesk.config.settings.OPENAI_MODEL", "gpt-4o-mini")
    client = fake_openai("  Mara is thriving.  ")
    service = GenerationService(client=client)

    result = await service.draft(_context(), DraftRequest(kind=DraftKind.CONDENSE, text="Long draft."))

    assert result.source is DraftSource.GENERATOR
    assert result.text == "Mara is thriving."
    client.chat.completions.create.assert_awaited_once()
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["temperature"] == 0.2
    assert kwargs["messages"][0] == {"role": "system", "content": "You write concise, professional teacher comments."}
    assert "Current draft:\nLong draft." in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_draft_sectioned_splits_generator_output(fake_openai):
    service = GenerationService(client=fake_openai("One.\n\nTwo.\n\nThree.\n\nFour."))

    result = await service.draft(_context(), DraftRequest(mode=DraftMode.SECTIONED))

    assert result.sections == DraftSections(opener="One.", evidence="Two.", next_steps="Three.", conclusion="Four.")


@pytest.mark.asyncio
async def test_fallback_only_skips_configured_generator(fake_openai):
    client = fake_openai()
    service = GenerationService(client=client)

    result = await service.draft(_context(), DraftRequest(fallback_only=True))

    assert result.source is DraftSource.FALLBACK
    client.chat.completions.create.assert_not_awaited()


def _timeout_error():
    return openai.APITimeoutError(request=httpx.Request("POST", OPENAI_URL))


def _status_error():
    request = httpx.Request("POST", OPENAI_URL)
    return openai.InternalServerError(
        "server error", response=httpx.Response(500, request=request), body=None
    )


def _connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL))


@pytest.mark.asyncio
@pytest.mark.parametrize("error_factory", [_timeout_error, _status_error, _connection_error])
async def test_provider_failure_raises_generation_unavailable(fake_openai, error_factory):
    client = fake_openai(side_effect=error_factory())
    service = GenerationService(client=client)

    with pytest.raises(GenerationUnavailable):
        await service.draft(_context(), DraftRequest())

    assert client.chat.completions.create.await_count == 1


@pytest.mark.asyncio
async def test_slow_generator_is_cut_off_at_timeout(monkeypatch, fake_openai):
    monkeypatch.setattr("commentdesk.config.settings.GENERATION_TIMEOUT_SECONDS", 0.05)

    async def _slow_completion(**kwargs):
        await asyncio.sleep(5)
        return make_completion("Too late.")

    client = fake_openai(side_effect=_slow_completion)
    service = GenerationService(client=client)

    with pytest.raises(GenerationUnavailable, match="timed out"):
        await service.draft(_context(), DraftRequest())

    assert client.chat.completions.create.await_count == 1


@pytest.mark.asyncio
async def test_empty_generator_response_raises(fake_openai):
    service = GenerationService(client=fake_openai(content=""))

    with pytest.raises(GenerationUnavailable):
        await service.draft(_context(), DraftRequest())


def test_status_reports_fallback_mode(monkeypatch):
    monkeypatch.setattr("commentdesk.config.settings.OPENAI_API_KEY", None)

    assert GenerationService().status()["mode"] == "fallback"
