import pytest

from commentdesk.errors import GenerationUnavailable, InvalidPayload, MissingTenant, NotFound
from commentdesk.models.domain.draft_domain import (
    DraftKind,
    DraftMode,
    DraftRequest,
    DraftSections,
    DraftSource,
    Tone,
)
from commentdesk.services.draft_service import DraftService
from commentdesk.services.generation_service import GenerationService
from commentdesk.services.student_context_service import StudentContextService
from tests.fakes import TENANT


@pytest.fixture
def contexts(student_repo, template_repo):
    student_repo.add_student(TENANT, "s1", "Mara", ell=True)
    return StudentContextService(students=student_repo, templates=template_repo)


@pytest.fixture
def offline_service(contexts, no_openai_key):
    return DraftService(contexts=contexts, generator=GenerationService())


@pytest.mark.asyncio
async def test_missing_tenant_checked_first(offline_service, student_repo):
    with pytest.raises(MissingTenant):
        await offline_service.compose(None, DraftRequest(kind=DraftKind.GENERATE))

    assert student_repo.calls == []


@pytest.mark.asyncio
async def test_generate_requires_student(offline_service):
    with pytest.raises(InvalidPayload):
        await offline_service.compose(TENANT, DraftRequest(kind=DraftKind.GENERATE))


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", [DraftKind.REPHRASE, DraftKind.CONDENSE, DraftKind.PROOFREAD])
async def test_rewrite_requires_existing_draft(offline_service, kind):
    with pytest.raises(InvalidPayload):
        await offline_service.compose(TENANT, DraftRequest(kind=kind, text="   "))


@pytest.mark.asyncio
async def test_generate_without_credential_returns_fallback(offline_service):
    result = await offline_service.compose(TENANT, DraftRequest(student_id="s1"))

    assert result.source is DraftSource.FALLBACK
    assert "Mara" in result.text
    assert "language supports" in result.text


@pytest.mark.asyncio
async def test_sectioned_ell_student_without_credential(offline_service):
    result = await offline_service.compose(
        TENANT, DraftRequest(student_id="s1", mode=DraftMode.SECTIONED)
    )

    assert result.mode is DraftMode.SECTIONED
    assert "Mara" in result.sections.opener
    assert "language supports" in result.sections.opener
    assert all(isinstance(v, str) for v in result.sections.as_dict().values())


@pytest.mark.asyncio
async def test_unknown_student_is_not_found(offline_service):
    with pytest.raises(NotFound):
        await offline_service.compose(TENANT, DraftRequest(student_id="missing"))


@pytest.mark.asyncio
async def test_rewrite_without_credential_uses_local_transform(offline_service, student_repo):
    result = await offline_service.compose(
        TENANT, DraftRequest(kind=DraftKind.CONDENSE, text="A. B. C. D. E. F.")
    )

    assert result.source is DraftSource.TRANSFORM
    assert result.text == "A. B. C. D."
    assert student_repo.calls == []


@pytest.mark.asyncio
async def test_sectioned_rewrite_transforms_each_section(offline_service):
    request = DraftRequest(
        kind=DraftKind.PROOFREAD,
        mode=DraftMode.SECTIONED,
        sections=DraftSections(opener=" Hi ,  Mara ", conclusion="Bye"),
    )

    result = await offline_service.compose(TENANT, request)

    assert result.sections == DraftSections(opener="Hi, Mara", conclusion="Bye")


@pytest.mark.asyncio
async def test_rewrite_with_generator_uses_minimal_context(contexts, fake_openai):
    client = fake_openai("Clearer comment.")
    service = DraftService(contexts=contexts, generator=GenerationService(client=client))

    result = await service.compose(TENANT, DraftRequest(kind=DraftKind.REPHRASE, text="Comment ."))

    assert result.source is DraftSource.GENERATOR
    assert result.text == "Clearer comment."
    prompt = client.chat.completions.create.await_args.kwargs["messages"][1]["content"]
    assert "Current draft:\nComment ." in prompt


@pytest.mark.asyncio
async def test_generator_failure_is_not_replaced_by_fallback(contexts, fake_openai):
    client = fake_openai(side_effect=GenerationUnavailable("down"))
    service = DraftService(contexts=contexts, generator=GenerationService(client=client))

    with pytest.raises(GenerationUnavailable):
        await service.compose(TENANT, DraftRequest(student_id="s1"))


@pytest.mark.asyncio
async def test_generate_report_is_flat_professional(contexts, fake_openai):
    client = fake_openai("Mara had a strong term.")
    service = DraftService(contexts=contexts, generator=GenerationService(client=client))

    result = await service.generate_report(TENANT, "s1", "T2")

    assert result.mode is DraftMode.FLAT
    assert result.text == "Mara had a strong term."
    prompt = client.chat.completions.create.await_args.kwargs["messages"][1]["content"]
    assert f"Tone: {Tone.PROFESSIONAL.value}" in prompt
    assert "Term: T2" in prompt
