import pytest

from commentdesk.errors import InvalidPayload, MissingTenant, NotFound
from commentdesk.services.template_search_service import TemplateSearchService
from commentdesk.services.template_seed import starter_templates
from commentdesk.services.template_service import TemplateService
from tests.fakes import TENANT


@pytest.fixture
def service(template_repo):
    return TemplateService(repository=template_repo)


@pytest.mark.asyncio
async def test_create_normalizes_tags(service):
    template = await service.create(TENANT, {"text": "Great work", "tags": ["Math", "math", " GRADE-4 "]})

    assert template.tenant_id == TENANT
    assert template.tags == ["math", "grade-4"]


@pytest.mark.asyncio
async def test_create_rejects_empty_text(service, template_repo):
    with pytest.raises(InvalidPayload):
        await service.create(TENANT, {"text": ""})

    assert template_repo.calls == []


@pytest.mark.asyncio
async def test_update_applies_only_whitelisted_fields(service, template_repo):
    template = template_repo.add(TENANT, "Old text", ["learning"])

    updated = await service.update(
        TENANT,
        template.id,
        {"text": "New text", "gradeBand": "K-2", "tenant_id": "tenant-b", "id": "hijack"},
    )

    assert updated.id == template.id
    assert updated.tenant_id == TENANT
    assert updated.text == "New text"
    assert updated.grade_band == "K-2"
    assert updated.tags == ["learning"]


@pytest.mark.asyncio
async def test_update_unknown_template_is_not_found(service):
    with pytest.raises(NotFound):
        await service.update(TENANT, "missing", {"text": "x"})


@pytest.mark.asyncio
async def test_get_is_tenant_scoped(service, template_repo):
    template = template_repo.add("tenant-b", "Theirs", ["learning"])

    with pytest.raises(NotFound):
        await service.get(TENANT, template.id)


@pytest.mark.asyncio
async def test_delete(service, template_repo):
    template = template_repo.add(TENANT, "Bye", [])

    await service.delete(TENANT, template.id)

    assert template_repo.templates == []
    with pytest.raises(NotFound):
        await service.delete(TENANT, template.id)


@pytest.mark.asyncio
async def test_missing_tenant_raises_before_store_call(service, template_repo):
    with pytest.raises(MissingTenant):
        await service.seed_jurisdiction(" ", "ontario")

    assert template_repo.calls == []


@pytest.mark.asyncio
async def test_seed_jurisdiction_inserts_starter_bank_once(service, template_repo):
    first = await service.seed_jurisdiction(TENANT, "Ontario")
    second = await service.seed_jurisdiction(TENANT, "ontario")

    assert first == {"ok": True, "seeded": True, "count": len(starter_templates("ontario")), "jurisdiction": "ontario"}
    assert second["seeded"] is False
    assert second["count"] == 0
    assert all("ontario" in t.tags for t in template_repo.templates)


def test_starter_templates_cover_learning_and_email():
    templates = starter_templates("bc")

    assert all("bc" in t.tags for t in templates)
    assert any("learning" in t.tags for t in templates)
    emails = [t for t in templates if "email" in t.tags]
    assert emails
    assert all(t.subject for t in emails)


@pytest.mark.asyncio
async def test_seeded_bank_is_browsable_by_skill(service, template_repo):
    await service.seed_jurisdiction(TENANT, "ontario")
    search = TemplateSearchService(repository=template_repo)

    responsibility = await search.by_skill(TENANT, "Responsibility")
    summary = await search.summary(TENANT)

    assert {t.text for t in responsibility} >= {
        "Set a small goal each class and reflect briefly at the end.",
    }
    assert all("category:responsibility" in t.tags for t in responsibility)
    assert summary.by_category["self-regulation"] == 2
    assert summary.by_level["e"] >= 1
