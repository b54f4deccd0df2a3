"""
Tests for drafting, report and behavior endpoints.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from commentdesk.main import app
from commentdesk.models.domain.student_domain import BehaviorNote
from commentdesk.services.behavior_service import BehaviorService
from commentdesk.services.draft_service import DraftService
from commentdesk.services.generation_service import GenerationService
from commentdesk.services.student_context_service import StudentContextService
from tests.fakes import TENANT

client = TestClient(app)


@pytest.fixture
def contexts(student_repo, template_repo, apply_auth_override):
    student_repo.add_student(TENANT, "s1", "Mara", ell=True)
    apply_auth_override(app)
    return StudentContextService(students=student_repo, templates=template_repo)


@pytest.fixture
def use_generator(monkeypatch, contexts):
    def _use(generator: GenerationService):
        monkeypatch.setattr(
            "commentdesk.routes.drafts.draft_service", DraftService(contexts=contexts, generator=generator)
        )

    return _use


def test_compose_without_credential_returns_fallback(use_generator, no_openai_key):
    use_generator(GenerationService())

    response = client.post("/comments/compose", json={"kind": "generate", "student_id": "s1"})

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "fallback"
    assert data["mode"] == "flat"
    assert "Mara" in data["text"]
    assert "sections" not in data


def test_compose_sectioned_for_ell_student(use_generator, no_openai_key):
    use_generator(GenerationService())

    response = client.post(
        "/comments/compose", json={"kind": "generate", "student_id": "s1", "mode": "sectioned"}
    )

    assert response.status_code == 200
    sections = response.json()["sections"]
    assert "Mara" in sections["opener"]
    assert "language supports" in sections["opener"]
    assert set(sections) == {"opener", "evidence", "nextSteps", "conclusion"}
    assert all(isinstance(v, str) for v in sections.values())


def test_compose_generate_without_student_is_400(use_generator, no_openai_key):
    use_generator(GenerationService())

    response = client.post("/comments/compose", json={"kind": "generate"})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_payload"


def test_compose_unknown_kind_is_400(use_generator, no_openai_key):
    use_generator(GenerationService())

    response = client.post("/comments/compose", json={"kind": "summarize", "text": "x"})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_payload"


def test_compose_unknown_student_is_404(use_generator, no_openai_key):
    use_generator(GenerationService())

    response = client.post("/comments/compose", json={"student_id": "nobody"})

    assert response.status_code == 404


def test_sectioned_rewrite_accepts_camel_case_next_steps(use_generator, no_openai_key):
    use_generator(GenerationService())

    response = client.post(
        "/comments/compose",
        json={
            "kind": "proofread",
            "mode": "sectioned",
            "sections": {"opener": "Hi ,  Mara", "nextSteps": "Read  daily ."},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "transform"
    assert data["sections"]["opener"] == "Hi, Mara"
    assert data["sections"]["nextSteps"] == "Read daily ."


def test_sectioned_draft_posts_back_for_rewrite(use_generator, no_openai_key):
    use_generator(GenerationService())
    drafted = client.post(
        "/comments/compose", json={"kind": "generate", "student_id": "s1", "mode": "sectioned"}
    ).json()["sections"]

    response = client.post(
        "/comments/compose", json={"kind": "proofread", "mode": "sectioned", "sections": drafted}
    )

    assert response.status_code == 200
    assert response.json()["sections"] == drafted
    assert drafted["nextSteps"]


def test_generator_failure_is_502(use_generator, fake_openai):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    use_generator(GenerationService(client=fake_openai(side_effect=openai.APITimeoutError(request=request))))

    response = client.post("/comments/compose", json={"student_id": "s1"})

    assert response.status_code == 502
    assert response.json()["error"] == "generation_unavailable"


def test_generate_report(use_generator, fake_openai):
    use_generator(GenerationService(client=fake_openai("Mara had a strong first term.")))

    response = client.post("/reports/generate", json={"student_id": "s1", "term": "T1"})

    assert response.status_code == 200
    assert response.json() == {"mode": "flat", "source": "generator", "text": "Mara had a strong first term."}


def test_compose_email(contexts):
    response = client.post(
        "/comments/compose-email",
        json={"kind": "generate", "first_name": "Mara", "topic": "topic:attendance", "tone": "Warm"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["subject"] == "Mara: attendance update"
    assert data["body"].startswith("Hello, I hope you're well.")


def test_behavior_suggest(monkeypatch, contexts, student_repo):
    student_repo.notes["s1"] = [
        BehaviorNote(body="Loud", tags=["behavior", "disruption"], created_at=datetime.now(UTC))
        for _ in range(3)
    ]
    monkeypatch.setattr("commentdesk.routes.behavior.behavior_service", BehaviorService(repository=student_repo))

    response = client.post("/behavior/suggest", json={"student_id": "s1", "days": 14})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 3
    assert data["suggestions"][0].startswith("3+ disruptions in the last 14 days.")


def test_behavior_store_failure_is_503(monkeypatch, contexts, student_repo):
    student_repo.fail_notes = True
    monkeypatch.setattr("commentdesk.routes.behavior.behavior_service", BehaviorService(repository=student_repo))

    response = client.post("/behavior/suggest", json={"student_id": "s1"})

    assert response.status_code == 503
    assert response.json()["error"] == "store_unavailable"


def test_behavior_unexpected_error_is_500(monkeypatch, contexts):
    broken = SimpleNamespace(suggest=AsyncMock(side_effect=ValueError("boom")))
    monkeypatch.setattr("commentdesk.routes.behavior.behavior_service", broken)

    response = client.post("/behavior/suggest", json={"student_id": "s1"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to suggest behavior follow-ups"}
