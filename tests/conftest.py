from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from commentdesk.auth.verify import auth_dependency
from tests.fakes import TENANT, FakeStudentRepository, FakeTemplateRepository, make_completion


@pytest.fixture
def auth_override():
    def _override():
        return {"sub": "user-123", "tenant_id": TENANT, "app_metadata": {"roles": ["teacher"]}}

    return _override


@pytest.fixture
def apply_auth_override(auth_override):
    applied = []

    def _apply(app, override=None):
        app.dependency_overrides[auth_dependency] = override or auth_override
        applied.append(app)

    yield _apply
    for app in applied:
        app.dependency_overrides.clear()


@pytest.fixture
def template_repo():
    return FakeTemplateRepository()


@pytest.fixture
def student_repo():
    return FakeStudentRepository()


@pytest.fixture
def fake_openai():
    """Builds a client exposing ``chat.completions.create`` as an AsyncMock."""

    def _build(content: str | None = "Generated comment.", side_effect=None):
        create = AsyncMock(return_value=make_completion(content), side_effect=side_effect)
        return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

    return _build


@pytest.fixture
def no_openai_key(monkeypatch):
    monkeypatch.setattr("commentdesk.config.settings.OPENAI_API_KEY", None)
