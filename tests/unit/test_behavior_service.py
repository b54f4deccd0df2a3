from datetime import UTC, datetime, timedelta

import pytest

from commentdesk.errors import MissingTenant
from commentdesk.models.domain.student_domain import BehaviorNote
from commentdesk.services.behavior_service import BehaviorService, summarize
from tests.fakes import TENANT


def _note(*tags, days_ago=1):
    return BehaviorNote(body="note", tags=list(tags), created_at=datetime.now(UTC) - timedelta(days=days_ago))


def test_summarize_flags_repeated_disruptions():
    notes = [_note("behavior", "disruption") for _ in range(2)] + [_note("incident", "off-task")]

    summary = summarize(notes, 14)

    assert summary.count == 3
    assert summary.suggestions == [
        "3+ disruptions in the last 14 days. Suggest: small-group activity and parent note."
    ]


def test_summarize_celebrates_positive_notes():
    summary = summarize([_note("behavior", "kindness"), _note("behavior", "positive")], 7)

    assert summary.suggestions == ["Multiple positive incidents. Send a quick celebration note to guardians."]


def test_summarize_without_notes_suggests_spot_check():
    summary = summarize([], 14)

    assert summary.count == 0
    assert summary.suggestions == ["No incidents logged. Consider a quick spot-check this week."]


@pytest.mark.asyncio
async def test_suggest_only_counts_notes_in_window(student_repo):
    student_repo.notes["s1"] = [
        _note("behavior", "disruption", days_ago=1),
        _note("behavior", "disruption", days_ago=2),
        _note("behavior", "disruption", days_ago=30),
        _note("homework", days_ago=1),
    ]
    service = BehaviorService(repository=student_repo)

    summary = await service.suggest(TENANT, "s1", days=14)

    assert summary.count == 2
    assert summary.suggestions == []


@pytest.mark.asyncio
async def test_suggest_requires_tenant(student_repo):
    with pytest.raises(MissingTenant):
        await BehaviorService(repository=student_repo).suggest(None, "s1")

    assert student_repo.calls == []
