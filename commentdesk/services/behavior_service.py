"""
Behavior suggestions from recent behavior and incident notes.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from commentdesk.errors import MissingTenant
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.student_domain import BehaviorNote
from commentdesk.repositories.student_repository import student_repository

logger = get_logger(__name__)

SUGGESTION_TAGS = ("behavior", "incident")
DISRUPTION_KEYWORDS = ("disruption", "off-task")
POSITIVE_KEYWORDS = ("kindness", "positive")
DISRUPTION_THRESHOLD = 3
POSITIVE_THRESHOLD = 2
NOTE_SCAN_LIMIT = 500


@dataclass(slots=True)
class BehaviorSummary:
    count: int
    suggestions: list[str] = field(default_factory=list)


def _has_keyword(note: BehaviorNote, keywords: tuple[str, ...]) -> bool:
    return any(k in tag for tag in note.tags for k in keywords)


def summarize(notes: list[BehaviorNote], days: int) -> BehaviorSummary:
    disruptions = sum(1 for n in notes if _has_keyword(n, DISRUPTION_KEYWORDS))
    positives = sum(1 for n in notes if _has_keyword(n, POSITIVE_KEYWORDS))

    suggestions: list[str] = []
    if disruptions >= DISRUPTION_THRESHOLD:
        suggestions.append(
            f"{DISRUPTION_THRESHOLD}+ disruptions in the last {days} days. "
            "Suggest: small-group activity and parent note."
        )
    if positives >= POSITIVE_THRESHOLD:
        suggestions.append("Multiple positive incidents. Send a quick celebration note to guardians.")
    if not notes:
        suggestions.append("No incidents logged. Consider a quick spot-check this week.")

    return BehaviorSummary(count=len(notes), suggestions=suggestions)


class BehaviorService:
    def __init__(self, repository=None):
        self.repository = repository or student_repository

    async def suggest(self, tenant_id: str | None, student_id: str, days: int = 14) -> BehaviorSummary:
        tenant_id = (tenant_id or "").strip()
        if not tenant_id:
            raise MissingTenant()

        since = datetime.now(UTC) - timedelta(days=days)
        notes = await self.repository.recent_notes(
            tenant_id, student_id, NOTE_SCAN_LIMIT, tags=SUGGESTION_TAGS, since=since
        )
        summary = summarize(notes, days)

        logger.info(
            "Behavior suggestions computed",
            tenant_id=tenant_id,
            student_id=student_id,
            days=days,
            notes=summary.count,
            suggestions=len(summary.suggestions),
        )
        return summary


behavior_service = BehaviorService()
