"""
Guardian email composer.

Drafts are deterministic: the subject comes from the topic and the opener
from the tone. Rewrites of an existing email go through the local text
transforms.
"""

from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.draft_domain import (
    DraftKind,
    EmailDraft,
    EmailDraftRequest,
    Tone,
)
from commentdesk.services.text_transforms import transform_email

logger = get_logger(__name__)

DEFAULT_NAME = "The student"

SUBJECT_BY_TOPIC: dict[str, str] = {
    "progress": "Quick update about {name}",
    "concern": "Support plan for {name}",
    "positive": "Celebrating {name}'s success",
    "attendance": "{name}: attendance update",
    "behavior": "{name}: classroom update",
    "assignment": "{name}: assignment update",
    "meeting": "Request to meet about {name}",
    "general": "Update about {name}",
}

OPENER_BY_TONE: dict[Tone, str] = {
    Tone.NEUTRAL: "Hello, I wanted to share a brief update about {name}.",
    Tone.WARM: "Hello, I hope you're well. I wanted to share a quick update about {name}.",
    Tone.PROFESSIONAL: "Hello, I'm reaching out with an update regarding {name}.",
    Tone.ENCOURAGING: "Hi! I'm excited to share a quick update about {name}.",
    Tone.DIRECT: "Hello, a quick update about {name}.",
}

BODY_TEMPLATE = """{opener}

Recently, {name} has shown steady progress in class. I've noticed positive steps with daily routines and participation.

Next, we'll focus on goal-setting and using feedback to improve work. Any support you can offer at home (e.g., checking the planner) would be appreciated.

Thank you for your partnership,
{{{{teacher_name}}}}"""


def _topic_key(topic: str | None) -> str:
    key = (topic or "general").strip().lower()
    if key.startswith("topic:"):
        key = key[len("topic:"):]
    return key if key in SUBJECT_BY_TOPIC else "general"


def draft_email(first_name: str | None, topic: str | None, tone: Tone) -> EmailDraft:
    name = (first_name or "").strip() or DEFAULT_NAME
    subject = SUBJECT_BY_TOPIC[_topic_key(topic)].format(name=name)
    opener = OPENER_BY_TONE.get(tone, OPENER_BY_TONE[Tone.NEUTRAL]).format(name=name)
    return EmailDraft(subject=subject, body=BODY_TEMPLATE.format(opener=opener, name=name))


class EmailComposeService:
    def compose(self, request: EmailDraftRequest) -> EmailDraft:
        subject, body = request.subject or "", request.body or ""

        if request.kind is DraftKind.GENERATE or (not subject and not body):
            drafted = draft_email(request.first_name, request.topic, request.tone)
            subject, body = drafted.subject, drafted.body

        if request.kind.rewrites_existing:
            subject, body = transform_email(request.kind, subject, body)

        logger.info(
            "Guardian email composed",
            kind=request.kind.value,
            topic=_topic_key(request.topic),
            tone=request.tone.value,
        )
        return EmailDraft(subject=subject, body=body)


email_compose_service = EmailComposeService()
