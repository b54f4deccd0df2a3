"""
Template Domain Models
Comment templates, retrieval queries and partial updates.
Used by the search engine, the template service and the repository.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from commentdesk.errors import InvalidPayload

# Tags that mark a template as an email template, any one is enough
EMAIL_TAG_SYNONYMS: tuple[str, ...] = ("email", "template:email", "email-template")

# Whitelisted update fields, keyed by the payload names callers may send
UPDATABLE_FIELDS: dict[str, str] = {
    "text": "text",
    "tags": "tags",
    "subject": "subject",
    "gradeBand": "grade_band",
    "grade_band": "grade_band",
    "topic": "topic",
}

CATEGORY_PREFIX = "category:"
LEVEL_PREFIX = "level:"

# Achievement levels used by the starter bank, best first
LEVELS: tuple[str, ...] = ("e", "g", "s", "n")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_SLUG_STRIP = re.compile(r"['\"’]")
_SLUG_SEPARATOR = re.compile(r"[^a-z0-9]+")


class TemplateType(str, Enum):
    LEARNING = "learning"
    EMAIL = "email"
    SUBJECT = "subject"
    NONE = "none"

    @classmethod
    def parse(cls, value: "str | TemplateType | None") -> "TemplateType":
        """Unknown or empty values mean no type filter."""
        if isinstance(value, TemplateType):
            return value
        if not value:
            return cls.NONE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NONE


def normalize_tags(tags: Any) -> list[str]:
    """Lower-case, trim, drop empties and collapse duplicates (first wins)."""
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    seen: list[str] = []
    for tag in tags:
        value = str(tag).strip().lower()
        if value and value not in seen:
            seen.append(value)
    return seen


def clamp_limit(raw: Any, default: int = 500, maximum: int = 2000) -> int:
    """
    Resolve a requested result limit.

    Missing, non-numeric and zero values use ``default``; anything else is
    clamped into ``[1, maximum]``.
    """
    value = 0
    if raw is not None and not isinstance(raw, bool):
        match = _LEADING_INT.match(str(raw))
        if match:
            value = int(match.group(1))
    if not value:
        value = default
    return min(max(value, 1), maximum)


def slugify(value: Any) -> str:
    """``"Independent Work"`` -> ``"independent-work"``; ``&`` reads as ``and``."""
    text = str(value or "").lower().replace("&", "and")
    text = _SLUG_STRIP.sub("", text)
    return _SLUG_SEPARATOR.sub("-", text).strip("-")


def parse_level(value: Any) -> str | None:
    """Known level letter, or None (no level filter) for anything else."""
    level = str(value or "").strip().lower()
    return level if level in LEVELS else None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required_text(value: Any) -> str:
    text = str(value or "").strip()
    if not text:
        raise InvalidPayload("text is required")
    return text


@dataclass(slots=True)
class Template:
    """A reusable comment snippet owned by one tenant."""

    id: str
    tenant_id: str
    text: str
    tags: list[str] = field(default_factory=list)
    subject: str | None = None
    grade_band: str | None = None
    topic: str | None = None
    created_at: datetime | None = None

    def __post_init__(self):
        self.tags = normalize_tags(self.tags)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Template":
        return cls(
            id=str(row["id"]),
            tenant_id=str(row["tenant_id"]),
            text=row.get("text") or "",
            tags=list(row.get("tags") or []),
            subject=row.get("subject"),
            grade_band=row.get("grade_band"),
            topic=row.get("topic"),
            created_at=row.get("created_at"),
        )


@dataclass(slots=True)
class NewTemplate:
    """Validated fields for authoring or seeding a template."""

    text: str
    tags: list[str] = field(default_factory=list)
    subject: str | None = None
    grade_band: str | None = None
    topic: str | None = None

    def __post_init__(self):
        self.text = _required_text(self.text)
        self.tags = normalize_tags(self.tags)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NewTemplate":
        return cls(
            text=_required_text(payload.get("text")),
            tags=normalize_tags(payload.get("tags")),
            subject=_optional_text(payload.get("subject")),
            grade_band=_optional_text(payload.get("gradeBand", payload.get("grade_band"))),
            topic=_optional_text(payload.get("topic")),
        )


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(slots=True)
class TemplateUpdate:
    """
    Partial update of a template.

    A field left as ``UNSET`` is not touched. ``subject``, ``grade_band`` and
    ``topic`` may be set to ``None`` to clear them; ``text`` and ``tags`` may
    not be cleared.
    """

    text: str = UNSET
    tags: list[str] = UNSET
    subject: str | None = UNSET
    grade_band: str | None = UNSET
    topic: str | None = UNSET

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TemplateUpdate":
        """Build an update from a raw payload, ignoring non-whitelisted keys."""
        values: dict[str, Any] = {}
        for key, value in payload.items():
            attr = UPDATABLE_FIELDS.get(key)
            if attr is None or attr in values:
                continue
            if attr == "text":
                values[attr] = _required_text(value)
            elif attr == "tags":
                if value is None:
                    raise InvalidPayload("tags cannot be null")
                values[attr] = normalize_tags(value)
            else:
                values[attr] = _optional_text(value)
        return cls(**values)

    def changes(self) -> dict[str, Any]:
        """Column name to new value for every field that was provided."""
        out: dict[str, Any] = {}
        for name in ("text", "tags", "subject", "grade_band", "topic"):
            value = getattr(self, name)
            if value is not UNSET:
                out[name] = value
        return out

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(slots=True)
class RetrievalQuery:
    """A single template search. Never persisted."""

    tenant_id: str | None
    search: str | None = None
    jurisdiction: str | None = None
    type: TemplateType = TemplateType.NONE
    limit: int = 500

    @classmethod
    def from_params(
        cls,
        tenant_id: str | None,
        search: str | None = None,
        jurisdiction: str | None = None,
        type: str | None = None,
        limit: Any = None,
        default_limit: int = 500,
        max_limit: int = 2000,
    ) -> "RetrievalQuery":
        return cls(
            tenant_id=(tenant_id or "").strip() or None,
            search=(search or "").strip() or None,
            jurisdiction=(jurisdiction or "").strip().lower() or None,
            type=TemplateType.parse(type),
            limit=clamp_limit(limit, default=default_limit, maximum=max_limit),
        )


@dataclass(slots=True)
class TemplateSummary:
    """Template counts by level and by skill category."""

    total: int = 0
    by_level: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_tag_sets(cls, tag_sets: list[list[str]]) -> "TemplateSummary":
        """
        Count one entry per template.

        A template without a ``level:`` tag counts under ``"(none)"``; one
        with several ``category:`` tags counts once under each.
        """
        summary = cls(total=len(tag_sets))
        for tags in tag_sets:
            tags = normalize_tags(tags)
            levels = [t[len(LEVEL_PREFIX):] for t in tags if t.startswith(LEVEL_PREFIX)]
            level = levels[0] if levels and levels[0] else "(none)"
            summary.by_level[level] = summary.by_level.get(level, 0) + 1

            for tag in tags:
                if tag.startswith(CATEGORY_PREFIX):
                    slug = tag[len(CATEGORY_PREFIX):] or "unknown"
                    summary.by_category[slug] = summary.by_category.get(slug, 0) + 1
        return summary
