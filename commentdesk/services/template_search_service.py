"""
Template Search Service
Translates retrieval queries into tag predicates and runs them against the
template store.

Filter categories compose with AND; the email type filter is the one
category that accepts any of several tags (OR). A free-text search adds an
OR across body, subject and tags on top of everything else.

Skill browsing and the library summary read the ``category:`` and ``level:``
tags the starter bank writes.
"""

from dataclasses import dataclass

from commentdesk.config import settings
from commentdesk.errors import InvalidPayload, MissingTenant
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.template_domain import (
    CATEGORY_PREFIX,
    EMAIL_TAG_SYNONYMS,
    LEVEL_PREFIX,
    RetrievalQuery,
    Template,
    TemplateSummary,
    TemplateType,
    parse_level,
    slugify,
)
from commentdesk.repositories.template_repository import template_repository

logger = get_logger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True, slots=True)
class TagFilter:
    """
    Compiled predicate over a template.

    ``required_tags`` must all be present; each group in ``any_tag_groups``
    needs at least one member present; ``search`` matches body or subject
    substrings or an exact tag.
    """

    tenant_id: str
    required_tags: tuple[str, ...] = ()
    any_tag_groups: tuple[tuple[str, ...], ...] = ()
    search: str | None = None

    def matches(self, template: Template) -> bool:
        if template.tenant_id != self.tenant_id:
            return False

        tags = {t.lower() for t in template.tags}
        if any(tag not in tags for tag in self.required_tags):
            return False
        if any(tags.isdisjoint(group) for group in self.any_tag_groups):
            return False

        if self.search:
            needle = self.search.lower()
            return (
                needle in template.text.lower()
                or needle in (template.subject or "").lower()
                or needle in tags
            )
        return True

    def to_sql(self) -> tuple[str, list]:
        """Render as a parameterised WHERE clause for ``comment_templates``."""
        clauses = ["tenant_id = %s"]
        params: list = [self.tenant_id]

        if self.required_tags:
            clauses.append("tags @> %s::text[]")
            params.append(list(self.required_tags))

        for group in self.any_tag_groups:
            clauses.append("tags && %s::text[]")
            params.append(list(group))

        if self.search:
            pattern = f"%{_escape_like(self.search)}%"
            clauses.append("(text ILIKE %s OR COALESCE(subject, '') ILIKE %s OR %s = ANY(tags))")
            params.extend([pattern, pattern, self.search.lower()])

        return " AND ".join(clauses), params


def _require_tenant(tenant_id: str | None) -> str:
    tenant_id = (tenant_id or "").strip()
    if not tenant_id:
        raise MissingTenant()
    return tenant_id


def build_filter(query: RetrievalQuery) -> TagFilter:
    """Compile a retrieval query. Raises MissingTenant for a blank tenant."""
    tenant_id = _require_tenant(query.tenant_id)

    required: list[str] = []
    groups: list[tuple[str, ...]] = []

    if query.jurisdiction:
        required.append(query.jurisdiction.strip().lower())

    if query.type is TemplateType.LEARNING:
        required.append("learning")
    elif query.type is TemplateType.SUBJECT:
        required.append("subject")
    elif query.type is TemplateType.EMAIL:
        groups.append(EMAIL_TAG_SYNONYMS)

    return TagFilter(
        tenant_id=tenant_id,
        required_tags=tuple(dict.fromkeys(required)),
        any_tag_groups=tuple(groups),
        search=(query.search or "").strip() or None,
    )


class TemplateSearchService:
    """Runs retrieval queries against the template store."""

    def __init__(self, repository=None):
        self.repository = repository or template_repository

    def make_query(
        self,
        tenant_id: str | None,
        search: str | None = None,
        jurisdiction: str | None = None,
        type: str | None = None,
        limit=None,
    ) -> RetrievalQuery:
        return RetrievalQuery.from_params(
            tenant_id,
            search=search,
            jurisdiction=jurisdiction,
            type=type,
            limit=limit,
            default_limit=settings.SEARCH_DEFAULT_LIMIT,
            max_limit=settings.SEARCH_MAX_LIMIT,
        )

    async def search(self, query: RetrievalQuery) -> list[Template]:
        tag_filter = build_filter(query)

        templates = await self.repository.search(tag_filter, query.limit)

        logger.info(
            "Template search completed",
            tenant_id=tag_filter.tenant_id,
            jurisdiction=query.jurisdiction,
            type=query.type.value,
            has_search=bool(tag_filter.search),
            limit=query.limit,
            results=len(templates),
        )
        return templates

    async def by_skill(
        self, tenant_id: str | None, skill: str | None, level: str | None = None
    ) -> list[Template]:
        """
        Templates tagged with a skill category, newest first.

        ``skill`` may be a label ("Independent Work") or a slug. An unknown
        ``level`` is ignored rather than matching nothing.
        """
        tenant_id = _require_tenant(tenant_id)
        slug = slugify(skill)
        if not slug:
            raise InvalidPayload("skill is required")

        required = [f"{CATEGORY_PREFIX}{slug}"]
        level_tag = parse_level(level)
        if level_tag:
            required.append(f"{LEVEL_PREFIX}{level_tag}")

        tag_filter = TagFilter(tenant_id=tenant_id, required_tags=tuple(required))
        templates = await self.repository.search(tag_filter, settings.SEARCH_MAX_LIMIT)

        logger.info(
            "Skill templates loaded", tenant_id=tenant_id, skill=slug, level=level_tag, results=len(templates)
        )
        return templates

    async def summary(self, tenant_id: str | None) -> TemplateSummary:
        tenant_id = _require_tenant(tenant_id)
        return TemplateSummary.from_tag_sets(await self.repository.tag_sets(tenant_id))


template_search_service = TemplateSearchService()
