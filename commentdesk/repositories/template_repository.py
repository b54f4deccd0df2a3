"""
Repository for the comment template library.

All reads and writes are tenant-scoped. Database failures are surfaced as
StoreUnavailable so callers can report a transient error.
"""

import uuid
from typing import Any

from commentdesk.db.helpers import (
    DatabaseError,
    execute_query,
    execute_transaction,
    fetch_all,
    fetch_one,
    fetch_val,
)
from commentdesk.errors import StoreUnavailable
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.template_domain import NewTemplate, Template, TemplateUpdate

logger = get_logger(__name__)

TEMPLATE_COLUMNS = "id, tenant_id, text, tags, subject, grade_band, topic, created_at"

# Columns a partial update may touch, in a fixed order
_UPDATE_COLUMNS = ("text", "tags", "subject", "grade_band", "topic")


def _store_error(operation: str, error: DatabaseError, **fields: Any) -> StoreUnavailable:
    logger.error("Template store operation failed", operation=operation, error=str(error), **fields)
    return StoreUnavailable(f"Template store unavailable during {operation}", operation=operation)


class TemplateRepository:
    """SQL access to the ``comment_templates`` table."""

    async def search(self, tag_filter, limit: int) -> list[Template]:
        """Run a compiled tag filter, newest first."""
        where, params = tag_filter.to_sql()
        query = f"""
            SELECT {TEMPLATE_COLUMNS}
            FROM comment_templates
            WHERE {where}
            ORDER BY created_at DESC
            LIMIT %s
        """
        try:
            rows = await fetch_all(query, (*params, limit))
        except DatabaseError as e:
            raise _store_error("search", e, tenant_id=tag_filter.tenant_id) from e
        return [Template.from_row(row) for row in rows]

    async def sample(self, tenant_id: str, limit: int) -> list[Template]:
        """Any ``limit`` templates of the tenant, used as a style corpus."""
        query = f"""
            SELECT {TEMPLATE_COLUMNS}
            FROM comment_templates
            WHERE tenant_id = %s
            LIMIT %s
        """
        try:
            rows = await fetch_all(query, (tenant_id, limit))
        except DatabaseError as e:
            raise _store_error("sample", e, tenant_id=tenant_id) from e
        return [Template.from_row(row) for row in rows]

    async def get(self, tenant_id: str, template_id: str) -> Template | None:
        query = f"""
            SELECT {TEMPLATE_COLUMNS}
            FROM comment_templates
            WHERE tenant_id = %s AND id::text = %s
        """
        try:
            row = await fetch_one(query, (tenant_id, template_id))
        except DatabaseError as e:
            raise _store_error("get", e, tenant_id=tenant_id, template_id=template_id) from e
        return Template.from_row(row) if row else None

    async def create(self, tenant_id: str, template: NewTemplate) -> Template:
        query = f"""
            INSERT INTO comment_templates (id, tenant_id, text, tags, subject, grade_band, topic)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {TEMPLATE_COLUMNS}
        """
        params = (
            str(uuid.uuid4()),
            tenant_id,
            template.text,
            template.tags,
            template.subject,
            template.grade_band,
            template.topic,
        )
        try:
            row = await fetch_one(query, params)
        except DatabaseError as e:
            raise _store_error("create", e, tenant_id=tenant_id) from e
        return Template.from_row(row)

    async def create_many(self, tenant_id: str, templates: list[NewTemplate]) -> int:
        """Insert a batch in one transaction."""
        query = """
            INSERT INTO comment_templates (id, tenant_id, text, tags, subject, grade_band, topic)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """
        batch = [
            (
                query,
                (
                    str(uuid.uuid4()),
                    tenant_id,
                    t.text,
                    t.tags,
                    t.subject,
                    t.grade_band,
                    t.topic,
                ),
            )
            for t in templates
        ]
        try:
            await execute_transaction(batch)
        except DatabaseError as e:
            raise _store_error("create_many", e, tenant_id=tenant_id, count=len(batch)) from e
        return len(batch)

    async def update(
        self, tenant_id: str, template_id: str, update: TemplateUpdate
    ) -> Template | None:
        """Apply the provided fields; returns None when the template does not exist."""
        changes = update.changes()
        if not changes:
            return await self.get(tenant_id, template_id)

        columns = [c for c in _UPDATE_COLUMNS if c in changes]
        assignments = ", ".join(f"{column} = %s" for column in columns)
        query = f"""
            UPDATE comment_templates
            SET {assignments}
            WHERE tenant_id = %s AND id::text = %s
            RETURNING {TEMPLATE_COLUMNS}
        """
        params = (*(changes[c] for c in columns), tenant_id, template_id)
        try:
            row = await fetch_one(query, params)
        except DatabaseError as e:
            raise _store_error("update", e, tenant_id=tenant_id, template_id=template_id) from e
        return Template.from_row(row) if row else None

    async def delete(self, tenant_id: str, template_id: str) -> bool:
        query = "DELETE FROM comment_templates WHERE tenant_id = %s AND id::text = %s"
        try:
            affected = await execute_query(query, (tenant_id, template_id))
        except DatabaseError as e:
            raise _store_error("delete", e, tenant_id=tenant_id, template_id=template_id) from e
        return affected > 0

    async def tag_sets(self, tenant_id: str) -> list[list[str]]:
        """The tag array of every template the tenant owns."""
        query = "SELECT tags FROM comment_templates WHERE tenant_id = %s"
        try:
            rows = await fetch_all(query, (tenant_id,))
        except DatabaseError as e:
            raise _store_error("tag_sets", e, tenant_id=tenant_id) from e
        return [list(row.get("tags") or []) for row in rows]

    async def count_tagged(self, tenant_id: str, tag: str) -> int:
        query = "SELECT COUNT(*) FROM comment_templates WHERE tenant_id = %s AND %s = ANY(tags)"
        try:
            count = await fetch_val(query, (tenant_id, tag))
        except DatabaseError as e:
            raise _store_error("count_tagged", e, tenant_id=tenant_id, tag=tag) from e
        return int(count or 0)


template_repository = TemplateRepository()
