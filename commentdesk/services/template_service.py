"""
Template Service
Authoring, updating, deleting and seeding a tenant's comment templates.
"""

from typing import Any

from commentdesk.errors import InvalidPayload, MissingTenant, NotFound
from commentdesk.infrastructure.observability.logging import get_logger
from commentdesk.models.domain.template_domain import (
    UPDATABLE_FIELDS,
    NewTemplate,
    Template,
    TemplateUpdate,
)
from commentdesk.repositories.template_repository import template_repository
from commentdesk.services.template_seed import starter_templates

logger = get_logger(__name__)


def _require_tenant(tenant_id: str | None) -> str:
    tenant_id = (tenant_id or "").strip()
    if not tenant_id:
        raise MissingTenant()
    return tenant_id


class TemplateService:
    def __init__(self, repository=None):
        self.repository = repository or template_repository

    async def create(self, tenant_id: str | None, payload: dict[str, Any]) -> Template:
        tenant_id = _require_tenant(tenant_id)
        new_template = NewTemplate.from_payload(payload)

        template = await self.repository.create(tenant_id, new_template)
        logger.info(
            "Template created", tenant_id=tenant_id, template_id=template.id, tags=template.tags
        )
        return template

    async def get(self, tenant_id: str | None, template_id: str) -> Template:
        tenant_id = _require_tenant(tenant_id)
        template = await self.repository.get(tenant_id, template_id)
        if template is None:
            raise NotFound(f"Template {template_id} not found")
        return template

    async def update(
        self, tenant_id: str | None, template_id: str, payload: dict[str, Any]
    ) -> Template:
        """Apply whitelisted fields from ``payload``; other keys are ignored."""
        tenant_id = _require_tenant(tenant_id)
        if not isinstance(payload, dict):
            raise InvalidPayload("Update payload must be an object")

        ignored = sorted(k for k in payload if k not in UPDATABLE_FIELDS)
        if ignored:
            logger.warning(
                "Ignoring non-updatable template fields",
                tenant_id=tenant_id,
                template_id=template_id,
                fields=ignored,
            )

        update = TemplateUpdate.from_payload(payload)
        template = await self.repository.update(tenant_id, template_id, update)
        if template is None:
            raise NotFound(f"Template {template_id} not found")

        logger.info(
            "Template updated",
            tenant_id=tenant_id,
            template_id=template_id,
            fields=sorted(update.changes()),
        )
        return template

    async def delete(self, tenant_id: str | None, template_id: str) -> None:
        tenant_id = _require_tenant(tenant_id)
        deleted = await self.repository.delete(tenant_id, template_id)
        if not deleted:
            raise NotFound(f"Template {template_id} not found")
        logger.info("Template deleted", tenant_id=tenant_id, template_id=template_id)

    async def seed_jurisdiction(self, tenant_id: str | None, jurisdiction: str | None) -> dict[str, Any]:
        """
        Seed the starter bank for a jurisdiction.

        Skipped when the tenant already has templates tagged with it.
        """
        tenant_id = _require_tenant(tenant_id)
        jurisdiction = (jurisdiction or "").strip().lower() or "generic"

        existing = await self.repository.count_tagged(tenant_id, jurisdiction)
        if existing > 0:
            logger.info(
                "Jurisdiction already seeded",
                tenant_id=tenant_id,
                jurisdiction=jurisdiction,
                existing=existing,
            )
            return {"ok": True, "seeded": False, "count": 0, "jurisdiction": jurisdiction}

        count = await self.repository.create_many(tenant_id, starter_templates(jurisdiction))
        logger.info("Jurisdiction seeded", tenant_id=tenant_id, jurisdiction=jurisdiction, count=count)
        return {"ok": True, "seeded": True, "count": count, "jurisdiction": jurisdiction}


template_service = TemplateService()
