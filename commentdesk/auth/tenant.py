"""
Tenant and role resolution for requests.

The tenant comes from the token claims, then the ``X-Tenant-Id`` header, then
``DEFAULT_TENANT_ID``. Services raise MissingTenant when none resolves.
"""

from dataclasses import dataclass, field

from fastapi import Depends, Request

from commentdesk.auth.verify import auth_dependency
from commentdesk.config import settings
from commentdesk.errors import Forbidden
from commentdesk.infrastructure.observability.logging import bind_request_context

TENANT_HEADERS = ("x-tenant-id", "x-tenantid", "x_tenant_id")


@dataclass(slots=True)
class Caller:
    tenant_id: str | None
    user_id: str | None = None
    roles: list[str] = field(default_factory=list)

    def can_write(self) -> bool:
        allowed = {r.lower() for r in settings.WRITE_ROLES}
        return any(role.lower() in allowed for role in self.roles)


def _claim_tenant(claims: dict) -> str | None:
    for source in (claims, claims.get("app_metadata") or {}, claims.get("user_metadata") or {}):
        value = source.get("tenant_id") or source.get("tenantId")
        if value:
            return str(value)
    return None


def _claim_roles(claims: dict) -> list[str]:
    roles: list[str] = []
    for source in (claims, claims.get("app_metadata") or {}):
        value = source.get("roles")
        if isinstance(value, str):
            roles.extend(r.strip() for r in value.split(","))
        elif isinstance(value, list):
            roles.extend(str(r) for r in value)
        for key in ("role", "user_role"):
            if source.get(key):
                roles.append(str(source[key]))
    return [r for r in dict.fromkeys(roles) if r]


def resolve_tenant_id(claims: dict, headers) -> str | None:
    candidates = [_claim_tenant(claims)]
    candidates.extend(headers.get(name) for name in TENANT_HEADERS)
    candidates.append(settings.DEFAULT_TENANT_ID)
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


async def caller_dependency(request: Request, claims: dict = Depends(auth_dependency)) -> Caller:
    caller = Caller(
        tenant_id=resolve_tenant_id(claims, request.headers),
        user_id=claims.get("sub"),
        roles=_claim_roles(claims),
    )
    bind_request_context(tenant_id=caller.tenant_id, user_id=caller.user_id)
    return caller


def writer_dependency(caller: Caller = Depends(caller_dependency)) -> Caller:
    """Caller allowed to modify the template library."""
    if not caller.can_write():
        raise Forbidden("A teacher or admin role is required for this operation")
    return caller
