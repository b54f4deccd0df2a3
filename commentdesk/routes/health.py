"""
Liveness and readiness probes.

Readiness covers the record store pool and required configuration. The
generator is reported but never makes the service unready: without an API
key drafts come from the deterministic fallback.
"""

import time
from typing import Any

from fastapi import APIRouter

from commentdesk.config import settings
from commentdesk.db.pool import db_health_check
from commentdesk.services.generation_service import generation_service

router = APIRouter(tags=["health"])


async def _record_store_check() -> dict[str, Any]:
    started = time.time()
    try:
        health = await db_health_check()
    except Exception as e:
        health = {"healthy": False, "error": f"{type(e).__name__}: {e}"}

    check = {"ok": bool(health.get("healthy")), "latency_ms": round((time.time() - started) * 1000, 1)}
    check.update(health.get("pool_stats", {}))
    if not check["ok"]:
        check["error"] = health.get("error", "Record store unavailable")
    return check


def _configuration_check() -> dict[str, Any]:
    missing = [name for name in ("DATABASE_URL", "SUPABASE_URL") if not getattr(settings, name)]
    return {
        "ok": not missing,
        "missing": missing or None,
        "environment": settings.environment,
    }


@router.get("/healthz")
async def healthz():
    """Always 200 while the process is serving requests."""
    return {"status": "ok", "service": "commentdesk"}


@router.get("/readyz")
async def readyz():
    checks = {
        "database": await _record_store_check(),
        "generator": generation_service.status(),
        "configuration": _configuration_check(),
    }
    overall_ok = checks["database"]["ok"] and checks["configuration"]["ok"]
    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}


@router.get("/health/database")
async def database_health():
    """Raw pool health, including pool statistics."""
    return await db_health_check()
