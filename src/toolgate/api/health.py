"""Health check endpoints."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])

_START_TIME = time.monotonic()


@router.get("/api/health")
async def health() -> dict[str, str]:
    """Basic health check -- always returns quickly."""
    return {"status": "ok"}


@router.get("/api/health/detailed")
async def health_detailed(request: Request) -> dict[str, Any]:
    """Detailed health check with component status."""
    from toolgate import __version__

    checks: dict[str, Any] = {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round(time.monotonic() - _START_TIME, 1),
        "components": {},
    }

    registry = getattr(request.app.state, "registry", None)
    executions = getattr(request.app.state, "executions", None)
    checks["components"]["tools"] = {
        "status": "ok" if registry is not None else "error",
        "registered": len(registry) if registry is not None else 0,
        "confirmation_required": len(executions) if executions is not None else 0,
    }

    agent = getattr(request.app.state, "agent", None)
    model = getattr(request.app.state, "model", None)
    if agent is None:
        checks["components"]["model"] = {"status": "unconfigured"}
        checks["status"] = "degraded"
    elif model is not None:
        try:
            healthy = await model.health_check()
        except Exception:
            healthy = False
        checks["components"]["model"] = {"status": "ok" if healthy else "unhealthy"}
        if not healthy:
            checks["status"] = "degraded"

    return checks
