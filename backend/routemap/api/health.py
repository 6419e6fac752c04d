from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Query
from routemap.core.db import check_db_health
from routemap.utils.metrics import get_metrics_registry
from routemap.utils.responses import success_response

router = APIRouter(tags=["health"])


@router.get("/healthz")
def read_healthz() -> dict:
    """Liveness check; never touches the database."""

    return success_response({"status": "ok"})


@router.get("/api/health", summary="Service health")
async def read_health() -> dict:
    database = await check_db_health()
    return success_response(
        {
            "status": "ok" if database["status"] == "ok" else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": database,
        }
    )


@router.get("/api/metrics", summary="Per-route request metrics")
def read_metrics(
    window_seconds: int = Query(default=0, ge=0, description="0 means all time"),
) -> dict:
    registry = get_metrics_registry()
    if window_seconds:
        return success_response(registry.snapshot_window(window_seconds))
    return success_response(registry.snapshot())
