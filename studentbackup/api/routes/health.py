from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from studentbackup.core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
def get_health(request: Request) -> dict[str, object]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.environment,
        "backup_running": request.app.state.backup_scheduler.running,
        "timestamp": datetime.now(tz=timezone.utc),
    }
