# 📄 File: shelfkeeper/api/v1/health.py
# 🧭 Purpose (Layman Explanation):
# Endpoints that tell load balancers and operators whether the service is up, whether it can
# reach its database and whether the daily item-limit check is running.
# 🧪 Purpose (Technical Summary):
# Liveness (/health) and readiness (/health/ready) probes. Readiness checks database
# connectivity and reports the reconciliation scheduler status from app.state.
# 🔗 Dependencies:
# FastAPI, shelfkeeper.shared.infrastructure.database.connection, settings
# 🔄 Connected Modules / Calls From:
# shelfkeeper.api.v1.router, shelfkeeper.main, monitoring systems, load balancers

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from shelfkeeper.shared.config.settings import get_settings
from shelfkeeper.shared.infrastructure.database.connection import database_health_check

logger = logging.getLogger(__name__)

health_router = APIRouter()


def _scheduler_status(request: Request) -> Dict[str, Any]:
    scheduler = getattr(request.app.state, "reconciliation_scheduler", None)
    if scheduler is None:
        return {"enabled": False, "running": False}
    return {"enabled": True, **scheduler.status()}


@health_router.get("/health",
                  summary="Basic Health Check",
                  description="Basic health check endpoint for load balancers and monitoring",
                  tags=["Health Check"])
async def health_check() -> JSONResponse:
    settings = get_settings()
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "shelfkeeper-subscriptions",
            "version": settings.APP_VERSION,
        }
    )


@health_router.get("/health/ready",
                  summary="Readiness Probe",
                  description="Database connectivity and reconciliation scheduler status",
                  tags=["Health Check"])
async def readiness_probe(request: Request) -> JSONResponse:
    """
    Returns 200 when the database answers, 503 otherwise. The scheduler is
    reported but does not affect readiness.
    """
    reason: Optional[str] = None
    try:
        db_health = await database_health_check()
    except Exception as e:
        logger.error(f"Readiness probe failed: {e}")
        db_health = {"status": "unhealthy", "error": str(e)}

    if db_health.get("status") != "healthy":
        reason = "database_unhealthy"

    return JSONResponse(
        status_code=200 if reason is None else 503,
        content={
            "status": "ready" if reason is None else "not_ready",
            "reason": reason,
            "database": db_health,
            "reconciliation_scheduler": _scheduler_status(request),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
