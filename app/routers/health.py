# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health and /health/live answer without touching Supabase. /health/ready
# reads one row from each account table and reports which outside services
# are configured.
# =============================================================================

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import PENDING_USERS_TABLE, USERS_TABLE, SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"
READINESS_TABLES = (PENDING_USERS_TABLE, USERS_TABLE)


class ServiceStatus(BaseModel):
    """Body shared by every health route; `checks` only on readiness."""
    status: str
    timestamp: str
    environment: str | None = None
    version: str | None = None
    checks: dict[str, str] | None = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _database_status() -> str:
    try:
        client = SupabaseClient.get_client()
        for table in READINESS_TABLES:
            client.table(table).select("id").limit(1).execute()
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"
    return "healthy"


@router.get("/health", response_model=ServiceStatus, response_model_exclude_none=True)
async def health_check():
    """Process is up; used by load balancers."""
    return ServiceStatus(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ServiceStatus, response_model_exclude_none=True)
def readiness_check():
    """
    Can this instance serve sign-ups and verification callbacks?

    Only the database decides readiness. Missing email or token-signing
    configuration is reported but does not mark the instance degraded,
    since ES256 sessions and test routes work without them.
    """
    checks = {
        "database": _database_status(),
        "email": "configured" if settings.RESEND_API_KEY else "not configured",
        "jwt_secret": "configured" if settings.SUPABASE_JWT_SECRET else "not configured",
    }

    return ServiceStatus(
        status="ready" if checks["database"] == "healthy" else "degraded",
        timestamp=_now(),
        checks=checks,
    )


@router.get("/health/live", response_model=ServiceStatus, response_model_exclude_none=True)
async def liveness_check():
    return ServiceStatus(status="alive", timestamp=_now())
