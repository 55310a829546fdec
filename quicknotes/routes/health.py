"""
QuickNotes Backend — Health & Status Routes
=============================================

What:  GET /health for probes and GET /api/status for a quick "is the API up"
       answer with instance details.
Why:   Load balancers and docker-compose health checks need to know whether
       this instance can serve requests end-to-end.

Status levels:
    - healthy:   Postgres and Redis reachable (HTTP 200)
    - degraded:  Redis unreachable; search still works uncached (HTTP 200)
    - unhealthy: Postgres unreachable (HTTP 503)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from quicknotes import __version__
from quicknotes.cache import search_cache
from quicknotes.config import settings
from quicknotes.database import engine
from quicknotes.schemas.note import HealthResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


async def check_database() -> bool:
    """SELECT 1 against the pool."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", e)
        return False


async def check_cache() -> bool:
    return await search_cache.ping()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(response: Response) -> HealthResponse:
    db_ok = await check_database()
    cache_ok = await check_cache()

    if not db_ok:
        overall = "unhealthy"
        response.status_code = 503
    elif not cache_ok:
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        version=__version__,
        database="connected" if db_ok else "disconnected",
        cache="connected" if cache_ok else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
        instance=settings.instance_id,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/api/status", response_model=StatusResponse, summary="API status")
async def api_status() -> StatusResponse:
    return StatusResponse(
        message="QuickNotes API is running!",
        instance=settings.instance_id,
        version=__version__,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
    )
