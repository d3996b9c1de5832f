"""Liveness and readiness probes."""

import logging
import time
from typing import Any

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text

from app.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_booted_at = time.monotonic()


@router.get("", response_model=dict[str, Any])
async def liveness() -> dict[str, Any]:
    """Process is up; reports name, version and uptime."""
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "uptime_seconds": round(time.monotonic() - _booted_at, 1),
    }


@router.get("/ready", response_model=dict[str, Any])
async def readiness() -> dict[str, Any]:
    """Database answers ``SELECT 1``; 503 otherwise."""
    from db import database

    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Readiness probe: database unreachable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "unhealthy", "database": "unavailable"},
        )
    return {"status": "healthy", "database": "ok"}
