"""Health check endpoints"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gqlauth import __version__
from gqlauth.config import settings
from gqlauth.database import get_db
from gqlauth.models.access_token import AccessToken
from gqlauth.models.refresh_token import RefreshToken
from gqlauth.utils.clock import naive_utc

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
def health_check() -> Dict[str, Any]:
    """Basic health check, 200 while the process is serving"""
    return {
        "status": "healthy",
        "service": "gqlauth",
        "version": __version__,
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": _timestamp(),
    }


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check

    Verifies the token store is reachable and the signing secret is set.
    Returns 503 when either check fails.
    """
    checks: Dict[str, Any] = {
        "database": False,
        "database_latency_ms": None,
        "signing_key": bool(settings.JWT_SECRET_KEY),
    }

    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        checks["database"] = True
        checks["database_latency_ms"] = round((time.time() - start) * 1000, 2)
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "checks": checks, "message": f"Database check failed: {e}"},
        )

    if not checks["signing_key"]:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "checks": checks, "message": "JWT_SECRET_KEY is not set"},
        )

    return {"status": "ready", "checks": checks, "timestamp": _timestamp()}


@router.get("/stats")
def health_stats(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Live token counts"""
    now = naive_utc(datetime.now(timezone.utc))
    return {
        "status": "healthy",
        "tokens": {
            "access_total": db.query(AccessToken).count(),
            "access_live": db.query(AccessToken).filter(
                AccessToken.enabled.is_(True),
                (AccessToken.expiry_date.is_(None)) | (AccessToken.expiry_date > now),
            ).count(),
            "refresh_live": db.query(RefreshToken).filter(RefreshToken.expiry_date > now).count(),
        },
        "timestamp": _timestamp(),
    }
