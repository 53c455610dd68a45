"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tipleague.database import get_db
from tipleague.models import NotificationToken, Score

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> dict:
    """
    Health check endpoint for load balancers and monitoring.

    Checks database connectivity and reports when the leaderboard and the
    daily tokens were last rebuilt.
    """
    checks = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {},
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["checks"]["database"] = "ok"
    except SQLAlchemyError as e:
        checks["checks"]["database"] = f"error: {str(e)}"
        checks["status"] = "unhealthy"
        return checks

    for name, column in (
        ("scores", Score.computed_at),
        ("notification_tokens", NotificationToken.created_at),
    ):
        last = (await db.execute(select(func.max(column)))).scalar()
        checks["checks"][name] = {"last_run": last.isoformat() if last else None}

    return checks


@router.get("/ready")
async def readiness_check() -> dict:
    """Readiness probe."""
    return {"status": "ready"}
