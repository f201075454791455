"""Liveness, readiness and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.config import get_settings
from newsiq.database import get_session
from newsiq.db.models import Achievement
from newsiq.redis_client import get_redis_or_none

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Database reachable and achievement catalog seeded; Redis reachable if configured."""
    checks: dict[str, object] = {}

    try:
        await db.execute(text("SELECT 1"))
        seeded = (await db.execute(select(func.count()).select_from(Achievement))).scalar_one()
        checks["database"] = "ok"
        checks["achievements"] = "ok" if seeded else "not seeded"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    redis = get_redis_or_none()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    ok = all(v in ("ok", "disabled") for v in checks.values())
    return {"status": "ready" if ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "name": "newsiq-api",
        "version": settings.app_version,
        "environment": settings.environment,
    }
