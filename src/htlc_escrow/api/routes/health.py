"""Health check endpoint.

Verifies connectivity to the read-model database and returns structured status.
"""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from htlc_escrow import __version__
from htlc_escrow.logging_config import get_logger
from htlc_escrow.schemas.escrow import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its database.",
)
async def health_check() -> HealthResponse:
    """Check connectivity to the read-model database."""
    try:
        from htlc_escrow.infrastructure.database.engine import _get_engine

        engine = _get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as exc:
        db_status = f"unhealthy: {exc}"
        logger.error("health.db_check_failed", error=str(exc))

    return HealthResponse(
        status="ok" if db_status == "healthy" else "degraded",
        version=__version__,
        database=db_status,
    )
