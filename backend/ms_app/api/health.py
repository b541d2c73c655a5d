"""
Health check endpoint
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
import logging
import socket

from ..core.config import Settings
from ..core.dependencies import get_database, get_settings
from ..db.session import Database
from ..schemas.user import HealthResponse, HealthStatus

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Report liveness and, when connected, which database server answered"""
    response = HealthResponse(
        status=HealthStatus.OK,
        database=False,
        timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        hostname=socket.gethostname(),
        retry_count=database.retry_count or None
    )

    if not database.connected:
        response.status = HealthStatus.NOT_INITIALIZED
    else:
        try:
            await database.ping(settings.HEALTH_TIMEOUT_SECONDS)
        except Exception as e:
            response.status = HealthStatus.DATABASE_ERROR
            logger.warning(f"Database ping failed: {str(e) or type(e).__name__}")
        else:
            response.database = True
            response.db_host = await database.server_address(settings.HEALTH_TIMEOUT_SECONDS)

    return JSONResponse(
        status_code=200 if response.status == HealthStatus.OK else 503,
        content=response.model_dump(exclude_none=True)
    )
