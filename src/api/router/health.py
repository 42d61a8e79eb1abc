import json
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Request, status
from sqlalchemy import text

from src.core.logger.logger import logger
from src.infra.config.redis import ping_redis
from src.infra.config.settings import settings
from src.infra.database import session_scope

router = APIRouter()


async def check_redis_health() -> Dict[str, str]:
    """Check Redis (session store) connection health."""
    try:
        await ping_redis()
        return {"status": "healthy", "message": "Connected"}
    except Exception as e:
        return {"status": "unhealthy", "message": f"Connection failed: {str(e)}"}


async def check_database_health() -> Dict[str, str]:
    """Check PostgreSQL connection health."""
    try:
        async with session_scope() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "healthy", "message": "Connected"}
    except Exception as e:
        return {"status": "unhealthy", "message": f"Connection failed: {str(e)}"}


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """
    Health check endpoint.
    Reports session store and database status; the API itself is healthy if it answers.
    """
    services = {
        "session_store": (await check_redis_health())["status"],
        "database": (await check_database_health())["status"],
        "api": "healthy"
    }
    overall_status = "healthy" if all(s == "healthy" for s in services.values()) else "degraded"

    logger.info(json.dumps({
        "type": "health_check",
        "request_id": request.headers.get("X-Request-ID", "N/A"),
        "status": overall_status,
        "dependencies": services
    }))

    return {
        "status": overall_status,
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "services": services,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
