import asyncio

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.core.exceptions.handler import ErrorResponseBuilder, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Abandons requests that run longer than the configured limit"""

    def __init__(self, app, timeout_seconds: float = None):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds or settings.REQUEST_TIMEOUT_SECONDS

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            request_id = request.headers.get("X-Request-ID", "unknown")
            logger.error(
                "Request timed out",
                extra={
                    "timeout_seconds": self.timeout_seconds,
                    "request_id": request_id,
                    "path": request.url.path,
                    "method": request.method
                }
            )
            return JSONResponse(
                status_code=503,
                content=ErrorResponseBuilder.build_error_response(
                    error_code=ServiceErrorCode.TIMEOUT,
                    message="Request timed out",
                    request_id=request_id
                )
            )
