"""
Centralized error handling.
Business errors and HTTP errors become the JSON error envelope; anything
unhandled becomes the generic error page.
"""

import traceback
from typing import Dict, Any, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from datetime import datetime, timezone

from src.api.middleware.cache.cache_control import apply_no_cache_headers
from src.api.utils.views import render_error_page
from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()

GENERIC_ERROR_MESSAGE = "Something went wrong!"


class ServiceErrorCode:
    """Standard error codes for services"""

    # Validation
    INVALID_INPUT = "INVALID_INPUT"

    # Authentication
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    OAUTH_FAILED = "OAUTH_FAILED"
    FORBIDDEN = "FORBIDDEN"

    # Business Logic
    NOT_FOUND = "NOT_FOUND"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # System
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TIMEOUT = "TIMEOUT"


_STATUS_CODES = {
    400: ServiceErrorCode.INVALID_INPUT,
    401: ServiceErrorCode.NOT_AUTHENTICATED,
    403: ServiceErrorCode.FORBIDDEN,
    404: ServiceErrorCode.NOT_FOUND,
    409: ServiceErrorCode.INVALID_TRANSITION,
    422: ServiceErrorCode.INVALID_INPUT,
}


class ServiceError(Exception):
    """
    Standardized service error for internal use.
    Gets converted to proper HTTP response by error handler.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.context = context or {}
        super().__init__(message)


class ErrorResponseBuilder:
    """Builds standardized error responses"""

    @staticmethod
    def build_error_response(
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build standardized error response"""

        response = {
            "success": False,
            "error": {
                "code": error_code,
                "message": message,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }

        if details:
            response["error"]["details"] = details

        if request_id:
            response["error"]["request_id"] = request_id

        return response


def _request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID", "unknown")


class GlobalErrorHandler:
    """Global error handler for all application errors"""

    @staticmethod
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """Handle ServiceError exceptions"""

        request_id = _request_id(request)

        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"Service error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details,
                "context": exc.context,
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method
            }
        )

        response = ErrorResponseBuilder.build_error_response(
            error_code=exc.code,
            message=exc.message,
            details=exc.details,
            request_id=request_id
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=response
        )

    @staticmethod
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
        """Handle HTTPException with standardized format"""

        request_id = _request_id(request)
        error_code = _STATUS_CODES.get(exc.status_code, ServiceErrorCode.INTERNAL_ERROR)

        logger.warning(
            f"HTTP exception: {exc.status_code}",
            extra={
                "status_code": exc.status_code,
                "detail": exc.detail,
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method
            }
        )

        response = ErrorResponseBuilder.build_error_response(
            error_code=error_code,
            message=str(exc.detail),
            request_id=request_id
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=response,
            headers=getattr(exc, "headers", None)
        )

    @staticmethod
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle Pydantic validation errors"""

        request_id = _request_id(request)

        validation_errors = []
        for error in exc.errors():
            field = '.'.join(str(loc) for loc in error['loc'])
            validation_errors.append({
                'field': field,
                'message': error['msg']
            })

        logger.warning(
            f"Validation error: {len(validation_errors)} errors",
            extra={
                "validation_errors": validation_errors,
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method
            }
        )

        response = ErrorResponseBuilder.build_error_response(
            error_code=ServiceErrorCode.INVALID_INPUT,
            message="Validation failed",
            details={"validation_errors": validation_errors},
            request_id=request_id
        )

        return JSONResponse(
            status_code=422,
            content=response
        )

    @staticmethod
    async def general_exception_handler(request: Request, exc: Exception) -> Response:
        """
        Error boundary for unexpected exceptions.

        Starlette only calls this while the response has not started; once
        headers are out the exception goes on to the server untouched.
        """

        extra = {
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "request_id": _request_id(request),
            "path": request.url.path,
            "method": request.method
        }
        if settings.is_development:
            extra["traceback"] = traceback.format_exc()

        logger.error(f"Application error: {type(exc).__name__}", extra=extra)

        # Never expose internal errors in production
        if settings.is_development:
            message = str(exc) or GENERIC_ERROR_MESSAGE
            detail = extra["traceback"]
        else:
            message = GENERIC_ERROR_MESSAGE
            detail = None

        response = render_error_page(request, message, status_code=500, detail=detail)
        return apply_no_cache_headers(response)
