import json
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.infra.config.settings import settings
from src.infra.database import get_database_manager
from src.core.logger.logger import logger
from src.api.router import health, auth, dashboard, purchase, provisioning, admin
from src.api.middleware.cache.cache_control import CacheControlMiddleware
from src.api.middleware.logging.request_logging import RequestLoggingMiddleware
from src.api.middleware.session.session_middleware import IdentityMiddleware, SessionMiddleware
from src.api.middleware.timeout.request_timeout import RequestTimeoutMiddleware
from src.core.exceptions.handler import ServiceError, GlobalErrorHandler

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
NumRent - virtual phone numbers for receiving SMS codes (WhatsApp, Telegram, ...).

## Services
- **Accounts**: local sign-up and Google sign-in, session cookies
- **Rentals**: 3-day and 30-day number rentals
- **Orders**: single-use numbers awaiting an SMS code
- **Dashboard**: rental and order statistics
        """,
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,  # 10 minutes
    )

    # Added innermost first: identity needs the session loaded around it
    app.add_middleware(IdentityMiddleware)
    app.add_middleware(SessionMiddleware)
    app.add_middleware(RequestTimeoutMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MINIMUM_SIZE)
    app.add_middleware(CacheControlMiddleware)

    # Request logging middleware (outermost, sees every request)
    app.add_middleware(RequestLoggingMiddleware)

    # Add centralized error handlers
    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(StarletteHTTPException, GlobalErrorHandler.http_exception_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)
    app.add_exception_handler(Exception, GlobalErrorHandler.general_exception_handler)

    # Include routers
    app.include_router(health.router, prefix="/api/v1")
    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(purchase.router)
    app.include_router(provisioning.router)
    app.include_router(admin.router)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def index() -> str:
        return "Welcome to NumRent! Sign in at /auth/login or /auth/google to rent a number."

    @app.on_event("startup")
    async def startup_event():
        logger.info(json.dumps({
            "message": "Starting web server",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT
        }))

        try:
            await get_database_manager().connect()
            await get_database_manager().create_tables()
        except Exception as e:
            logger.error(f"Database unavailable on startup: {str(e)}")

    @app.on_event("shutdown")
    async def shutdown_event():
        await get_database_manager().close()
        logger.info(json.dumps({
            "message": "Shutting down web server",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION
        }))

    return app
