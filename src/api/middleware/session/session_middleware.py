from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.core.dependencies import get_session_store
from src.core.logger.logger import get_logger
from src.core.service.auth.models.session import SessionData
from src.core.service.identity.identity_resolver import IdentityResolver
from src.infra.config.settings import get_settings
from src.infra.repository.user_repository import lookup_user_profile

logger = get_logger(__name__)
settings = get_settings()


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Loads the Redis session named by the cookie into request.state.session
    and writes it back after the handler.

    Sessions are only persisted once they carry an identity or OAuth state.
    When Redis is unreachable the request continues with an anonymous session.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        cookie_id = request.cookies.get(settings.SESSION_COOKIE_NAME)
        store = None
        session = None

        try:
            store = await get_session_store()
            if cookie_id:
                session = await store.get_session(cookie_id)
        except Exception as e:
            logger.error(
                "Session store unavailable",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "error": str(e)
                }
            )

        existed = session is not None
        if session is None:
            session = SessionData()
        original = session.model_dump_json(by_alias=True)
        request.state.session = session

        response = await call_next(request)

        if store is not None:
            await self._persist(store, session, existed, original, response)
        return response

    async def _persist(self, store, session: SessionData, existed: bool, original: str, response: Response) -> None:
        try:
            if session.destroyed or not session.is_initialized:
                if existed:
                    await store.destroy_session(session.id)
                    response.delete_cookie(settings.SESSION_COOKIE_NAME)
                return

            if existed and session.model_dump_json(by_alias=True) == original:
                return

            await store.save_session(session)
            response.set_cookie(
                settings.SESSION_COOKIE_NAME,
                str(session.id),
                max_age=settings.SESSION_TTL_SECONDS,
                httponly=True,
                secure=settings.session_cookie_secure,
                samesite="lax"
            )
        except Exception as e:
            logger.error(
                "Failed to persist session",
                extra={
                    "session_id": str(session.id),
                    "error": str(e)
                }
            )


class IdentityMiddleware(BaseHTTPMiddleware):
    """Resolves the display identity once per request into request.state.user"""

    async def dispatch(self, request: Request, call_next) -> Response:
        session = getattr(request.state, "session", None)
        request.state.user = None

        if session is not None:
            resolver = IdentityResolver(lookup_user_profile)
            request.state.user = await resolver.resolve(session)

        return await call_next(request)
