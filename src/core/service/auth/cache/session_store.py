from typing import Optional
from uuid import UUID

from pydantic import ValidationError
from redis.asyncio import Redis

from src.core.logger.logger import get_logger
from src.core.service.auth.models.session import SessionData
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class SessionStore:
    """Redis-based store for browser sessions"""

    def __init__(self, redis_client: Redis, ttl_seconds: Optional[int] = None):
        self.redis = redis_client
        self.session_key_prefix = "session:"
        self.ttl_seconds = ttl_seconds or settings.SESSION_TTL_SECONDS

    def _key(self, session_id) -> str:
        return f"{self.session_key_prefix}{session_id}"

    async def get_session(self, session_id: str) -> Optional[SessionData]:
        """Retrieve a session by ID; unknown, expired or corrupt sessions yield None"""
        try:
            UUID(str(session_id))
        except ValueError:
            return None

        try:
            data = await self.redis.get(self._key(session_id))
            if not data:
                return None

            return SessionData.model_validate_json(data)

        except ValidationError as e:
            logger.warning(
                "Discarding unreadable session",
                extra={
                    "session_id": str(session_id),
                    "error": str(e)
                }
            )
            return None
        except Exception as e:
            logger.error(
                "Failed to get session",
                extra={
                    "session_id": str(session_id),
                    "error": str(e)
                }
            )
            raise

    async def save_session(self, session: SessionData) -> None:
        """Store a session and restart its time-to-live"""
        try:
            await self.redis.set(
                self._key(session.id),
                session.model_dump_json(by_alias=True),
                ex=self.ttl_seconds
            )

            logger.debug(
                "Session saved",
                extra={
                    "session_id": str(session.id),
                    "user_email": session.user_email
                }
            )

        except Exception as e:
            logger.error(
                "Failed to save session",
                extra={
                    "session_id": str(session.id),
                    "user_email": session.user_email,
                    "error": str(e)
                }
            )
            raise

    async def destroy_session(self, session_id) -> None:
        """Delete a session"""
        try:
            await self.redis.delete(self._key(session_id))

            logger.info(
                "Session destroyed",
                extra={"session_id": str(session_id)}
            )

        except Exception as e:
            logger.error(
                "Failed to destroy session",
                extra={
                    "session_id": str(session_id),
                    "error": str(e)
                }
            )
            raise
