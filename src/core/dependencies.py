"""
FastAPI dependency injection functions.
Clean, maintainable dependency resolution using FastAPI's native DI system.
"""

import secrets
from typing import Optional
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.infra.config.redis import get_redis
from src.infra.database import get_async_session
from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.service.auth.cache.session_store import SessionStore
from src.core.service.auth.models.session import SessionData
from src.core.service.auth.models.user import User
from src.core.service.identity.models import UserSnapshot
from src.core.service.tracking.order_tracker import OrderTracker
from src.core.service.tracking.rental_tracker import RentalTracker
from src.infra.repository.user_repository import UserRepository
from src.infra.repository.rental_repository import RentalRepository
from src.infra.repository.order_repository import OrderRepository
from src.infra.repository.service_repository import ServiceRepository
from src.infra.config.settings import get_settings

settings = get_settings()


async def get_session_store() -> SessionStore:
    """Session store on the shared Redis pool."""
    return SessionStore(await get_redis())


def get_session(request: Request) -> SessionData:
    """Session loaded by SessionMiddleware."""
    session = getattr(request.state, "session", None)
    if session is None:
        # Route mounted without the session middleware; nothing will be persisted
        session = SessionData()
        request.state.session = session
    return session


def get_current_snapshot(request: Request) -> Optional[UserSnapshot]:
    """Identity snapshot resolved by IdentityMiddleware, None for anonymous."""
    return getattr(request.state, "user", None)


def require_session_user(session: SessionData = Depends(get_session)) -> SessionData:
    """Reject anonymous sessions."""
    if not session.is_authenticated or session.user_id is None:
        raise ServiceError(
            code=ServiceErrorCode.NOT_AUTHENTICATED,
            message="Please sign in first",
            status_code=401
        )
    return session


async def get_user_repository(session: AsyncSession = Depends(get_async_session)) -> UserRepository:
    return UserRepository(session)


async def get_rental_repository(session: AsyncSession = Depends(get_async_session)) -> RentalRepository:
    return RentalRepository(session)


async def get_order_repository(session: AsyncSession = Depends(get_async_session)) -> OrderRepository:
    return OrderRepository(session)


async def get_service_repository(session: AsyncSession = Depends(get_async_session)) -> ServiceRepository:
    return ServiceRepository(session)


async def get_rental_tracker(repository: RentalRepository = Depends(get_rental_repository)) -> RentalTracker:
    return RentalTracker(repository)


async def get_order_tracker(repository: OrderRepository = Depends(get_order_repository)) -> OrderTracker:
    return OrderTracker(repository)


async def require_admin(
    session: SessionData = Depends(require_session_user),
    user_repository: UserRepository = Depends(get_user_repository)
) -> User:
    """Admin role is checked against the stored user, never the cached snapshot."""
    user = await user_repository.get_by_email(session.user_email)
    if user is None or not user.is_admin:
        raise ServiceError(
            code=ServiceErrorCode.FORBIDDEN,
            message="Admin access required",
            status_code=403
        )
    return user


def require_provisioning_client(
    x_provisioning_token: Optional[str] = Header(default=None)
) -> None:
    """Only the provisioning flow may resolve orders; it authenticates with a shared token."""
    expected = settings.PROVISIONING_TOKEN
    if not expected or not x_provisioning_token or not secrets.compare_digest(
        expected.encode(), x_provisioning_token.encode()
    ):
        raise ServiceError(
            code=ServiceErrorCode.FORBIDDEN,
            message="Provisioning credential required",
            status_code=403
        )
