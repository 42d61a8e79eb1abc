"""
Resolves the display identity for the current session.

The snapshot lives on the session for IDENTITY_CACHE_TTL_MS after it was
read. Balance changes made elsewhere are not pushed into it, so a snapshot
can show an old balance until the window runs out.
"""

import time
from decimal import Decimal
from typing import Any, Awaitable, Callable, Mapping, Optional

from src.core.logger.logger import get_logger
from src.core.service.auth.models.session import SessionData
from src.core.service.identity.models import CachedIdentity, UserSnapshot
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()

# Returns the projected user row (username, email, balance, role) or None
UserLookup = Callable[[str], Awaitable[Optional[Mapping[str, Any]]]]


def now_ms() -> int:
    return int(time.time() * 1000)


def format_balance(balance: Any) -> str:
    return f"{Decimal(str(balance or 0)):.2f}"


class IdentityResolver:
    """Turns a session identity into a cached UserSnapshot"""

    def __init__(
        self,
        lookup: UserLookup,
        clock: Callable[[], int] = now_ms,
        cache_ttl_ms: Optional[int] = None
    ):
        self.lookup = lookup
        self.clock = clock
        self.cache_ttl_ms = cache_ttl_ms if cache_ttl_ms is not None else settings.IDENTITY_CACHE_TTL_MS

    async def resolve(self, session: SessionData) -> Optional[UserSnapshot]:
        """
        Return the snapshot for the session identity, or None for anonymous.

        Never raises: lookup failures are logged and resolve to anonymous.
        """
        if not session.user_email:
            self.invalidate(session)
            return None

        now = self.clock()
        cached = session.user_data
        if cached is not None and cached.is_fresh(now, self.cache_ttl_ms):
            return cached.user

        try:
            row = await self.lookup(session.user_email)
        except Exception as e:
            logger.error(
                "Identity lookup failed",
                extra={
                    "user_email": session.user_email,
                    "error": str(e)
                }
            )
            self.invalidate(session)
            return None

        if not row:
            logger.warning(
                "Session identity has no matching user",
                extra={"user_email": session.user_email}
            )
            self.invalidate(session)
            return None

        snapshot = UserSnapshot(
            username=row["username"],
            email=row["email"],
            balance=format_balance(row.get("balance")),
            role=row.get("role") or "Member"
        )
        session.user_data = CachedIdentity(user=snapshot, last_fetch=now)
        return snapshot

    @staticmethod
    def invalidate(session: SessionData) -> None:
        session.user_data = None
