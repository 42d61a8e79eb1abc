from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import UUID

from src.core.logger.logger import get_logger
from src.core.service.tracking.models import RentalStats, RentalView
from src.infra.repository.rental_repository import RentalRepository

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RentalTracker:
    """Read-side view of a user's rentals; expiry is decided at query time"""

    def __init__(self, repository: RentalRepository, clock: Callable[[], datetime] = utc_now):
        self.repository = repository
        self.clock = clock

    async def get_stats(self, user_id: Optional[UUID]) -> RentalStats:
        if user_id is None:
            return RentalStats()

        try:
            total = await self.repository.count_for_user(user_id)
            active = await self.repository.count_active_for_user(user_id, self.clock())
            return RentalStats(total_rentals=total, active_rentals=active)

        except Exception as e:
            logger.error(
                "Failed to load rental statistics",
                extra={"user_id": str(user_id), "error": str(e)}
            )
            await self.repository.session.rollback()
            return RentalStats()

    async def list_rentals(
        self,
        user_id: Optional[UUID],
        limit: Optional[int] = None,
        newest_first: bool = False
    ) -> List[RentalView]:
        if user_id is None:
            return []

        try:
            rentals = await self.repository.list_for_user(user_id, limit, newest_first=newest_first)
        except Exception as e:
            logger.error(
                "Failed to list rentals",
                extra={"user_id": str(user_id), "error": str(e)}
            )
            await self.repository.session.rollback()
            return []

        now = self.clock()
        return [RentalView.from_rental(rental, now) for rental in rentals]
