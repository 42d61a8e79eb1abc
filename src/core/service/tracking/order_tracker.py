from typing import List, Optional
from uuid import UUID

from src.core.logger.logger import get_logger
from src.core.service.tracking.models import Order, OrderStats
from src.infra.repository.order_repository import OrderRepository

logger = get_logger(__name__)


class OrderTracker:
    """Read-side view of a user's orders. Status changes happen in PurchaseService."""

    def __init__(self, repository: OrderRepository):
        self.repository = repository

    async def get_stats(self, user_id: Optional[UUID]) -> OrderStats:
        if user_id is None:
            return OrderStats()

        try:
            total = await self.repository.count_for_user(user_id)
            completed = await self.repository.count_completed_for_user(user_id)
            return OrderStats(total_orders=total, success_orders=completed)

        except Exception as e:
            logger.error(
                "Failed to load order statistics",
                extra={"user_id": str(user_id), "error": str(e)}
            )
            await self.repository.session.rollback()
            return OrderStats()

    async def list_orders(
        self,
        user_id: Optional[UUID],
        limit: Optional[int] = None,
        newest_first: bool = False
    ) -> List[Order]:
        if user_id is None:
            return []

        try:
            return await self.repository.list_for_user(user_id, limit, newest_first=newest_first)
        except Exception as e:
            logger.error(
                "Failed to list orders",
                extra={"user_id": str(user_id), "error": str(e)}
            )
            await self.repository.session.rollback()
            return []
