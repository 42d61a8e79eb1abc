"""Dashboard controller composing the rental and order trackers."""

from typing import Optional
from uuid import UUID

from src.core.service.tracking.models import DashboardData, DashboardStats
from src.core.service.tracking.order_tracker import OrderTracker
from src.core.service.tracking.rental_tracker import RentalTracker
from src.infra.config.settings import get_settings

settings = get_settings()


class DashboardController:
    """Reads rental and order figures for one user.

    The two trackers query independently, so the counts are not a
    consistent snapshot against concurrent purchases.
    """

    def __init__(self, rental_tracker: RentalTracker, order_tracker: OrderTracker):
        self.rental_tracker = rental_tracker
        self.order_tracker = order_tracker

    async def get_stats(self, user_id: Optional[UUID]) -> DashboardStats:
        rental_stats = await self.rental_tracker.get_stats(user_id)
        order_stats = await self.order_tracker.get_stats(user_id)
        return DashboardStats(**rental_stats.model_dump(), **order_stats.model_dump())

    async def get_dashboard(self, user_id: Optional[UUID]) -> DashboardData:
        return DashboardData(
            stats=await self.get_stats(user_id),
            recent_rentals=await self.rental_tracker.list_rentals(
                user_id, settings.RENTAL_PAGE_SIZE, newest_first=True
            ),
            recent_orders=await self.order_tracker.list_orders(
                user_id, settings.ORDER_PAGE_SIZE, newest_first=True
            )
        )
