"""
Purchase flows that create rentals and orders and resolve orders.

Balance debits do not touch the identity snapshot cached in the session;
the displayed balance catches up when the cache window expires.
"""

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID

from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.catalog.models import Service
from src.core.service.tracking.models import Order, OrderStatus, Rental, RentalDuration
from src.infra.repository.order_repository import OrderRepository
from src.infra.repository.rental_repository import RentalRepository
from src.infra.repository.service_repository import ServiceRepository
from src.infra.repository.user_repository import UserRepository

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PurchaseService:
    """Debits balances and records rentals/orders in one transaction"""

    def __init__(
        self,
        user_repository: UserRepository,
        service_repository: ServiceRepository,
        rental_repository: RentalRepository,
        order_repository: OrderRepository,
        clock: Callable[[], datetime] = utc_now
    ):
        self.users = user_repository
        self.services = service_repository
        self.rentals = rental_repository
        self.orders = order_repository
        self.clock = clock

    async def _available_service(self, name: str) -> Service:
        service = await self.services.get_by_name(name)
        if service is None:
            raise ServiceError(
                code=ServiceErrorCode.NOT_FOUND,
                message=f"Unknown service: {name}",
                status_code=404
            )
        if not service.available:
            raise ServiceError(
                code=ServiceErrorCode.SERVICE_UNAVAILABLE,
                message=f"{name} is currently unavailable",
                status_code=409
            )
        return service

    async def _debit(self, user_id: UUID, amount) -> None:
        if not await self.users.debit_balance(user_id, amount, commit=False):
            await self.users.session.rollback()
            raise ServiceError(
                code=ServiceErrorCode.INSUFFICIENT_BALANCE,
                message="Insufficient balance",
                status_code=402,
                details={"required": f"{amount:.2f}"}
            )

    async def rent_number(
        self,
        user_id: UUID,
        service_name: str,
        duration: RentalDuration,
        state: str = "random"
    ) -> Rental:
        service = await self._available_service(service_name)
        price = service.rental_price(duration)

        await self._debit(user_id, price)
        rental = await self.rentals.create_rental(
            user_id=user_id,
            service=service.name,
            duration=duration,
            price=price,
            state=state,
            purchased_at=self.clock(),
            commit=False
        )
        await self.rentals.session.commit()
        return rental

    async def place_order(self, user_id: UUID, service_name: str, country: str) -> Order:
        service = await self._available_service(service_name)

        await self._debit(user_id, service.price)
        order = await self.orders.create_order(
            user_id=user_id,
            service=service.name,
            country=country,
            amount=service.price,
            commit=False
        )
        await self.orders.session.commit()
        return order

    async def resolve_order(
        self,
        order_id: UUID,
        status: OrderStatus,
        number: Optional[str] = None
    ) -> Order:
        """Record the provisioning outcome of a pending order.

        Only the provisioning flow calls this; customers never resolve their own orders.
        """
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise ServiceError(
                code=ServiceErrorCode.NOT_FOUND,
                message="Order not found",
                status_code=404
            )

        current = OrderStatus(order.status)
        if not OrderStatus.can_transition(current, status) or not await self.orders.resolve(order_id, status, number):
            raise ServiceError(
                code=ServiceErrorCode.INVALID_TRANSITION,
                message=f"Order cannot move from {current.value} to {status.value}",
                status_code=409
            )

        return await self.orders.get_by_id(order_id)
