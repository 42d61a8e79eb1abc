"""
Order repository using SQLAlchemy ORM
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.service.tracking.models import Order, OrderStatus
from src.infra.models import OrderModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class OrderRepository:
    """Repository for order reads and status writes"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: OrderModel) -> Order:
        return Order(
            id=model.id,
            user_id=model.user_id,
            service=model.service,
            country=model.country,
            number=model.number,
            amount=model.amount,
            status=OrderStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    async def create_order(
        self,
        user_id: UUID,
        service: str,
        country: str,
        amount: Decimal,
        commit: bool = True
    ) -> Order:
        """Create a pending order; the number is assigned once provisioning resolves"""
        order = OrderModel(
            user_id=user_id,
            service=service,
            country=country,
            amount=amount,
            status=OrderStatus.PENDING.value
        )

        self.session.add(order)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()

        logger.info(
            "Order created",
            extra={
                "user_id": str(user_id),
                "service": service,
                "country": country
            }
        )
        return self._model_to_entity(order)

    async def count_for_user(self, user_id: UUID) -> int:
        stmt = select(func.count()).select_from(OrderModel).where(OrderModel.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_completed_for_user(self, user_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(OrderModel)
            .where(
                OrderModel.user_id == user_id,
                OrderModel.status == OrderStatus.COMPLETED.value
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_for_user(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        newest_first: bool = False
    ) -> List[Order]:
        ordering = (OrderModel.created_at, OrderModel.id)
        if newest_first:
            ordering = tuple(column.desc() for column in ordering)

        stmt = (
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(*ordering)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        stmt = select(OrderModel).where(OrderModel.id == order_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def resolve(
        self,
        order_id: UUID,
        status: OrderStatus,
        number: Optional[str] = None
    ) -> bool:
        """
        Move a pending order to a terminal status

        Returns:
            True if the order was pending and is now resolved
        """
        values = {"status": status.value}
        if number is not None:
            values["number"] = number

        stmt = (
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.status == OrderStatus.PENDING.value
            )
            .values(**values)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        resolved = result.rowcount == 1
        if resolved:
            logger.info(
                "Order resolved",
                extra={"order_id": str(order_id), "status": status.value}
            )
        return resolved
