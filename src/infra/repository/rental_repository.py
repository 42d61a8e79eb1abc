"""
Rental repository using SQLAlchemy ORM
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.service.tracking.models import Rental, RentalDuration, RentalStatus
from src.infra.models import RentalModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class RentalRepository:
    """Repository for rental reads and writes"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: RentalModel) -> Rental:
        return Rental(
            id=model.id,
            user_id=model.user_id,
            service=model.service,
            state=model.state,
            duration=RentalDuration(model.duration),
            price=model.price,
            status=RentalStatus(model.status),
            expires_at=model.expires_at,
            created_at=model.created_at
        )

    async def create_rental(
        self,
        user_id: UUID,
        service: str,
        duration: RentalDuration,
        price: Decimal,
        state: str = "random",
        purchased_at: Optional[datetime] = None,
        commit: bool = True
    ) -> Rental:
        """
        Create an active rental that expires one duration after purchase

        Args:
            user_id: Owning user
            service: Service name, e.g. "WhatsApp"
            duration: Duration class
            price: Amount paid
            state: Assigned number/region
            purchased_at: Purchase time, defaults to now
            commit: Commit immediately, or leave it to the caller's transaction
        """
        purchased_at = purchased_at or datetime.now(timezone.utc)
        rental = RentalModel(
            user_id=user_id,
            service=service,
            state=state,
            duration=duration.value,
            price=price,
            status=RentalStatus.ACTIVE.value,
            expires_at=purchased_at + duration.delta,
            created_at=purchased_at
        )

        self.session.add(rental)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()

        logger.info(
            "Rental created",
            extra={
                "user_id": str(user_id),
                "service": service,
                "duration": duration.value,
                "expires_at": rental.expires_at.isoformat()
            }
        )
        return self._model_to_entity(rental)

    async def count_for_user(self, user_id: UUID) -> int:
        stmt = select(func.count()).select_from(RentalModel).where(RentalModel.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_active_for_user(self, user_id: UUID, now: Optional[datetime] = None) -> int:
        """Count rentals labelled active whose expiry is still in the future"""
        now = now or datetime.now(timezone.utc)
        stmt = (
            select(func.count())
            .select_from(RentalModel)
            .where(
                RentalModel.user_id == user_id,
                RentalModel.status == RentalStatus.ACTIVE.value,
                RentalModel.expires_at > now
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_for_user(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        newest_first: bool = False
    ) -> List[Rental]:
        ordering = (RentalModel.created_at, RentalModel.id)
        if newest_first:
            ordering = tuple(column.desc() for column in ordering)

        stmt = (
            select(RentalModel)
            .where(RentalModel.user_id == user_id)
            .order_by(*ordering)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def get_by_id(self, rental_id: UUID) -> Optional[Rental]:
        stmt = select(RentalModel).where(RentalModel.id == rental_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def mark_expired(self, rental_id: UUID) -> bool:
        """
        Write the terminal `expired` label

        Returns:
            True if the rental moved from active to expired
        """
        stmt = (
            update(RentalModel)
            .where(
                RentalModel.id == rental_id,
                RentalModel.status == RentalStatus.ACTIVE.value
            )
            .values(status=RentalStatus.EXPIRED.value)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        expired = result.rowcount == 1
        if expired:
            logger.info("Rental marked expired", extra={"rental_id": str(rental_id)})
        return expired
