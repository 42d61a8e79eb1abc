"""
Service catalog repository using SQLAlchemy ORM
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.service.catalog.models import Service
from src.infra.models import ServiceModel


class ServiceRepository:
    """Read access to the service catalog (maintained out-of-band)"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: ServiceModel) -> Service:
        return Service(
            id=model.id,
            name=model.name,
            price=model.price,
            ltr_short_price=model.ltr_short_price,
            ltr_price=model.ltr_price,
            available=model.available
        )

    async def get_by_name(self, name: str) -> Optional[Service]:
        stmt = select(ServiceModel).where(ServiceModel.name == name)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def list_services(self, available_only: bool = False) -> List[Service]:
        stmt = select(ServiceModel).order_by(ServiceModel.name)
        result = await self.session.execute(stmt)
        services = [self._model_to_entity(model) for model in result.scalars().all()]
        if available_only:
            # Availability is text in storage, so filter after normalizing
            services = [service for service in services if service.available]
        return services
