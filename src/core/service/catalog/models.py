from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.service.tracking.models import RentalDuration

_TRUTHY = {"1", "true", "yes", "on"}


def normalize_available(value: Any) -> bool:
    """Stored availability is text; anything but a truthy token means unavailable."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


class Service(BaseModel):
    """Rentable/orderable target application with its price tiers"""
    id: Optional[UUID] = None
    name: str
    price: Decimal
    ltr_short_price: Decimal
    ltr_price: Decimal
    available: bool = True

    @field_validator("available", mode="before")
    @classmethod
    def _normalize_available(cls, value: Any) -> bool:
        return normalize_available(value)

    def rental_price(self, duration: RentalDuration) -> Decimal:
        if duration is RentalDuration.SHORT_TERM:
            return self.ltr_short_price
        return self.ltr_price
