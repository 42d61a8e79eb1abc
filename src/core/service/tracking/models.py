"""Rental and order entities and their lifecycle rules."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


def ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps coming back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RentalDuration(str, Enum):
    """Rental length class"""
    SHORT_TERM = "3days"
    LONG_TERM = "30days"

    @property
    def delta(self) -> timedelta:
        return timedelta(days=3) if self is RentalDuration.SHORT_TERM else timedelta(days=30)


class RentalStatus(str, Enum):
    """Stored rental label; `expired` is terminal"""
    ACTIVE = "active"
    EXPIRED = "expired"


class OrderStatus(str, Enum):
    """Order lifecycle: pending -> completed | failed"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING

    @classmethod
    def can_transition(cls, current: "OrderStatus", target: "OrderStatus") -> bool:
        return current is cls.PENDING and target.is_terminal


class Rental(BaseModel):
    """Rental entity"""
    model_config = ConfigDict(use_enum_values=True)

    id: Optional[UUID] = None
    user_id: UUID
    service: str
    state: str = "random"
    duration: RentalDuration
    price: Decimal
    status: RentalStatus = RentalStatus.ACTIVE
    expires_at: datetime
    created_at: Optional[datetime] = None


class Order(BaseModel):
    """Order entity"""
    model_config = ConfigDict(use_enum_values=True)

    id: Optional[UUID] = None
    user_id: UUID
    service: str
    country: str
    number: Optional[str] = None
    amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def is_rental_active(rental: Rental, now: Optional[datetime] = None) -> bool:
    """A rental is active only while labelled active AND not yet past its expiry."""
    now = now or datetime.now(timezone.utc)
    return rental.status == RentalStatus.ACTIVE.value and now < ensure_utc(rental.expires_at)


def effective_status(rental: Rental, now: Optional[datetime] = None) -> RentalStatus:
    """The stored label reconciled against the clock."""
    return RentalStatus.ACTIVE if is_rental_active(rental, now) else RentalStatus.EXPIRED


class RentalView(Rental):
    """Rental as shown to the user, with its status reconciled at read time"""
    stored_status: RentalStatus

    @classmethod
    def from_rental(cls, rental: Rental, now: datetime) -> "RentalView":
        data = rental.model_dump()
        data["stored_status"] = rental.status
        data["status"] = effective_status(rental, now)
        return cls(**data)


class RentalStats(BaseModel):
    total_rentals: int = Field(default=0, ge=0)
    active_rentals: int = Field(default=0, ge=0)


class OrderStats(BaseModel):
    total_orders: int = Field(default=0, ge=0)
    success_orders: int = Field(default=0, ge=0)


class DashboardStats(RentalStats, OrderStats):
    pass


class DashboardData(BaseModel):
    stats: DashboardStats
    recent_rentals: List[RentalView] = []
    recent_orders: List[Order] = []
