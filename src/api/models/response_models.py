"""Response bodies returned by the API."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from src.core.service.auth.models.user import User
from src.core.service.catalog.models import Service
from src.core.service.identity.models import UserSnapshot
from src.core.service.tracking.models import DashboardStats, Order, Rental, RentalView


class AccountResponse(BaseModel):
    success: bool = True
    user: UserSnapshot

    @classmethod
    def from_user(cls, user: User) -> "AccountResponse":
        return cls(user=UserSnapshot(
            username=user.username,
            email=user.email,
            balance=f"{Decimal(user.balance):.2f}",
            role=user.role
        ))


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class DashboardResponse(BaseModel):
    success: bool = True
    user: Optional[UserSnapshot] = None
    stats: DashboardStats
    recent_rentals: List[RentalView]
    recent_orders: List[Order]


class RentalListResponse(BaseModel):
    success: bool = True
    rentals: List[RentalView]


class RentalResponse(BaseModel):
    success: bool = True
    rental: Rental


class OrderListResponse(BaseModel):
    success: bool = True
    orders: List[Order]


class OrderResponse(BaseModel):
    success: bool = True
    order: Order


class ServiceListResponse(BaseModel):
    success: bool = True
    services: List[Service]


class RentalExpiredResponse(BaseModel):
    success: bool = True
    rental_id: UUID
    status: str
