"""Request bodies accepted by the API."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.core.service.auth.models.user import UserRole
from src.core.service.tracking.models import OrderStatus, RentalDuration


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RentNumberRequest(BaseModel):
    service: str = Field(..., min_length=1, max_length=100, description="Service name, e.g. WhatsApp")
    duration: RentalDuration = Field(..., description="3days or 30days")
    state: str = Field(default="random", max_length=100)


class PlaceOrderRequest(BaseModel):
    service: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=2, max_length=50)


class ResolveOrderRequest(BaseModel):
    """Outcome reported by the provisioning/SMS-check flow"""
    status: OrderStatus
    number: Optional[str] = Field(default=None, max_length=50)

    @field_validator("status")
    @classmethod
    def _terminal_only(cls, value: OrderStatus) -> OrderStatus:
        if not value.is_terminal:
            raise ValueError("status must be completed or failed")
        return value


class BalanceTopUpRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class RoleChangeRequest(BaseModel):
    role: UserRole
