"""
User model for persistent database storage
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Account role"""
    MEMBER = "Member"
    ADMIN = "Admin"


class AuthProvider(str, Enum):
    """Where the account was created"""
    LOCAL = "local"
    GOOGLE = "google"


class User(BaseModel):
    """User database model"""
    model_config = ConfigDict(use_enum_values=True)

    id: Optional[UUID] = None
    username: str
    email: str
    password_hash: Optional[str] = Field(default=None, exclude=True)
    auth_provider: AuthProvider = AuthProvider.LOCAL
    balance: Decimal = Field(default=Decimal("0.00"), ge=0)
    role: UserRole = UserRole.MEMBER
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
