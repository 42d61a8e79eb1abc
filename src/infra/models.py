"""
SQLAlchemy ORM models for database tables
"""

from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, Index, Uuid, CheckConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
import uuid

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModel(Base):
    """SQLAlchemy ORM model for users table"""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=True)
    auth_provider = Column(String(20), default="local", nullable=False)
    balance = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    role = Column(String(20), default="Member", nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index('idx_users_email', 'email', unique=True),
        CheckConstraint('balance >= 0', name='ck_users_balance_non_negative'),
    )

    def __repr__(self):
        return f"<User(email='{self.email}', role='{self.role}', balance={self.balance})>"


class RentalModel(Base):
    """SQLAlchemy ORM model for rentals table"""

    __tablename__ = "rentals"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    service = Column(String(100), nullable=False)
    state = Column(String(100), default="random", nullable=False)
    duration = Column(String(20), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), default="active", nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_rentals_user', 'user_id'),
        Index('idx_rentals_user_status_expiry', 'user_id', 'status', 'expires_at'),
    )

    def __repr__(self):
        return f"<Rental(service='{self.service}', duration='{self.duration}', status='{self.status}', expires_at='{self.expires_at}')>"


class OrderModel(Base):
    """SQLAlchemy ORM model for orders table"""

    __tablename__ = "orders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    service = Column(String(100), nullable=False)
    country = Column(String(50), nullable=False)
    number = Column(String(50), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index('idx_orders_user', 'user_id'),
        Index('idx_orders_user_status', 'user_id', 'status'),
    )

    def __repr__(self):
        return f"<Order(service='{self.service}', country='{self.country}', status='{self.status}')>"


class ServiceModel(Base):
    """SQLAlchemy ORM model for services table"""

    __tablename__ = "services"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    ltr_short_price = Column(Numeric(12, 2), nullable=False)
    ltr_price = Column(Numeric(12, 2), nullable=False)
    # Stored as text ("1"/"0"/"true"/"false"); normalized when read
    available = Column(String(10), default="1", nullable=False)

    __table_args__ = (
        Index('idx_services_name', 'name', unique=True),
    )

    def __repr__(self):
        return f"<Service(name='{self.name}', available='{self.available}')>"
