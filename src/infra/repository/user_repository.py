"""
User repository using SQLAlchemy ORM
"""

from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from src.core.service.auth.models.user import User, UserRole, AuthProvider
from src.infra.database import session_scope
from src.infra.models import UserModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for user database operations using SQLAlchemy ORM"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: UserModel) -> User:
        """Convert SQLAlchemy model to Pydantic entity"""
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            password_hash=model.password_hash,
            auth_provider=AuthProvider(model.auth_provider),
            balance=model.balance if model.balance is not None else Decimal("0.00"),
            role=UserRole(model.role) if model.role else UserRole.MEMBER,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    async def get_profile_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Read only the display fields of a user

        Args:
            email: Stable session identifier

        Returns:
            Dict with username, email, balance and role, or None
        """
        stmt = select(
            UserModel.username,
            UserModel.email,
            UserModel.balance,
            UserModel.role
        ).where(UserModel.email == email.lower())
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email.lower())
        result = await self.session.execute(stmt)
        user_model = result.scalar_one_or_none()
        return self._model_to_entity(user_model) if user_model else None

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.id == user_id)
        result = await self.session.execute(stmt)
        user_model = result.scalar_one_or_none()
        return self._model_to_entity(user_model) if user_model else None

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: Optional[str] = None,
        auth_provider: AuthProvider = AuthProvider.LOCAL
    ) -> Optional[User]:
        """
        Create a user with a zero balance and the Member role

        Returns:
            User object, or None when the email is already registered
        """
        new_user = UserModel(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            auth_provider=auth_provider.value,
            balance=Decimal("0.00"),
            role=UserRole.MEMBER.value
        )

        try:
            self.session.add(new_user)
            await self.session.commit()
            await self.session.refresh(new_user)

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                f"User already exists: {e}",
                extra={"email": email}
            )
            return None

        logger.info(
            "New user created in database",
            extra={
                "email": email,
                "auth_provider": auth_provider.value,
                "user_id": str(new_user.id)
            }
        )
        return self._model_to_entity(new_user)

    async def get_or_create_oauth_user(self, email: str, display_name: str) -> Optional[User]:
        """Find the account for an OAuth login or create it on first login"""
        user = await self.get_by_email(email)
        if user:
            return user

        user = await self.create_user(display_name, email, auth_provider=AuthProvider.GOOGLE)
        if user:
            return user

        # Lost a race with a concurrent first login
        return await self.get_by_email(email)

    async def debit_balance(self, user_id: UUID, amount: Decimal, commit: bool = True) -> bool:
        """
        Subtract amount when the balance covers it

        Returns:
            True if debited, False if the balance was insufficient or the user is unknown
        """
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.balance >= amount)
            .values(balance=UserModel.balance - amount)
        )
        result = await self.session.execute(stmt)
        if commit:
            await self.session.commit()
        return result.rowcount == 1

    async def credit_balance(self, email: str, amount: Decimal) -> Optional[User]:
        """Top up a balance; returns the updated user or None if unknown"""
        stmt = (
            update(UserModel)
            .where(UserModel.email == email.lower())
            .values(balance=UserModel.balance + amount)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount != 1:
            return None

        logger.info(
            "User balance credited",
            extra={"email": email, "amount": str(amount)}
        )
        return await self.get_by_email(email)

    async def set_role(self, email: str, role: UserRole) -> Optional[User]:
        stmt = (
            update(UserModel)
            .where(UserModel.email == email.lower())
            .values(role=role.value)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount != 1:
            return None

        logger.info(
            "User role changed",
            extra={"email": email, "role": role.value}
        )
        return await self.get_by_email(email)


async def lookup_user_profile(email: str) -> Optional[Dict[str, Any]]:
    """Identity lookup with its own short-lived database session"""
    async with session_scope() as session:
        return await UserRepository(session).get_profile_by_email(email)
