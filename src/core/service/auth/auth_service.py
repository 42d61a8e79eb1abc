from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.auth.models.oauth import OAuthProfile
from src.core.service.auth.models.session import SessionData
from src.core.service.auth.models.user import User, AuthProvider
from src.core.service.auth.utils.passwords import hash_password, verify_password
from src.infra.repository.user_repository import UserRepository

logger = get_logger(__name__)


class AuthService:
    """Local and OAuth sign-in; binds the resulting identity to the session"""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def register(self, session: SessionData, username: str, email: str, password: str) -> User:
        email = email.strip().lower()

        if await self.user_repository.get_by_email(email):
            raise self._email_taken(email)

        user = await self.user_repository.create_user(
            username=username.strip(),
            email=email,
            password_hash=hash_password(password),
            auth_provider=AuthProvider.LOCAL
        )
        if user is None:
            raise self._email_taken(email)

        session.login(user.email, user.id)
        return user

    async def login(self, session: SessionData, email: str, password: str) -> User:
        user = await self.user_repository.get_by_email(email.strip().lower())

        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed sign-in attempt", extra={"email": email})
            raise ServiceError(
                code=ServiceErrorCode.INVALID_CREDENTIALS,
                message="Invalid email or password",
                status_code=401
            )

        session.login(user.email, user.id)
        logger.info("User signed in", extra={"email": user.email, "provider": "local"})
        return user

    async def login_with_oauth(self, session: SessionData, profile: OAuthProfile) -> User:
        user = await self.user_repository.get_or_create_oauth_user(profile.email, profile.display_name)
        if user is None:
            raise ServiceError(
                code=ServiceErrorCode.OAUTH_FAILED,
                message="Could not create an account for this Google profile",
                status_code=500
            )

        session.login(user.email, user.id)
        logger.info("User signed in", extra={"email": user.email, "provider": "google"})
        return user

    @staticmethod
    def logout(session: SessionData) -> None:
        if session.user_email:
            logger.info("User signed out", extra={"email": session.user_email})
        session.destroy()

    @staticmethod
    def _email_taken(email: str) -> ServiceError:
        return ServiceError(
            code=ServiceErrorCode.EMAIL_TAKEN,
            message="An account with this email already exists",
            status_code=409,
            context={"email": email}
        )
