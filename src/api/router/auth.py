import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from src.api.models.request_models import LoginRequest, RegisterRequest
from src.api.models.response_models import AccountResponse, MessageResponse
from src.core.dependencies import get_session, get_user_repository
from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.service.auth.auth_service import AuthService
from src.core.service.auth.models.session import SessionData
from src.core.service.auth.oauth_client import GoogleOAuthClient
from src.infra.repository.user_repository import UserRepository

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={
        401: {"description": "Unauthorized"},
        409: {"description": "Conflict"},
        500: {"description": "Internal Server Error"}
    }
)


async def get_auth_service(user_repository: UserRepository = Depends(get_user_repository)) -> AuthService:
    return AuthService(user_repository)


def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient()


@router.post("/register", response_model=AccountResponse, status_code=201)
async def register(
    request: RegisterRequest,
    session: SessionData = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service)
) -> AccountResponse:
    """Create a local account and sign it in."""
    user = await auth_service.register(session, request.username, request.email, request.password)
    return AccountResponse.from_user(user)


@router.post("/login", response_model=AccountResponse)
async def login(
    request: LoginRequest,
    session: SessionData = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service)
) -> AccountResponse:
    user = await auth_service.login(session, request.email, request.password)
    return AccountResponse.from_user(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(session: SessionData = Depends(get_session)) -> MessageResponse:
    AuthService.logout(session)
    return MessageResponse(message="Signed out")


@router.get("/google")
async def google_login(
    session: SessionData = Depends(get_session),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client)
) -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    if not oauth_client.configured:
        raise ServiceError(
            code=ServiceErrorCode.OAUTH_FAILED,
            message="Google sign-in is not configured",
            status_code=503
        )

    session.oauth_state = secrets.token_urlsafe(24)
    return RedirectResponse(oauth_client.authorization_url(session.oauth_state), status_code=302)


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    session: SessionData = Depends(get_session),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
    auth_service: AuthService = Depends(get_auth_service)
) -> RedirectResponse:
    """Finish the authorization-code flow and sign the user in."""
    expected_state = session.oauth_state
    session.oauth_state = None

    if error or not code:
        raise ServiceError(
            code=ServiceErrorCode.OAUTH_FAILED,
            message="Google sign-in was cancelled",
            status_code=401,
            details={"provider_error": error} if error else None
        )

    if not expected_state or not state or not secrets.compare_digest(expected_state, state):
        raise ServiceError(
            code=ServiceErrorCode.OAUTH_FAILED,
            message="Sign-in state mismatch",
            status_code=401
        )

    profile = await oauth_client.fetch_profile(code)
    await auth_service.login_with_oauth(session, profile)
    return RedirectResponse("/user/dashboard", status_code=303)
