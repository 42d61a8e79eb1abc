"""
Google OAuth 2.0 authorization-code client
"""

from typing import Optional
from urllib.parse import urlencode

import httpx

from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.http_client import create_temp_client
from src.core.logger.logger import get_logger
from src.core.service.auth.models.oauth import OAuthProfile
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


def _oauth_error(message: str) -> ServiceError:
    return ServiceError(
        code=ServiceErrorCode.OAUTH_FAILED,
        message=message,
        status_code=401
    )


class GoogleOAuthClient:
    """Exchanges an authorization code for the signed-in user's profile"""

    scopes = ("openid", "profile", "email")

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": settings.GOOGLE_CLIENT_ID,
            "redirect_uri": settings.GOOGLE_CALLBACK_URL,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{settings.GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> OAuthProfile:
        """
        Exchange the code and read userinfo.

        Raises:
            ServiceError: OAUTH_FAILED when the provider rejects the code or
                returns a profile without an email
        """
        if self._client is not None:
            return await self._fetch_profile(self._client, code)

        async with create_temp_client("oauth") as client:
            return await self._fetch_profile(client, code)

    async def _fetch_profile(self, client: httpx.AsyncClient, code: str) -> OAuthProfile:
        try:
            token_response = await client.post(
                settings.GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": settings.GOOGLE_CLIENT_ID,
                    "client_secret": settings.GOOGLE_CLIENT_SECRET,
                    "redirect_uri": settings.GOOGLE_CALLBACK_URL,
                    "grant_type": "authorization_code",
                }
            )
            token_response.raise_for_status()
            access_token = token_response.json().get("access_token")
            if not access_token:
                raise _oauth_error("Identity provider returned no access token")

            userinfo_response = await client.get(
                settings.GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"}
            )
            userinfo_response.raise_for_status()
            payload = userinfo_response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                "OAuth provider rejected request",
                extra={
                    "status_code": e.response.status_code,
                    "url": str(e.request.url)
                }
            )
            raise _oauth_error("Sign-in with Google failed") from e
        except httpx.HTTPError as e:
            logger.error(f"OAuth provider unreachable: {e}")
            raise _oauth_error("Sign-in with Google failed") from e

        profile = OAuthProfile.from_provider_payload(payload if isinstance(payload, dict) else {})
        if profile is None:
            raise _oauth_error("Google account has no email address")
        return profile
