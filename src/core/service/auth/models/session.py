from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.core.service.identity.models import CachedIdentity


class SessionData(BaseModel):
    """Per-browser session persisted in Redis"""
    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(default_factory=uuid4)
    user_email: Optional[str] = None
    user_id: Optional[UUID] = None
    user_data: Optional[CachedIdentity] = Field(default=None, alias="userData")
    oauth_state: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Set by logout; the middleware deletes the stored copy and the cookie
    destroyed: bool = Field(default=False, exclude=True)

    def login(self, email: str, user_id: UUID) -> None:
        """Bind an identity and drop any snapshot cached for a previous one"""
        self.user_email = email
        self.user_id = user_id
        self.user_data = None
        self.oauth_state = None

    def destroy(self) -> None:
        self.user_email = None
        self.user_id = None
        self.user_data = None
        self.oauth_state = None
        self.destroyed = True

    @property
    def is_authenticated(self) -> bool:
        return self.user_email is not None

    @property
    def is_initialized(self) -> bool:
        """Sessions without identity or OAuth state are never persisted"""
        return self.user_email is not None or self.oauth_state is not None
