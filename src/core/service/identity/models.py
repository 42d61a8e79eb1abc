from pydantic import BaseModel, ConfigDict, Field


class UserSnapshot(BaseModel):
    """Display-ready projection of a user, attached to the session"""
    username: str
    email: str
    balance: str  # two decimals, e.g. "12.50"
    role: str = "Member"


class CachedIdentity(BaseModel):
    """Snapshot plus the epoch-millisecond time it was read from the database"""
    model_config = ConfigDict(populate_by_name=True)

    user: UserSnapshot
    last_fetch: int = Field(alias="lastFetch")

    def is_fresh(self, now_ms: int, ttl_ms: int) -> bool:
        return now_ms - self.last_fetch < ttl_ms
