from typing import Any, Dict, Optional

from pydantic import BaseModel


class OAuthProfile(BaseModel):
    """The only fields kept from an identity provider's profile payload"""
    email: str
    display_name: str

    @classmethod
    def from_provider_payload(cls, payload: Dict[str, Any]) -> Optional["OAuthProfile"]:
        """
        Project an opaque userinfo payload into a fixed record.

        Returns None when the payload has no usable email.
        """
        email = payload.get("email")
        if not isinstance(email, str) or "@" not in email:
            return None

        email = email.strip().lower()
        display_name = payload.get("name") or payload.get("given_name") or email.split("@")[0]
        return cls(email=email, display_name=str(display_name).strip())
