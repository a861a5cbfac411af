# hello_chatbot/credentials/models.py
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CredentialSource(str, Enum):
    OAUTH = "oauth"
    MANUAL = "manual"


class Credential(BaseModel):
    """
    The single bearer credential.

    Instances are frozen: a refresh builds a new Credential and swaps the
    reference, so token and expiry always change together.
    """

    model_config = ConfigDict(frozen=True)

    token: str = ""
    # Unix seconds; 0 means unknown / never fetched. Ignored for manual tokens.
    expires_at: int = 0
    source: CredentialSource = CredentialSource.OAUTH


class OAuthClientConfig(BaseModel):
    """OAuth2 client-credentials configuration as read from the option store."""

    use_oauth: bool = False
    client_id: str = ""
    client_secret: str = ""
    tenant_id: str = ""
    scope: str = ""
    endpoint: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.endpoint)


TokenStatusValue = Literal["none", "expired", "expiring_soon", "valid"]


class TokenStatus(BaseModel):
    """Admin view of the persisted OAuth credential."""

    status: TokenStatusValue
    message: str
    expires_at: Optional[datetime] = None
    human_remaining: Optional[str] = Field(
        default=None,
        description="Time left before expiry, or time since expiry for expired tokens."
    )


class OAuthConnectionTestResult(BaseModel):
    success: bool
    message: str
    expires_at: Optional[datetime] = None
    expires_in_seconds: Optional[int] = None
