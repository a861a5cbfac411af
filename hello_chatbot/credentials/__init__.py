# hello_chatbot/credentials/__init__.py
"""
Credential lifecycle for the knowledge-base API.

One bearer token, obtained through an OAuth2 client-credentials grant or
configured manually, cached in memory and in the option store.
"""

from .models import (
    Credential,
    CredentialSource,
    OAuthClientConfig,
    OAuthConnectionTestResult,
    TokenStatus,
)
from .errors import (
    CredentialError,
    TokenRefreshError,
    OAuthConfigIncompleteError,
    TokenRefreshFailedError,
    CredentialUnavailableError,
)
from .credential_cache import CredentialCache, EXPIRY_BUFFER_SECONDS

__all__ = [
    "Credential",
    "CredentialSource",
    "OAuthClientConfig",
    "OAuthConnectionTestResult",
    "TokenStatus",
    "CredentialError",
    "TokenRefreshError",
    "OAuthConfigIncompleteError",
    "TokenRefreshFailedError",
    "CredentialUnavailableError",
    "CredentialCache",
    "EXPIRY_BUFFER_SECONDS",
]
