# hello_chatbot/credentials/endpoints.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .credential_cache import CredentialCache
from .errors import OAuthConfigIncompleteError, TokenRefreshFailedError
from .models import OAuthConnectionTestResult, TokenStatus
from ..dependencies import get_admin_api_key, get_credential_cache

logger = logging.getLogger(__name__)

# Admin router for the OAuth2 credential - requires admin API key authentication
oauth_admin_router = APIRouter(
    prefix="/admin/oauth",
    tags=["Admin - OAuth2 Credential"],
    dependencies=[Depends(get_admin_api_key)]
)


@oauth_admin_router.get("/status", response_model=TokenStatus)
async def get_token_status_endpoint(
    credential_cache: Annotated[CredentialCache, Depends(get_credential_cache)]
):
    """Report the persisted token's expiry state. Does not refresh."""
    return await credential_cache.get_status()


@oauth_admin_router.post("/test", response_model=OAuthConnectionTestResult)
async def test_oauth_connection_endpoint(
    credential_cache: Annotated[CredentialCache, Depends(get_credential_cache)]
):
    """Fetch a token with the current configuration and report the outcome."""
    logger.info("API: OAuth2 connection test requested.")
    return await credential_cache.test_connection()


@oauth_admin_router.post("/refresh", response_model=TokenStatus)
async def refresh_token_endpoint(
    credential_cache: Annotated[CredentialCache, Depends(get_credential_cache)]
):
    """
    Force a token refresh.

    The cache is cleared first, so a failed refresh leaves no valid OAuth token
    behind. Returns 400 when the OAuth2 configuration is incomplete and 502
    when the token endpoint fails.
    """
    logger.info("API: Forced OAuth2 token refresh requested.")
    await credential_cache.clear_cache()
    try:
        await credential_cache.refresh()
    except OAuthConfigIncompleteError as e:
        logger.warning(f"API: Token refresh rejected: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except TokenRefreshFailedError as e:
        logger.error(f"API: Token refresh failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    return await credential_cache.get_status()


@oauth_admin_router.post("/clear", status_code=status.HTTP_204_NO_CONTENT)
async def clear_token_cache_endpoint(
    credential_cache: Annotated[CredentialCache, Depends(get_credential_cache)]
):
    """Invalidate the cached token; the next chat message triggers a refresh."""
    await credential_cache.clear_cache()
    return None
