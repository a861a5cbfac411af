# hello_chatbot/credentials/token_client.py
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import OAuthConfigIncompleteError, TokenRefreshFailedError
from .models import OAuthClientConfig

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN_SECONDS = 3600


async def request_client_credentials_token(
    config: OAuthClientConfig,
    *,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Run an OAuth2 client-credentials grant against `config.endpoint`.

    Returns a dict with `access_token` (str) and `expires_in` (int seconds,
    3600 when the issuer omits it).

    Raises:
        OAuthConfigIncompleteError: client id, secret or endpoint missing.
            No request is sent in that case.
        TokenRefreshFailedError: network error, non-200 status, unparsable
            body or missing `access_token`.
    """
    if not config.is_complete:
        logger.error("OAuth2 configuration incomplete (client_id, client_secret and endpoint are required).")
        raise OAuthConfigIncompleteError()

    payload = {
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "scope": config.scope,
        "grant_type": "client_credentials",
    }

    async with httpx.AsyncClient(timeout=timeout, transport=transport) as http_client:
        try:
            # data= sends application/x-www-form-urlencoded
            response = await http_client.post(config.endpoint, data=payload)
        except httpx.HTTPError as e:
            logger.error(f"OAuth2 token request to {config.endpoint} failed: {e}")
            raise TokenRefreshFailedError(f"Token request failed: {e}") from e

    logger.info(f"OAuth2 token endpoint responded with status: {response.status_code}")
    if response.status_code != 200:
        logger.error(f"OAuth2 token endpoint response body: {response.text[:500]}")
        raise TokenRefreshFailedError(
            f"Token endpoint returned status {response.status_code}",
            status_code=response.status_code,
        )

    try:
        token_data = response.json()
    except ValueError as e:
        logger.error(f"OAuth2 token response is not JSON: {response.text[:500]}")
        raise TokenRefreshFailedError("Invalid OAuth2 response format") from e

    if not isinstance(token_data, dict) or not token_data.get("access_token"):
        logger.error("OAuth2 token response has no 'access_token'.")
        raise TokenRefreshFailedError("Invalid OAuth2 response format")

    expires_in = DEFAULT_EXPIRES_IN_SECONDS
    raw_expires_in = token_data.get("expires_in")
    if raw_expires_in is not None:
        try:
            expires_in = int(raw_expires_in)
        except (TypeError, ValueError):
            logger.warning(
                f"Could not convert expires_in value '{raw_expires_in}' to int. "
                f"Using {DEFAULT_EXPIRES_IN_SECONDS}s."
            )

    return {"access_token": str(token_data["access_token"]), "expires_in": expires_in}
