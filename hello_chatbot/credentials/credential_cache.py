# hello_chatbot/credentials/credential_cache.py
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from . import token_client
from .errors import TokenRefreshError
from .models import (
    Credential,
    CredentialSource,
    OAuthClientConfig,
    OAuthConnectionTestResult,
    TokenStatus,
)
from ..options import keys
from ..options.storage_interfaces import AbstractOptionStore
from ..settings import settings

logger = logging.getLogger(__name__)

# A token expiring within this many seconds is treated as already expired
EXPIRY_BUFFER_SECONDS = 300


def _humanize_seconds(seconds: int) -> str:
    """Coarse duration text in the style of "5 mins", "2 hours", "3 days"."""
    seconds = abs(int(seconds))
    if seconds < 3600:
        count, unit = max(1, round(seconds / 60)), "min"
    elif seconds < 86400:
        count, unit = max(1, round(seconds / 3600)), "hour"
    else:
        count, unit = max(1, round(seconds / 86400)), "day"
    return f"{count} {unit}{'' if count == 1 else 's'}"


def _to_datetime(unix_seconds: int) -> datetime:
    return datetime.fromtimestamp(unix_seconds, tz=timezone.utc)


class CredentialCache:
    """
    Keeps one valid bearer token available to the message relay.

    The token comes from an OAuth2 client-credentials grant when OAuth is
    enabled, otherwise from the manually configured token. Refresh is lazy:
    it happens inside `get_valid_token()` when neither the in-memory nor the
    persisted credential is valid. There is no single-flight protection, so
    concurrent callers may each refresh; the last write wins.
    """

    def __init__(
        self,
        option_store: AbstractOptionStore,
        *,
        request_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            option_store: Durable configuration store holding the credential and OAuth settings.
            request_timeout: Token endpoint timeout in seconds.
            transport: Optional httpx transport for the token request.
            clock: Returns the current unix time in seconds.
        """
        self._option_store = option_store
        self._request_timeout = (
            request_timeout if request_timeout is not None else settings.oauth_request_timeout_seconds
        )
        self._transport = transport
        self._clock = clock
        self._credential: Optional[Credential] = None

    def _now(self) -> int:
        return int(self._clock())

    def is_valid(self, credential: Optional[Credential]) -> bool:
        """True iff the credential has a token whose expiry is known and more than 5 minutes away."""
        if credential is None or not credential.token:
            return False
        if credential.source == CredentialSource.MANUAL:
            return True
        if credential.expires_at == 0:
            return False
        return credential.expires_at - EXPIRY_BUFFER_SECONDS > self._now()

    async def load_oauth_config(self) -> OAuthClientConfig:
        values = await self._option_store.get_options(keys.OAUTH_CONFIG_OPTIONS)
        return OAuthClientConfig(
            use_oauth=bool(values.get(keys.CHATBOT_USE_OAUTH, False)),
            client_id=values.get(keys.CHATBOT_OAUTH_CLIENT_ID) or "",
            client_secret=values.get(keys.CHATBOT_OAUTH_CLIENT_SECRET) or "",
            tenant_id=values.get(keys.CHATBOT_OAUTH_TENANT_ID) or "",
            scope=values.get(keys.CHATBOT_OAUTH_SCOPE) or "",
            endpoint=values.get(keys.CHATBOT_OAUTH_ENDPOINT) or "",
        )

    async def _get_manual_token(self) -> str:
        return await self._option_store.get_option(keys.CHATBOT_API_TOKEN, "") or ""

    async def _load_persisted_credential(self) -> Credential:
        values = await self._option_store.get_options(
            (keys.CHATBOT_OAUTH_ACCESS_TOKEN, keys.CHATBOT_TOKEN_EXPIRES_AT)
        )
        return Credential(
            token=values.get(keys.CHATBOT_OAUTH_ACCESS_TOKEN) or "",
            expires_at=int(values.get(keys.CHATBOT_TOKEN_EXPIRES_AT) or 0),
            source=CredentialSource.OAUTH,
        )

    async def get_valid_token(self) -> Optional[str]:
        """
        Return a bearer token for the next upstream call.

        With OAuth disabled the manual token is returned verbatim, which may
        be an empty string; callers must treat a blank token as unavailable.
        With OAuth enabled, the in-memory credential, then the persisted one,
        then a fresh refresh are tried in that order. If the refresh fails the
        manual token is used when set. Returns None when nothing is usable.
        """
        config = await self.load_oauth_config()
        if not config.use_oauth:
            return await self._get_manual_token()

        if self.is_valid(self._credential):
            return self._credential.token

        persisted = await self._load_persisted_credential()
        if self.is_valid(persisted):
            self._credential = persisted
            return persisted.token

        try:
            return await self.refresh(config)
        except TokenRefreshError as e:
            logger.warning(f"OAuth2 token refresh failed: {e.message}")

        manual_token = await self._get_manual_token()
        if manual_token:
            logger.warning("OAuth2 token refresh failed, falling back to manual token.")
            return manual_token

        logger.error("No valid token available.")
        return None

    async def refresh(self, config: Optional[OAuthClientConfig] = None) -> str:
        """
        Fetch a new token from the OAuth2 endpoint and persist it.

        Token and expiry are written in one option-store transaction, then the
        in-memory credential is replaced in a single assignment. On failure
        the previous credential is left untouched.

        Raises:
            OAuthConfigIncompleteError: configuration missing; no request sent.
            TokenRefreshFailedError: the request or its response was unusable.
        """
        config = config or await self.load_oauth_config()
        token_data = await token_client.request_client_credentials_token(
            config, timeout=self._request_timeout, transport=self._transport
        )

        new_credential = Credential(
            token=token_data["access_token"],
            expires_at=self._now() + token_data["expires_in"],
            source=CredentialSource.OAUTH,
        )
        await self._option_store.update_options({
            keys.CHATBOT_OAUTH_ACCESS_TOKEN: new_credential.token,
            keys.CHATBOT_TOKEN_EXPIRES_AT: new_credential.expires_at,
        })
        self._credential = new_credential

        logger.info(
            f"OAuth2 token refreshed successfully. Expires at: "
            f"{_to_datetime(new_credential.expires_at).isoformat()}"
        )
        return new_credential.token

    async def get_status(self) -> TokenStatus:
        """Describe the persisted credential's expiry. Never refreshes or writes."""
        expires_at = int(await self._option_store.get_option(keys.CHATBOT_TOKEN_EXPIRES_AT, 0) or 0)
        now = self._now()

        if expires_at == 0:
            return TokenStatus(status="none", message="No OAuth2 token available")

        expires_at_dt = _to_datetime(expires_at)
        if expires_at < now:
            return TokenStatus(
                status="expired",
                message="Token expired",
                expires_at=expires_at_dt,
                human_remaining=f"{_humanize_seconds(now - expires_at)} ago",
            )

        remaining = expires_at - now
        if remaining < EXPIRY_BUFFER_SECONDS:
            return TokenStatus(
                status="expiring_soon",
                message="Token expiring soon",
                expires_at=expires_at_dt,
                human_remaining=_humanize_seconds(remaining),
            )

        return TokenStatus(
            status="valid",
            message="Token is valid",
            expires_at=expires_at_dt,
            human_remaining=_humanize_seconds(remaining),
        )

    async def clear_cache(self) -> None:
        """
        Forget the in-memory credential and zero the persisted expiry.

        The stored token string is kept; the next `get_valid_token()` call
        will treat it as invalid and refresh.
        """
        self._credential = None
        await self._option_store.update_option(keys.CHATBOT_TOKEN_EXPIRES_AT, 0)
        logger.info("Credential cache cleared.")

    async def test_connection(self) -> OAuthConnectionTestResult:
        """Run a refresh and report the outcome for the admin UI."""
        try:
            await self.refresh()
        except TokenRefreshError as e:
            logger.warning(f"OAuth2 connection test failed: {e.message}")
            return OAuthConnectionTestResult(
                success=False,
                message="OAuth2 connection failed. Please check your credentials.",
            )

        credential = self._credential
        return OAuthConnectionTestResult(
            success=True,
            message="OAuth2 connection successful! Token obtained.",
            expires_at=_to_datetime(credential.expires_at),
            expires_in_seconds=credential.expires_at - self._now(),
        )
