# tests/test_credential_cache.py
from urllib.parse import parse_qs

import httpx
import pytest

from hello_chatbot.credentials import (
    CredentialCache,
    OAuthConfigIncompleteError,
    TokenRefreshFailedError,
)
from hello_chatbot.options import keys

from conftest import START_UNIX

TOKEN_URL = "https://login.example.com/oauth2/token"


class TokenEndpoint:
    """Fake OAuth2 token endpoint recording every request it receives."""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {"access_token": "fresh-token", "expires_in": 3600}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, json=self.body)
        return httpx.Response(self.status_code, text=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


async def configure_oauth(option_store, **overrides):
    values = {
        keys.CHATBOT_USE_OAUTH: True,
        keys.CHATBOT_OAUTH_CLIENT_ID: "client-123",
        keys.CHATBOT_OAUTH_CLIENT_SECRET: "s3cret",
        keys.CHATBOT_OAUTH_TENANT_ID: "tenant-1",
        keys.CHATBOT_OAUTH_SCOPE: "api://kb/.default",
        keys.CHATBOT_OAUTH_ENDPOINT: TOKEN_URL,
    }
    values.update(overrides)
    await option_store.update_options(values)


async def persist_token(option_store, token, expires_at):
    await option_store.update_options({
        keys.CHATBOT_OAUTH_ACCESS_TOKEN: token,
        keys.CHATBOT_TOKEN_EXPIRES_AT: expires_at,
    })


def make_cache(option_store, clock, endpoint):
    return CredentialCache(option_store, transport=endpoint.transport, clock=clock)


@pytest.mark.asyncio
async def test_oauth_disabled_returns_manual_token_verbatim(option_store, clock):
    endpoint = TokenEndpoint()
    await option_store.update_option(keys.CHATBOT_API_TOKEN, "manual-token")
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() == "manual-token"
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_oauth_disabled_without_manual_token_returns_empty_string(option_store, clock):
    endpoint = TokenEndpoint()
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() == ""
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_valid_persisted_token_is_used_without_refresh(option_store, clock):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store)
    await persist_token(option_store, "stored-token", START_UNIX + 3600)
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() == "stored-token"
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_token_inside_expiry_buffer_triggers_refresh(option_store, clock):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store)
    await persist_token(option_store, "almost-expired", START_UNIX + 200)
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() == "fresh-token"
    assert len(endpoint.requests) == 1
    assert await option_store.get_option(keys.CHATBOT_OAUTH_ACCESS_TOKEN) == "fresh-token"
    assert await option_store.get_option(keys.CHATBOT_TOKEN_EXPIRES_AT) == START_UNIX + 3600


@pytest.mark.asyncio
async def test_in_memory_token_reused_until_buffer(option_store, clock):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() == "fresh-token"
    clock.advance(3600 - 301)
    assert await cache.get_valid_token() == "fresh-token"
    assert len(endpoint.requests) == 1

    clock.advance(2)
    await cache.get_valid_token()
    assert len(endpoint.requests) == 2


@pytest.mark.asyncio
async def test_refresh_with_incomplete_config_sends_no_request(option_store, clock):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store, **{keys.CHATBOT_OAUTH_CLIENT_SECRET: ""})
    cache = make_cache(option_store, clock, endpoint)

    with pytest.raises(OAuthConfigIncompleteError):
        await cache.refresh()
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_refresh_posts_form_encoded_client_credentials(option_store, clock):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)

    await cache.refresh()

    request = endpoint.requests[0]
    assert request.method == "POST"
    assert str(request.url) == TOKEN_URL
    assert request.headers["content-type"].startswith("application/x-www-form-urlencoded")
    form = parse_qs(request.content.decode())
    assert form == {
        "client_id": ["client-123"],
        "client_secret": ["s3cret"],
        "scope": ["api://kb/.default"],
        "grant_type": ["client_credentials"],
    }


@pytest.mark.asyncio
async def test_refreshed_access_token_is_encrypted_at_rest(option_store, clock, db_conn):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)

    await cache.refresh()

    row = db_conn.execute(
        "SELECT option_value, is_encrypted FROM chatbot_options WHERE option_name = ?",
        (keys.CHATBOT_OAUTH_ACCESS_TOKEN,),
    ).fetchone()
    assert row["is_encrypted"] == 1
    assert "fresh-token" not in row["option_value"]
    assert await option_store.get_option(keys.CHATBOT_OAUTH_ACCESS_TOKEN) == "fresh-token"


@pytest.mark.asyncio
async def test_missing_expires_in_defaults_to_one_hour(option_store, clock):
    endpoint = TokenEndpoint(body={"access_token": "no-expiry"})
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)

    await cache.refresh()

    assert await option_store.get_option(keys.CHATBOT_TOKEN_EXPIRES_AT) == START_UNIX + 3600


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code, body", [
    (500, {"error": "server_error"}),
    (200, {"token_type": "Bearer"}),
    (200, "not json"),
])
async def test_failed_refresh_leaves_previous_credential_untouched(option_store, clock, status_code, body):
    endpoint = TokenEndpoint(status_code=status_code, body=body)
    await configure_oauth(option_store)
    await persist_token(option_store, "old-token", START_UNIX + 100)
    cache = make_cache(option_store, clock, endpoint)

    with pytest.raises(TokenRefreshFailedError):
        await cache.refresh()

    assert await option_store.get_option(keys.CHATBOT_OAUTH_ACCESS_TOKEN) == "old-token"
    assert await option_store.get_option(keys.CHATBOT_TOKEN_EXPIRES_AT) == START_UNIX + 100


@pytest.mark.asyncio
async def test_network_error_is_a_refresh_failure(option_store, clock):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    await configure_oauth(option_store)
    cache = CredentialCache(option_store, transport=httpx.MockTransport(handler), clock=clock)

    with pytest.raises(TokenRefreshFailedError):
        await cache.refresh()


@pytest.mark.asyncio
async def test_failed_refresh_falls_back_to_manual_token(option_store, clock):
    endpoint = TokenEndpoint(status_code=401, body={"error": "invalid_client"})
    await configure_oauth(option_store)
    await option_store.update_option(keys.CHATBOT_API_TOKEN, "manual-token")
    await persist_token(option_store, "expired-oauth-token", START_UNIX - 10)
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() == "manual-token"


@pytest.mark.asyncio
async def test_failed_refresh_without_manual_token_returns_none(option_store, clock):
    endpoint = TokenEndpoint(status_code=503, body={})
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() is None


@pytest.mark.asyncio
async def test_incomplete_config_falls_back_to_manual_token(option_store, clock):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store, **{keys.CHATBOT_OAUTH_ENDPOINT: ""})
    await option_store.update_option(keys.CHATBOT_API_TOKEN, "manual-token")
    cache = make_cache(option_store, clock, endpoint)

    assert await cache.get_valid_token() == "manual-token"
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_clear_cache_forces_next_call_to_refresh(option_store, clock):
    endpoint = TokenEndpoint()
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)
    await cache.get_valid_token()

    await cache.clear_cache()

    assert await option_store.get_option(keys.CHATBOT_TOKEN_EXPIRES_AT) == 0
    assert (await cache.get_status()).status == "none"
    await cache.get_valid_token()
    assert len(endpoint.requests) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("expires_in, expected", [
    (None, "none"),
    (-60, "expired"),
    (120, "expiring_soon"),
    (7200, "valid"),
])
async def test_status_reflects_persisted_expiry(option_store, clock, expires_in, expected):
    if expires_in is not None:
        await persist_token(option_store, "tok", START_UNIX + expires_in)
    cache = make_cache(option_store, clock, TokenEndpoint())

    status = await cache.get_status()

    assert status.status == expected
    if expected == "none":
        assert status.expires_at is None
    else:
        assert int(status.expires_at.timestamp()) == START_UNIX + expires_in


@pytest.mark.asyncio
async def test_status_human_remaining(option_store, clock):
    await persist_token(option_store, "tok", START_UNIX + 2 * 3600)
    cache = make_cache(option_store, clock, TokenEndpoint())

    assert (await cache.get_status()).human_remaining == "2 hours"

    clock.advance(3 * 3600)
    assert (await cache.get_status()).human_remaining == "1 hour ago"


@pytest.mark.asyncio
async def test_connection_test_reports_success_and_expiry(option_store, clock):
    endpoint = TokenEndpoint(body={"access_token": "tok", "expires_in": 1800})
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)

    result = await cache.test_connection()

    assert result.success is True
    assert result.expires_in_seconds == 1800


@pytest.mark.asyncio
async def test_connection_test_reports_failure(option_store, clock):
    endpoint = TokenEndpoint(status_code=400, body={"error": "invalid_request"})
    await configure_oauth(option_store)
    cache = make_cache(option_store, clock, endpoint)

    result = await cache.test_connection()

    assert result.success is False
    assert result.expires_at is None
