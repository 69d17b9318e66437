"""Unit tests for credential stores.

RefreshTokenCredential is exercised against an httpx.MockTransport token
endpoint; no network access is required.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from src.office365.config import Office365Config
from src.office365.credentials import RefreshTokenCredential, StaticTokenCredential
from src.office365.errors import CredentialError

TOKEN_URL = "https://login.test/common/oauth2/v2.0/token"


def _token_endpoint(*responses: httpx.Response):
    requests: list[httpx.Request] = []
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return queue.pop(0)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requests


def _credential(http_client, **kwargs) -> RefreshTokenCredential:
    return RefreshTokenCredential(
        client_id="app-id",
        refresh_token="rt-1",
        token_url=TOKEN_URL,
        http_client=http_client,
        **kwargs,
    )


class TestStaticToken:
    """StaticTokenCredential."""

    @pytest.mark.asyncio
    async def test_static_token(self):
        credential = StaticTokenCredential("abc")

        assert credential.access_token == "abc"
        assert credential.has_valid_token()
        with pytest.raises(CredentialError):
            await credential.refresh()

    def test_empty_static_token_is_invalid(self):
        assert not StaticTokenCredential("").has_valid_token()


class TestRefreshGrant:
    """RefreshTokenCredential.refresh()."""

    @pytest.mark.asyncio
    async def test_refresh_posts_form(self):
        http_client, requests = _token_endpoint(
            httpx.Response(200, json={"access_token": "at-1", "expires_in": 3600})
        )
        credential = _credential(http_client, client_secret="s3cret")

        assert not credential.has_valid_token()
        token = await credential.refresh()

        assert token == "at-1"
        assert credential.access_token == "at-1"
        assert credential.has_valid_token()

        form = parse_qs(requests[0].content.decode())
        assert requests[0].method == "POST"
        assert str(requests[0].url) == TOKEN_URL
        assert form["grant_type"] == ["refresh_token"]
        assert form["client_id"] == ["app-id"]
        assert form["refresh_token"] == ["rt-1"]
        assert form["client_secret"] == ["s3cret"]
        assert "offline_access" in form["scope"][0]

    @pytest.mark.asyncio
    async def test_public_client_sends_no_secret(self):
        http_client, requests = _token_endpoint(
            httpx.Response(200, json={"access_token": "at-1"})
        )

        await _credential(http_client).refresh()

        assert "client_secret" not in parse_qs(requests[0].content.decode())

    @pytest.mark.asyncio
    async def test_rotated_refresh_token_is_used_next_time(self):
        http_client, requests = _token_endpoint(
            httpx.Response(200, json={"access_token": "at-1", "refresh_token": "rt-2"}),
            httpx.Response(200, json={"access_token": "at-2"}),
        )
        credential = _credential(http_client)

        await credential.refresh()
        await credential.refresh()

        assert parse_qs(requests[1].content.decode())["refresh_token"] == ["rt-2"]
        assert credential.access_token == "at-2"

    @pytest.mark.asyncio
    async def test_error_description_in_message(self):
        http_client, _ = _token_endpoint(
            httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "AADSTS70008: expired"},
            )
        )

        with pytest.raises(CredentialError, match="400: AADSTS70008: expired"):
            await _credential(http_client).refresh()

    @pytest.mark.asyncio
    async def test_missing_access_token(self):
        http_client, _ = _token_endpoint(httpx.Response(200, json={"token_type": "Bearer"}))

        with pytest.raises(CredentialError, match="no access_token"):
            await _credential(http_client).refresh()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        http_client, _ = _token_endpoint(httpx.Response(200, text="not json"))

        with pytest.raises(CredentialError, match="invalid JSON"):
            await _credential(http_client).refresh()

    @pytest.mark.asyncio
    async def test_non_object_json(self):
        http_client, _ = _token_endpoint(httpx.Response(200, json=["x"]))
        credential = _credential(http_client)

        with pytest.raises(CredentialError, match="not a JSON object"):
            await credential.refresh()
        assert credential.access_token is None

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        credential = _credential(httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        with pytest.raises(CredentialError) as exc_info:
            await credential.refresh()

        assert isinstance(exc_info.value.cause, httpx.ConnectError)


class TestExpiry:
    """Token validity tracking."""

    @pytest.mark.parametrize("expires_in,valid", [(100, True), (59, False)])
    def test_expiry_skew(self, expires_in, valid):
        """Tokens count as expired expiry_skew_seconds before they really are."""
        credential = _credential(
            None, access_token="at", expires_in=expires_in, expiry_skew_seconds=60
        )

        assert credential.has_valid_token() is valid

    @pytest.mark.asyncio
    async def test_expiry_from_response(self):
        http_client, _ = _token_endpoint(
            httpx.Response(200, json={"access_token": "short", "expires_in": 10})
        )
        credential = _credential(http_client, expiry_skew_seconds=60)

        await credential.refresh()

        assert credential.access_token == "short"
        assert not credential.has_valid_token()

    def test_unknown_expiry_is_usable(self):
        credential = _credential(None, access_token="at")

        assert credential.has_valid_token()


class TestLifecycle:
    """Construction and close()."""

    @pytest.mark.parametrize("field", ["client_id", "refresh_token"])
    def test_required_fields(self, field):
        kwargs = {"client_id": "app-id", "refresh_token": "rt"}
        kwargs[field] = ""

        with pytest.raises(ValueError, match=field):
            RefreshTokenCredential(**kwargs)

    @pytest.mark.asyncio
    async def test_external_client_left_open(self):
        http_client = httpx.AsyncClient()
        credential = _credential(http_client)

        await credential.close()

        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        credential = _credential(None)

        await credential.close()

        assert credential._client.is_closed

    @pytest.mark.asyncio
    async def test_from_config(self, clean_env):
        config = Office365Config(
            client_id="cfg-app",
            refresh_token="cfg-rt",
            token_url=TOKEN_URL,
            scopes="offline_access https://outlook.office.com/Calendars.Read",
            token_expiry_skew_seconds=30,
        )

        credential = RefreshTokenCredential.from_config(config, access_token="seed")
        try:
            assert credential.client_id == "cfg-app"
            assert credential.token_url == TOKEN_URL
            assert credential.scopes.endswith("Calendars.Read")
            assert credential.access_token == "seed"
            assert credential._client_secret is None
        finally:
            await credential.close()


def test_secrets_not_in_config_repr(clean_env):
    config = Office365Config(client_id="a", refresh_token="very-secret")

    assert "very-secret" not in repr(config)
    assert "very-secret" not in json.dumps(config.model_dump(mode="json"))
