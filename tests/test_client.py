"""Unit tests for AuthenticatedClient.

Tests:
- Fixed headers (Authorization, Accept, Prefer) on every request
- 401 responses invalidate the token that was used
- HttpResponseError carries status, path and body
- extract_path strips the base URL and rejects foreign URLs
- POST payloads are serialized with their wire aliases
- Closed clients make no request
"""

import json

import httpx
import pytest
from mocks.credential_mock import MockCredential
from mocks.outlook_server import BASE_URL, build_client

from src.office365.entities import EmailAddress, Message, Recipient
from src.office365.errors import ClosedError, HttpResponseError
from src.office365.models import BodyType


def _recording_client(handler, credential=None):
    requests: list[httpx.Request] = []

    async def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = build_client(
        httpx.MockTransport(record), credential or MockCredential(token="abc")
    )
    return client, requests


class TestHeaders:
    """Headers attached to every request."""

    @pytest.mark.asyncio
    async def test_fixed_headers(self):
        client, requests = _recording_client(lambda r: httpx.Response(200, json={}))

        await client.get("/messages/1")

        headers = requests[0].headers
        assert headers["Authorization"] == "Bearer abc"
        assert headers["Accept"] == "application/json"
        assert headers["Prefer"] == 'outlook.body-content-type="html"'

    @pytest.mark.asyncio
    async def test_text_body_preference(self):
        client, requests = _recording_client(lambda r: httpx.Response(200, json={}))
        client.preferred_body_type = BodyType.TEXT

        await client.get("/messages/1")

        assert requests[0].headers["Prefer"] == 'outlook.body-content-type="text"'

    @pytest.mark.asyncio
    async def test_url_is_base_plus_path(self):
        client, requests = _recording_client(lambda r: httpx.Response(200, json={}))

        await client.get("/messages", [("$select", "Id"), ("$filter", None)])

        assert str(requests[0].url).startswith(f"{BASE_URL}/messages")
        assert requests[0].url.params["$select"] == "Id"
        assert "$filter" not in requests[0].url.params


class TestErrors:
    """Non-2xx handling."""

    @pytest.mark.asyncio
    async def test_http_error_fields(self):
        client, _ = _recording_client(lambda r: httpx.Response(403, text="forbidden"))

        with pytest.raises(HttpResponseError) as exc_info:
            await client.get("/messages")

        assert exc_info.value.status_code == 403
        assert exc_info.value.path == "/messages"
        assert exc_info.value.body == "forbidden"

    @pytest.mark.asyncio
    async def test_401_invalidates_used_token(self):
        """After a 401 the next request refreshes and uses the new token."""
        credential = MockCredential(token="expired", results=["renewed"])
        statuses = iter([401, 200])
        client, requests = _recording_client(
            lambda r: httpx.Response(next(statuses), json={}), credential
        )

        with pytest.raises(HttpResponseError):
            await client.get("/messages")
        await client.get("/messages")

        assert credential.refresh_calls == 1
        assert requests[0].headers["Authorization"] == "Bearer expired"
        assert requests[1].headers["Authorization"] == "Bearer renewed"

    @pytest.mark.asyncio
    async def test_other_errors_keep_token(self):
        credential = MockCredential(token="abc")
        client, _ = _recording_client(lambda r: httpx.Response(500), credential)

        with pytest.raises(HttpResponseError):
            await client.get("/messages")

        assert await client._token_cache.get_token() == "abc"
        assert credential.refresh_calls == 0


class TestExtractPath:
    """Next-link to logical path conversion."""

    def test_strips_base_url(self):
        client = build_client(httpx.MockTransport(lambda r: httpx.Response(200)), MockCredential())

        path = client.extract_path(f"{BASE_URL}/messages?$skip=100")

        assert path == "/messages?$skip=100"
        assert f"{client.base_url}{path}" == f"{BASE_URL}/messages?$skip=100"

    def test_query_only_suffix(self):
        client = build_client(httpx.MockTransport(lambda r: httpx.Response(200)), MockCredential())

        assert client.extract_path(f"{BASE_URL}?$skip=10") == "?$skip=10"

    @pytest.mark.parametrize(
        "url",
        [
            "https://other.test/api/v2.0/me/messages",
            f"{BASE_URL}messages",
            "/messages",
        ],
    )
    def test_rejects_foreign_url(self, url):
        client = build_client(httpx.MockTransport(lambda r: httpx.Response(200)), MockCredential())

        with pytest.raises(ValueError):
            client.extract_path(url)


class TestPost:
    """POST requests."""

    @pytest.mark.asyncio
    async def test_payload_uses_wire_names(self):
        client, requests = _recording_client(lambda r: httpx.Response(202))
        message = Message(
            subject="Hello",
            to_recipients=[Recipient(email_address=EmailAddress(address="a@b.test"))],
        )

        result = await client.post("/messages", message)

        assert result is None
        assert requests[0].method == "POST"
        body = json.loads(requests[0].content)
        assert body["Subject"] == "Hello"
        assert body["ToRecipients"][0]["EmailAddress"]["Address"] == "a@b.test"
        assert "Id" not in body

    @pytest.mark.asyncio
    async def test_post_decodes_response_type(self):
        client, _ = _recording_client(
            lambda r: httpx.Response(201, json={"Id": "new", "Subject": "Draft"})
        )

        created = await client.post("/messages", {"Subject": "Draft"}, response_type=Message)

        assert created.id == "new"


class TestClose:
    """Lifecycle."""

    @pytest.mark.asyncio
    async def test_closed_client_makes_no_request(self):
        credential = MockCredential(token="abc")
        client, requests = _recording_client(lambda r: httpx.Response(200, json={}), credential)

        async with client:
            pass

        with pytest.raises(ClosedError):
            await client.get("/messages")
        assert requests == []
        assert credential.closed is True
