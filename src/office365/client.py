"""Authenticated request layer.

Attaches the current bearer token and the fixed Outlook headers to every
request, then hands it to the HttpExecutor. Exactly one HTTP call is made per
invocation; a 401 invalidates the token that was used so the next request
refreshes it.
"""

import logging
from typing import Any

from .config import DEFAULT_BASE_URL
from .errors import HttpResponseError
from .models import BodyType, RequestDescriptor
from .token_cache import TokenCache
from .transport import HttpExecutor

__all__ = ["AuthenticatedClient"]

logger = logging.getLogger("office365.client")


class AuthenticatedClient:
    """Performs API requests with a valid OAuth access token.

    Attributes:
        base_url: API prefix, e.g. https://outlook.office.com/api/v2.0/me
        preferred_body_type: Body format sent in the Prefer header
    """

    def __init__(
        self,
        executor: HttpExecutor,
        token_cache: TokenCache,
        base_url: str = DEFAULT_BASE_URL,
        preferred_body_type: BodyType = BodyType.HTML,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.preferred_body_type = preferred_body_type
        self._executor = executor
        self._token_cache = token_cache

    async def __aenter__(self) -> "AuthenticatedClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get(
        self,
        path: str,
        params: list[tuple[str, str | None]] | None = None,
        response_type: Any = dict[str, Any],
    ) -> Any:
        """GET path and decode the body into response_type."""
        return await self.execute(
            RequestDescriptor.build("GET", path, params), response_type
        )

    async def post(
        self,
        path: str,
        payload: Any,
        response_type: Any = None,
    ) -> Any:
        """POST payload to path; response_type None means no body is expected."""
        return await self.execute(
            RequestDescriptor.build("POST", path, payload=payload), response_type
        )

    async def execute(self, request: RequestDescriptor, response_type: Any) -> Any:
        """Execute a prepared request with authentication headers.

        Raises:
            CredentialError: If no token could be obtained
            ClosedError: If the client has been closed
            HttpResponseError: On non-2xx responses
            DecodeError: If the body does not match response_type
            TransportError: On network failures and timeouts
        """
        token = await self._token_cache.get_token()
        try:
            return await self._executor.execute(
                request,
                f"{self.base_url}{request.path}",
                self._headers(token),
                response_type,
            )
        except HttpResponseError as e:
            if e.status_code == 401:
                self._token_cache.invalidate(token)
            raise

    def extract_path(self, full_url: str) -> str:
        """Strip base_url from an absolute URL, returning the relative path.

        Example:
            >>> client.base_url
            'https://host/v2/me'
            >>> client.extract_path("https://host/v2/me/messages?$skip=100")
            '/messages?$skip=100'

        Raises:
            ValueError: If full_url is not under base_url
        """
        if not full_url.startswith(self.base_url):
            raise ValueError(
                f"URL {full_url!r} does not start with base URL {self.base_url!r}"
            )
        path = full_url[len(self.base_url):]
        if path and path[0] not in "/?":
            raise ValueError(
                f"URL {full_url!r} does not start with base URL {self.base_url!r}"
            )
        return path

    async def close(self) -> None:
        """Release the token cache, credential store and HTTP connections."""
        try:
            await self._token_cache.close()
        finally:
            await self._executor.close()

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Prefer": f'outlook.body-content-type="{self.preferred_body_type.value}"',
        }
