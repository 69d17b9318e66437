"""Credential stores that hold and refresh OAuth2 access tokens.

A credential store owns the raw token material and knows how to mint a new
access token. It does no coordination of its own: TokenCache guarantees that
refresh() is never called concurrently.
"""

import logging
import time
from abc import ABC, abstractmethod

import httpx

from .config import DEFAULT_TOKEN_URL, Office365Config
from .errors import CredentialError

__all__ = [
    "CredentialStore",
    "RefreshTokenCredential",
    "StaticTokenCredential",
]

logger = logging.getLogger("office365.credentials")


class CredentialStore(ABC):
    """Interface for token holders used by TokenCache."""

    @property
    @abstractmethod
    def access_token(self) -> str | None:
        """The last known access token, if any."""

    @abstractmethod
    def has_valid_token(self) -> bool:
        """True when access_token is present and still usable."""

    @abstractmethod
    async def refresh(self) -> str:
        """Obtain a new access token.

        Returns:
            The new access token

        Raises:
            CredentialError: If a token cannot be obtained
        """

    async def close(self) -> None:
        """Release resources held by the store (HTTP clients, schedulers)."""
        return None


class StaticTokenCredential(CredentialStore):
    """A fixed, caller-supplied access token that cannot be refreshed.

    Useful for scripts and tests that already hold a token.
    """

    def __init__(self, access_token: str) -> None:
        self._access_token = access_token

    @property
    def access_token(self) -> str | None:
        return self._access_token or None

    def has_valid_token(self) -> bool:
        return bool(self._access_token)

    async def refresh(self) -> str:
        raise CredentialError("Static access token cannot be refreshed")


class RefreshTokenCredential(CredentialStore):
    """OAuth2 refresh-token grant against the Microsoft identity platform.

    Tracks token expiry from the token endpoint's expires_in, treating the
    token as expired expiry_skew_seconds early. A rotated refresh token in
    the response replaces the stored one.

    Example:
        >>> credential = RefreshTokenCredential(
        ...     client_id="00000000-0000-0000-0000-000000000000",
        ...     refresh_token="M.R3_BAY...",
        ... )
        >>> token = await credential.refresh()
    """

    DEFAULT_SCOPES = "offline_access https://outlook.office.com/Mail.Read"

    def __init__(
        self,
        client_id: str,
        refresh_token: str,
        token_url: str = DEFAULT_TOKEN_URL,
        client_secret: str | None = None,
        scopes: str = DEFAULT_SCOPES,
        access_token: str | None = None,
        expires_in: float | None = None,
        expiry_skew_seconds: float = 60.0,
        timeout: httpx.Timeout | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the credential.

        Args:
            client_id: OAuth2 application (client) ID
            refresh_token: Refresh token used to mint access tokens
            token_url: OAuth2 token endpoint
            client_secret: Client secret for confidential clients
            scopes: Space-separated scopes requested on refresh
            access_token: Optional access token already held by the caller
            expires_in: Seconds until access_token expires (None = unknown, assume usable)
            expiry_skew_seconds: Refresh this long before the real expiry
            timeout: Timeout for the owned httpx client (ignored with http_client)
            http_client: Optional httpx client; created (and owned) when omitted
        """
        if not client_id:
            raise ValueError("client_id is required")
        if not refresh_token:
            raise ValueError("refresh_token is required")

        self.client_id = client_id
        self.token_url = token_url
        self.scopes = scopes
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._access_token = access_token
        self._skew = expiry_skew_seconds
        self._expires_at: float | None = (
            time.monotonic() + expires_in if access_token and expires_in is not None else None
        )

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout or httpx.Timeout(connect=5.0, read=15.0, write=5.0, pool=5.0),
        )

    @classmethod
    def from_config(
        cls,
        config: Office365Config,
        access_token: str | None = None,
    ) -> "RefreshTokenCredential":
        """Build a credential from Office365Config OAuth2 fields."""
        secret = config.client_secret.get_secret_value()
        return cls(
            client_id=config.client_id,
            refresh_token=config.refresh_token.get_secret_value(),
            token_url=config.token_url,
            client_secret=secret or None,
            scopes=config.scopes,
            access_token=access_token,
            expiry_skew_seconds=config.token_expiry_skew_seconds,
            timeout=httpx.Timeout(
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.write_timeout,
                pool=config.pool_timeout,
            ),
        )

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def has_valid_token(self) -> bool:
        if not self._access_token:
            return False
        if self._expires_at is None:
            return True
        return time.monotonic() < self._expires_at - self._skew

    async def refresh(self) -> str:
        """Exchange the refresh token for a new access token.

        Raises:
            CredentialError: On timeout, network error, non-2xx response or a
                body that is not a JSON object carrying an access_token
        """
        data = {
            "grant_type": "refresh_token",
            "client_id": self.client_id,
            "refresh_token": self._refresh_token,
            "scope": self.scopes,
        }
        if self._client_secret:
            data["client_secret"] = self._client_secret

        try:
            response = await self._client.post(
                self.token_url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise CredentialError("Token endpoint timed out", cause=e) from e
        except httpx.HTTPError as e:
            raise CredentialError(f"Token endpoint unreachable: {e}", cause=e) from e

        if response.status_code >= 400:
            raise CredentialError(
                f"Token endpoint returned {response.status_code}: "
                f"{self._error_description(response)}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise CredentialError("Token endpoint returned invalid JSON", cause=e) from e
        if not isinstance(body, dict):
            raise CredentialError("Token endpoint response is not a JSON object")

        access_token = body.get("access_token")
        if not access_token:
            raise CredentialError("Token endpoint response has no access_token")

        self._access_token = access_token
        expires_in = body.get("expires_in")
        self._expires_at = (
            time.monotonic() + float(expires_in) if expires_in is not None else None
        )

        # Microsoft rotates refresh tokens; keep the newest one
        rotated = body.get("refresh_token")
        if rotated:
            self._refresh_token = rotated

        logger.info(
            "access_token_refreshed",
            extra={"expires_in": expires_in, "rotated": bool(rotated)},
        )
        return access_token

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _error_description(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            return body.get("error_description") or body.get("error") or response.text[:200]
        return response.text[:200]
