"""Shared access-token cache with coalesced refresh.

TokenCache serves a bearer token to any number of concurrent requests while
keeping at most one refresh in flight:

- IDLE_VALID: a usable token is cached and served immediately
- REFRESHING: a refresh task is running; new callers await that same task
- IDLE_INVALID: no usable token; the next caller starts exactly one refresh
- CLOSED: close() was called; every request fails with ClosedError

A failed refresh fails all of its current waiters and leaves the cache in
IDLE_INVALID, so the next token request triggers one new refresh attempt.
State transitions happen without an intervening await, so concurrent callers
never observe a half-updated cache.
"""

import asyncio
import logging
import time
from enum import Enum

from .credentials import CredentialStore
from .errors import ClosedError, CredentialError
from .metrics import token_refreshes_total
from .timing import timed_operation

__all__ = ["TokenCache", "TokenState"]

logger = logging.getLogger("office365.token_cache")


class TokenState(str, Enum):
    """Observable state of a TokenCache."""

    IDLE_VALID = "idle_valid"
    REFRESHING = "refreshing"
    IDLE_INVALID = "idle_invalid"
    CLOSED = "closed"


def _consume_exception(task: asyncio.Task) -> None:
    # Waiters may all have been cancelled; mark the exception as retrieved
    if not task.cancelled():
        task.exception()


class TokenCache:
    """Serves a current access token and coalesces concurrent refreshes.

    Attributes:
        refresh_backoff_seconds: Minimum time between a failed refresh and the
            next attempt. 0 retries on the very next request.

    Example:
        >>> cache = TokenCache(RefreshTokenCredential(client_id, refresh_token))
        >>> token = await cache.get_token()
        >>> await cache.close()
    """

    def __init__(
        self,
        credential: CredentialStore,
        refresh_backoff_seconds: float = 0.0,
    ) -> None:
        self._credential = credential
        self.refresh_backoff_seconds = refresh_backoff_seconds

        self._token: str | None = (
            credential.access_token if credential.has_valid_token() else None
        )
        self._refresh_task: asyncio.Task | None = None
        self._last_failure_at: float | None = None
        self._closed = False
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "TokenCache":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    @property
    def state(self) -> TokenState:
        if self._closed:
            return TokenState.CLOSED
        if self._refresh_task is not None:
            return TokenState.REFRESHING
        if self._token is not None and self._credential.has_valid_token():
            return TokenState.IDLE_VALID
        return TokenState.IDLE_INVALID

    async def get_token(self) -> str:
        """Return a usable access token, refreshing if needed.

        Suspends while a refresh is in flight. Cancelling the caller does not
        cancel the shared refresh.

        Raises:
            CredentialError: If the refresh this caller waited on failed
            ClosedError: If the cache has been closed
        """
        async with self._lock:
            if self._closed:
                raise ClosedError("Token cache is closed")

            if self._refresh_task is None:
                if self._token is not None and self._credential.has_valid_token():
                    return self._token

                logger.debug("token_refresh_scheduled")
                self._refresh_task = asyncio.create_task(self._refresh())
                self._refresh_task.add_done_callback(_consume_exception)

            task = self._refresh_task

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # close() can cancel the task before _refresh gets to run
            if self._closed and task.cancelled():
                raise ClosedError("Token cache closed during refresh") from None
            raise

    def invalidate(self, token: str) -> None:
        """Mark token as unusable (e.g. after a 401) so the next request refreshes.

        Ignored when token is no longer the cached one, so a late 401 for an
        old token never discards a fresher token.
        """
        if self._token is not None and self._token == token:
            logger.info("access_token_invalidated")
            self._token = None

    async def close(self) -> None:
        """Close the cache and release the credential store's resources.

        An in-flight refresh is cancelled; its waiters receive ClosedError.
        Idempotent.
        """
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            self._token = None
            task = self._refresh_task

        if task is not None and not task.done():
            task.cancel()
            # Outcome belongs to the waiters; cancelling close() still propagates
            await asyncio.wait({task})
        self._refresh_task = None

        await self._credential.close()
        logger.debug("token_cache_closed")

    async def _refresh(self) -> str:
        try:
            await self._wait_for_backoff()
            with timed_operation("token_refresh", logger, level=logging.INFO):
                token = await self._credential.refresh()
        except asyncio.CancelledError:
            self._refresh_task = None
            if self._closed:
                raise ClosedError("Token cache closed during refresh") from None
            raise
        except Exception as e:
            self._token = None
            self._refresh_task = None
            self._last_failure_at = time.monotonic()
            token_refreshes_total.labels(status="failed").inc()
            if isinstance(e, CredentialError):
                raise
            raise CredentialError(f"Token refresh failed: {e}", cause=e) from e

        self._token = token
        self._refresh_task = None
        self._last_failure_at = None
        token_refreshes_total.labels(status="success").inc()
        return token

    async def _wait_for_backoff(self) -> None:
        if self.refresh_backoff_seconds <= 0 or self._last_failure_at is None:
            return
        remaining = self._last_failure_at + self.refresh_backoff_seconds - time.monotonic()
        if remaining > 0:
            logger.info(
                "token_refresh_backoff",
                extra={"wait_seconds": round(remaining, 2)},
            )
            await asyncio.sleep(remaining)
