"""HTTP request executor built on httpx.

Performs one HTTP call for a RequestDescriptor and decodes the JSON body into
the requested type with a pydantic TypeAdapter. Knows nothing about tokens:
headers arrive fully formed from AuthenticatedClient.
"""

import logging
import time
from functools import lru_cache
from typing import Any

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import Office365Config
from .errors import ClosedError, DecodeError, HttpResponseError, TransportError
from .metrics import request_duration_seconds, requests_total
from .models import RequestDescriptor

__all__ = ["HttpExecutor"]

logger = logging.getLogger("office365.transport")


@lru_cache(maxsize=128)
def _type_adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _encode_payload(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    return payload


class HttpExecutor:
    """Executes requests over a long-lived httpx.AsyncClient.

    Uses connection pooling and granular timeouts. Transport-level timeouts
    are the only timeouts in the system.

    Example:
        >>> executor = HttpExecutor.from_config(get_config())
        >>> page = await executor.execute(
        ...     RequestDescriptor.build("GET", "/messages"),
        ...     "https://outlook.office.com/api/v2.0/me/messages",
        ...     {"Authorization": "Bearer ..."},
        ...     Page[dict[str, Any]],
        ... )
    """

    def __init__(
        self,
        timeout: httpx.Timeout | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            timeout: httpx timeout configuration for the owned client
            http_client: Optional pre-built client (e.g. with a MockTransport);
                the executor still closes it on close()
        """
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout
            or httpx.Timeout(connect=5.0, read=30.0, write=5.0, pool=5.0),
            limits=httpx.Limits(
                max_keepalive_connections=20,
                max_connections=100,
                keepalive_expiry=10.0,
            ),
        )
        self._closed = False

    @classmethod
    def from_config(cls, config: Office365Config) -> "HttpExecutor":
        return cls(
            timeout=httpx.Timeout(
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.write_timeout,
                pool=config.pool_timeout,
            )
        )

    async def execute(
        self,
        request: RequestDescriptor,
        url: str,
        headers: dict[str, str],
        response_type: Any,
    ) -> Any:
        """Perform the HTTP call and decode the response.

        Args:
            request: Descriptor carrying method, logical path, params and payload
            url: Absolute URL (base URL + request.path)
            headers: Complete request headers
            response_type: Type to decode the JSON body into, or None for a
                body-less acknowledgement

        Returns:
            Decoded response_type instance, or None when response_type is None

        Raises:
            ClosedError: If the executor has been closed
            TransportError: On timeouts and network failures
            HttpResponseError: On non-2xx responses
            DecodeError: If the body is not JSON or does not match response_type
        """
        if self._closed:
            raise ClosedError("HTTP executor is closed")

        json_body = (
            _encode_payload(request.payload) if request.payload is not None else None
        )

        start = time.perf_counter()
        try:
            response = await self._client.request(
                request.method,
                url,
                params=list(request.params) or None,
                headers=headers,
                json=json_body,
            )
        except httpx.TimeoutException as e:
            requests_total.labels(method=request.method, status="error").inc()
            logger.error(
                "request_timeout",
                extra={"method": request.method, "path": request.path, "error": str(e)},
            )
            raise TransportError(request.path, f"timeout: {e}") from e
        except httpx.HTTPError as e:
            requests_total.labels(method=request.method, status="error").inc()
            logger.error(
                "request_error",
                extra={"method": request.method, "path": request.path, "error": str(e)},
            )
            raise TransportError(request.path, str(e)) from e
        finally:
            request_duration_seconds.labels(method=request.method).observe(
                time.perf_counter() - start
            )

        requests_total.labels(
            method=request.method, status=str(response.status_code)
        ).inc()

        if not response.is_success:
            logger.warning(
                "request_failed",
                extra={
                    "method": request.method,
                    "path": request.path,
                    "status_code": response.status_code,
                },
            )
            raise HttpResponseError(response.status_code, request.path, response.text)

        if response_type is None:
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(request.path, f"invalid JSON: {e}") from e

        try:
            return _type_adapter(response_type).validate_python(data)
        except ValidationError as e:
            raise DecodeError(request.path, str(e)) from e

    async def close(self) -> None:
        """Close the httpx client and release connections."""
        if self._closed:
            return
        self._closed = True
        await self._client.aclose()
