"""Exception hierarchy for the Office 365 client.

Every error raised by the library derives from Office365Error so callers can
catch the whole family at once. Errors are local to the request (or page) that
produced them; nothing here is retried automatically.
"""

__all__ = [
    "ClosedError",
    "CredentialError",
    "DecodeError",
    "HttpResponseError",
    "Office365Error",
    "TransportError",
]


class Office365Error(Exception):
    """Base class for all Office 365 client errors."""

    pass


class CredentialError(Office365Error):
    """Raised when an access token could not be obtained or refreshed.

    Every caller waiting on the failed refresh receives this error. The next
    token request starts a fresh refresh attempt.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class HttpResponseError(Office365Error):
    """Raised when the API answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code of the response
        path: Logical request path (relative to the base URL)
        body: Raw response body text
    """

    def __init__(self, status_code: int, path: str, body: str = ""):
        self.status_code = status_code
        self.path = path
        self.body = body
        super().__init__(f"HTTP {status_code} for {path}: {body[:200]}")


class DecodeError(Office365Error):
    """Raised when a response body does not match the expected shape."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Failed to decode response for {path}: {message}")


class TransportError(Office365Error):
    """Raised when the HTTP call itself fails (timeout, connection reset, DNS)."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Transport failure for {path}: {message}")


class ClosedError(Office365Error):
    """Raised when the client is used after close()."""

    def __init__(self, message: str = "Client is closed"):
        super().__init__(message)
