"""Core data models for the Office 365 client.

Defines the request descriptor handed to the transport, the page envelope
returned by collection endpoints, and the small enums used across the API.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BodyType",
    "ExtendedProperty",
    "Page",
    "RequestDescriptor",
    "WellKnownFolder",
]

I = TypeVar("I")


class BodyType(str, Enum):
    """Preferred body format requested via the Prefer header.

    Note: Uses (str, Enum) so values format directly into header strings
    via .value.
    """

    HTML = "html"
    TEXT = "text"


class WellKnownFolder(str, Enum):
    """Mail folders addressable by well-known name instead of ID."""

    INBOX = "Inbox"
    DRAFTS = "Drafts"
    SENT_ITEMS = "SentItems"
    DELETED_ITEMS = "DeletedItems"
    JUNK_EMAIL = "JunkEmail"
    OUTBOX = "Outbox"
    ARCHIVE = "Archive"


@dataclass(frozen=True)
class ExtendedProperty:
    """Single-value extended property requested through $expand."""

    property_id: str


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one HTTP call.

    Attributes:
        method: HTTP method (GET or POST)
        path: Logical path relative to the base URL; may carry a query string
            when derived from a server-supplied next link
        params: Ordered query parameter pairs, duplicates and None values removed
        payload: Optional request body (pydantic model or JSON-compatible value)
    """

    method: str
    path: str
    params: tuple[tuple[str, str], ...] = ()
    payload: Any = field(default=None, compare=False)

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        params: list[tuple[str, str | None]] | None = None,
        payload: Any = None,
    ) -> "RequestDescriptor":
        """Build a descriptor, dropping None-valued and repeated parameter keys.

        The first occurrence of a key wins.
        """
        seen: set[str] = set()
        cleaned: list[tuple[str, str]] = []
        for key, value in params or []:
            if value is None or key in seen:
                continue
            seen.add(key)
            cleaned.append((key, value))
        return cls(method=method.upper(), path=path, params=tuple(cleaned), payload=payload)


class Page(BaseModel, Generic[I]):
    """One page of a remote collection (the OData envelope).

    A missing next_link means the collection is exhausted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: list[I]
    context: str | None = Field(default=None, alias="@odata.context")
    next_link: str | None = Field(default=None, alias="@odata.nextLink")
