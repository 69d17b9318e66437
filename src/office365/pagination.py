"""Demand-driven pagination over OData collection endpoints.

ItemSequence flattens every page of a collection into one ordered async
iterator. Pages are fetched strictly one at a time and only on demand:

1. The first pull fetches page 0 (caller params plus $top and $skip=0)
2. Pulls are served from the current page buffer, in envelope order
3. When the buffer is drained and the page carried @odata.nextLink, the next
   pull turns that link into a request path and fetches the next page
4. A page without @odata.nextLink ends the sequence

Nothing runs in the background. If the consumer stops pulling, no further
request is made; if a fetch fails or is cancelled, the error propagates to
the consumer and the sequence ends without fetching anything else.
"""

import logging
from typing import Any, Generic, TypeVar

from .client import AuthenticatedClient
from .config import DEFAULT_PAGE_SIZE
from .metrics import pages_fetched_total
from .models import Page, RequestDescriptor

__all__ = ["ItemSequence", "paginate"]

logger = logging.getLogger("office365.pagination")

I = TypeVar("I")


class ItemSequence(Generic[I]):
    """Lazy, ordered, non-restartable sequence of items across pages.

    Internal state is private to one consumption: the current page buffer and
    read position, the pending next link, and whether the first page has been
    requested. Iterating twice continues where the first iteration stopped.

    Attributes:
        pages_fetched: Number of pages fetched so far

    Example:
        >>> async for message in paginate(client, "/messages", item_type=Message):
        ...     print(message.subject)
    """

    def __init__(
        self,
        client: AuthenticatedClient,
        first_request: RequestDescriptor,
        item_type: Any = dict[str, Any],
        max_pages: int | None = None,
    ) -> None:
        """Initialize the sequence. No request is made until the first pull.

        Args:
            client: Authenticated request layer used for each page fetch
            first_request: Request for page 0
            item_type: Type each item in the page's value array decodes into
            max_pages: Optional safety limit on the number of pages fetched
        """
        self._client = client
        self._first_request = first_request
        self._page_type = Page[item_type]
        self._max_pages = max_pages

        self._buffer: list[I] = []
        self._position = 0
        self._started = False
        self._next_link: str | None = None
        self.pages_fetched = 0

    def __aiter__(self) -> "ItemSequence[I]":
        return self

    async def __anext__(self) -> I:
        while self._position >= len(self._buffer):
            request = self._next_request()
            if request is None:
                raise StopAsyncIteration
            await self._fetch(request)

        item = self._buffer[self._position]
        self._position += 1
        return item

    @property
    def exhausted(self) -> bool:
        """True once every fetched item was delivered and no page remains."""
        return (
            self._started
            and self._next_link is None
            and self._position >= len(self._buffer)
        )

    async def aclose(self) -> None:
        """Abandon the sequence. Later pulls end immediately."""
        self._started = True
        self._next_link = None
        self._buffer = []
        self._position = 0

    def _next_request(self) -> RequestDescriptor | None:
        if not self._started:
            self._started = True
            return self._first_request

        if self._next_link is None:
            return None

        if self._max_pages is not None and self.pages_fetched >= self._max_pages:
            logger.warning(
                "pagination_max_pages_reached",
                extra={"max_pages": self._max_pages, "path": self._first_request.path},
            )
            self._next_link = None
            return None

        # Consumed before the fetch: a failed or cancelled fetch ends the sequence
        link, self._next_link = self._next_link, None
        return RequestDescriptor.build("GET", self._client.extract_path(link))

    async def _fetch(self, request: RequestDescriptor) -> None:
        page = await self._client.execute(request, self._page_type)

        self.pages_fetched += 1
        pages_fetched_total.inc()
        self._buffer = page.value
        self._position = 0
        self._next_link = page.next_link

        logger.debug(
            "page_fetched",
            extra={
                "path": request.path,
                "page": self.pages_fetched,
                "items": len(page.value),
                "has_next": page.next_link is not None,
            },
        )


def paginate(
    client: AuthenticatedClient,
    path: str,
    params: list[tuple[str, str | None]] | None = None,
    item_type: Any = dict[str, Any],
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int | None = None,
) -> ItemSequence:
    """Build a lazy ItemSequence over the collection at path.

    The first page is requested with params plus $top=page_size and $skip=0.
    Later pages follow the server-supplied next link, not an incrementing skip.

    Args:
        client: Authenticated request layer
        path: Collection path relative to the base URL (e.g. /messages)
        params: Query parameters from the query builder ($select, $filter, ...)
        item_type: Type each item decodes into
        page_size: Items per page ($top)
        max_pages: Optional safety limit on pages fetched

    Returns:
        ItemSequence that fetches nothing until first iterated
    """
    first_request = RequestDescriptor.build(
        "GET",
        path,
        [*(params or []), ("$top", str(page_size)), ("$skip", "0")],
    )
    return ItemSequence(client, first_request, item_type=item_type, max_pages=max_pages)
