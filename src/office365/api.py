"""High-level Outlook API: item boxes, single-item fetch and sendmail.

An ItemBox is a part of the API that contains items, for example:
- / (root)
- /mailfolders/Inbox
- /calendars/AAMkAGI2TG93AAA=

Office365Api is the root box plus the operations that do not belong to a
folder. Build it with Office365Api.create().
"""

import logging
from typing import Any

from .client import AuthenticatedClient
from .config import DEFAULT_PAGE_SIZE, Office365Config, get_config
from .credentials import CredentialStore, RefreshTokenCredential
from .entities import MailFolder, Message, SendMessage
from .errors import HttpResponseError
from .models import WellKnownFolder
from .pagination import ItemSequence, paginate
from .schema import SchemaRegistry, default_registry, query_params_for
from .token_cache import TokenCache
from .transport import HttpExecutor

__all__ = ["ItemBox", "Office365Api"]

logger = logging.getLogger("office365.api")


class ItemBox:
    """A container of items that supports querying.

    Attributes:
        folder: (folder_type, folder_id) for a folder box, None for the root
        page_size: $top used for every query from this box
    """

    def __init__(
        self,
        client: AuthenticatedClient,
        folder: tuple[Any, str] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        registry: SchemaRegistry | None = None,
    ) -> None:
        self._client = client
        self._registry = registry or default_registry
        self.folder = folder
        self.page_size = page_size

    def query(
        self,
        item_type: Any,
        filter: str | None = None,
        orderby: str | None = None,
        max_pages: int | None = None,
    ) -> ItemSequence:
        """Query items of item_type, optionally filtered and ordered.

        Args:
            item_type: Registered item type (e.g. Message)
            filter: OData $filter expression
            orderby: OData $orderby expression
            max_pages: Optional safety limit on pages fetched

        Returns:
            Lazy ItemSequence; nothing is fetched until it is iterated

        Raises:
            KeyError: If item_type is not registered
            ValueError: If this folder box cannot contain item_type
        """
        schema = self._registry.get(item_type)
        return paginate(
            self._client,
            self._path_for(schema),
            query_params_for(schema, filter, orderby),
            item_type=item_type,
            page_size=self.page_size,
            max_pages=max_pages,
        )

    def query_all(self, item_type: Any) -> ItemSequence:
        """Query all items of item_type."""
        return self.query(item_type)

    def _path_for(self, schema) -> str:
        if self.folder is None:
            return schema.path

        folder_type, folder_id = self.folder
        if schema.parent is not folder_type:
            raise ValueError(
                f"{getattr(schema.item_type, '__name__', schema.item_type)} items "
                f"cannot be queried from a {getattr(folder_type, '__name__', folder_type)} box"
            )
        return f"{self._registry.get(folder_type).path}/{folder_id}{schema.path}"


class Office365Api(ItemBox):
    """API client that takes care of paths, item schemas and pagination.

    Example:
        >>> async with Office365Api.create(credential) as api:
        ...     async for message in api.from_well_known(WellKnownFolder.INBOX).query(
        ...         Message, filter="IsRead eq false", orderby="ReceivedDateTime desc"
        ...     ):
        ...         print(message.subject)
    """

    def __init__(
        self,
        client: AuthenticatedClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        registry: SchemaRegistry | None = None,
    ) -> None:
        super().__init__(client, None, page_size, registry)

    @classmethod
    def create(
        cls,
        credential: CredentialStore | None = None,
        config: Office365Config | None = None,
    ) -> "Office365Api":
        """Wire the token cache, HTTP executor and request layer.

        Args:
            credential: Credential store; built from config OAuth2 fields when omitted
            config: Configuration; get_config() when omitted
        """
        config = config or get_config()
        if credential is None:
            credential = RefreshTokenCredential.from_config(config)

        token_cache = TokenCache(
            credential, refresh_backoff_seconds=config.refresh_backoff_seconds
        )
        client = AuthenticatedClient(
            HttpExecutor.from_config(config),
            token_cache,
            base_url=config.base_url,
            preferred_body_type=config.preferred_body_type,
        )
        return cls(client, page_size=config.page_size)

    async def __aenter__(self) -> "Office365Api":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get(self, item_type: Any, item_id: str) -> Any | None:
        """Get an item by ID.

        Returns:
            The decoded item, or None if the API answered 404

        Raises:
            HttpResponseError: For any non-2xx status other than 404
        """
        schema = self._registry.get(item_type)
        try:
            return await self._client.get(
                f"{schema.path}/{item_id}",
                query_params_for(schema),
                response_type=item_type,
            )
        except HttpResponseError as e:
            if e.status_code == 404:
                logger.info(
                    "item_not_found",
                    extra={"path": e.path, "item_type": getattr(item_type, "__name__", str(item_type))},
                )
                return None
            raise

    def from_folder(self, folder_type: Any, folder_id: str) -> ItemBox:
        """Return an ItemBox for a specific folder."""
        self._registry.get(folder_type)
        return ItemBox(
            self._client,
            (folder_type, folder_id),
            page_size=self.page_size,
            registry=self._registry,
        )

    def from_well_known(self, folder: WellKnownFolder) -> ItemBox:
        """Return an ItemBox for a mail folder with a well-known name."""
        return self.from_folder(MailFolder, folder.value)

    async def sendmail(self, message: Message, save_to_sent_items: bool = True) -> None:
        """Send a message. The API acknowledges with an empty 202."""
        await self._client.post(
            "/sendmail",
            SendMessage(message=message, save_to_sent_items=save_to_sent_items),
        )
        logger.info("message_sent", extra={"save_to_sent_items": save_to_sent_items})

    async def close(self) -> None:
        """Release the token cache, credential store and HTTP connections."""
        await self._client.close()
