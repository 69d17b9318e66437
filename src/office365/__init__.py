"""Office 365 client - lazy paginated access to the Outlook REST API.

Provides:
- Shared access-token cache with coalesced refresh
- Authenticated request layer over httpx
- Demand-driven pagination across @odata.nextLink pages
- Item schemas, entity models and query parameter construction

Python Version: 3.10+ required
"""

# Logging configuration runs before other imports
from .logging_config import StructuredFormatter, configure_logging

configure_logging()

from .__version__ import __version__
from .api import ItemBox, Office365Api
from .client import AuthenticatedClient
from .config import Office365Config, get_config, reset_config
from .credentials import CredentialStore, RefreshTokenCredential, StaticTokenCredential
from .entities import (
    Calendar,
    Contact,
    ContactFolder,
    EmailAddress,
    Event,
    ItemBody,
    MailFolder,
    Message,
    Recipient,
)
from .errors import (
    ClosedError,
    CredentialError,
    DecodeError,
    HttpResponseError,
    Office365Error,
    TransportError,
)
from .models import BodyType, ExtendedProperty, Page, RequestDescriptor, WellKnownFolder
from .pagination import ItemSequence, paginate
from .schema import ItemSchema, SchemaRegistry, default_registry, query_params_for
from .timing import timed_operation
from .token_cache import TokenCache, TokenState
from .transport import HttpExecutor

__all__ = [
    "__version__",
    # API
    "Office365Api",
    "ItemBox",
    # Request layer
    "AuthenticatedClient",
    "HttpExecutor",
    # Credentials
    "CredentialStore",
    "RefreshTokenCredential",
    "StaticTokenCredential",
    "TokenCache",
    "TokenState",
    # Pagination
    "ItemSequence",
    "paginate",
    # Schemas
    "ItemSchema",
    "SchemaRegistry",
    "default_registry",
    "query_params_for",
    # Models
    "BodyType",
    "ExtendedProperty",
    "Page",
    "RequestDescriptor",
    "WellKnownFolder",
    "Calendar",
    "Contact",
    "ContactFolder",
    "EmailAddress",
    "Event",
    "ItemBody",
    "MailFolder",
    "Message",
    "Recipient",
    # Errors
    "Office365Error",
    "ClosedError",
    "CredentialError",
    "DecodeError",
    "HttpResponseError",
    "TransportError",
    # Configuration
    "Office365Config",
    "get_config",
    "reset_config",
    # Logging
    "configure_logging",
    "StructuredFormatter",
    "timed_operation",
]
