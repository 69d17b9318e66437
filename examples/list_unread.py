"""Basic Office365Api usage example.

Demonstrates:
- Building the API from OFFICE365_* configuration
- Context manager pattern for automatic cleanup
- Lazy pagination: only the pages you consume are fetched
- Single-item fetch with 404 as None

Requirements:
- OFFICE365_CLIENT_ID and OFFICE365_REFRESH_TOKEN environment variables set

Run:
    python3 examples/list_unread.py
"""

import asyncio
import logging
import os

from src.office365 import (
    CredentialError,
    HttpResponseError,
    Message,
    Office365Api,
    WellKnownFolder,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


async def newest_unread(limit: int = 10):
    """Print the newest unread inbox messages, stopping after limit items."""
    async with Office365Api.create() as api:
        inbox = api.from_well_known(WellKnownFolder.INBOX)
        messages = inbox.query(
            Message, filter="IsRead eq false", orderby="ReceivedDateTime desc"
        )

        count = 0
        async for message in messages:
            sender = message.sender.email_address.address if message.sender else "?"
            print(f"{message.received_date_time}  {sender:<30}  {message.subject}")
            count += 1
            if count >= limit:
                break

        logger.info(f"Fetched {messages.pages_fetched} page(s) for {count} message(s)")

        if count:
            missing = await api.get(Message, "does-not-exist")
            logger.info(f"Lookup of unknown id returned {missing!r}")


async def main():
    if not os.getenv("OFFICE365_CLIENT_ID") or not os.getenv("OFFICE365_REFRESH_TOKEN"):
        logger.error("OFFICE365_CLIENT_ID / OFFICE365_REFRESH_TOKEN not set in environment")
        return

    try:
        await newest_unread()
    except CredentialError as e:
        logger.error(f"Could not obtain an access token: {e}")
    except HttpResponseError as e:
        logger.error(f"Outlook API error {e.status_code} for {e.path}")


if __name__ == "__main__":
    asyncio.run(main())
