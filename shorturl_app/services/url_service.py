import asyncio
import logging
import re
from typing import Any

from shorturl_app.exceptions import MalformedIdentifier, NotFound, StoreError
from shorturl_app.schemas.url import LinkRecord
from shorturl_app.services.sequence_allocator import SequenceAllocator
from shorturl_app.services.url_validator import URLValidator
from shorturl_app.storage.strategies import LinkStore

logger = logging.getLogger(__name__)

CREATE_FAILED_MESSAGE = "Failed to create short URL due to a database error."
RESOLVE_FAILED_MESSAGE = "Failed to retrieve URL due to a database error."

_SHORT_URL_PATTERN = re.compile(r"[0-9]+")
# Largest value a 64-bit INTEGER column can hold
MAX_SHORT_URL = 2**63 - 1


class URLService:
    """
    URL Service with dependency injection for the store and the validator.

    - Store and validator are injected (not created internally)
    - Easy to test (inject an in-memory store and a fake resolver)

    Store calls are blocking, so each one runs in a worker thread
    (asyncio.to_thread); the event loop stays free for other requests.
    """

    def __init__(
        self,
        store: LinkStore,
        validator: URLValidator,
        allocator: SequenceAllocator = None,
    ):
        """
        Initialize URL service with dependencies.

        Args:
            store: Link store (persistence of links and of the counter)
            validator: URL validator
            allocator: Sequence allocator (defaults to the "urlid" counter of store)
        """
        self.store = store
        self.validator = validator
        self.allocator = allocator or SequenceAllocator(store)

    async def create_short_url(self, candidate: Any) -> LinkRecord:
        """Shorten a URL, reusing the existing short URL when there is one.

        Process:
        1. Validate (shape + hostname lookup)
        2. Return the existing record if this exact URL is already stored
        3. Allocate the next short URL (atomic in the store)
        4. Persist the mapping

        Raises:
            InvalidURL: validation failed
            StoreError: persistence failed (client_message set for this operation)
        """
        normalized = await self.validator.validate(candidate)
        original_url = normalized.original

        try:
            existing = await asyncio.to_thread(self.store.find_by_url, original_url)
            if existing:
                return existing

            short_url = await asyncio.to_thread(self.allocator.next)
            record = await asyncio.to_thread(self.store.insert, original_url, short_url)
        except StoreError as e:
            logger.exception("Store failure while shortening %s", original_url)
            raise StoreError(str(e), client_message=CREATE_FAILED_MESSAGE) from e

        logger.info("Stored %s as short_url=%s", record.original_url, record.short_url)
        return record

    async def resolve_short_url(self, short_url: str) -> str:
        """Look up the original URL for a short URL path parameter.

        Returns:
            The original URL to redirect to

        Raises:
            MalformedIdentifier: short_url is not a base-10 integer string
            NotFound: nothing stored under short_url
            StoreError: persistence failed
        """
        if not isinstance(short_url, str) or not _SHORT_URL_PATTERN.fullmatch(short_url):
            raise MalformedIdentifier(f"Not a number: {short_url!r}")

        value = int(short_url)
        if value > MAX_SHORT_URL:
            raise NotFound(f"short_url out of range: {short_url}")

        try:
            record = await asyncio.to_thread(self.store.find_by_short_id, value)
        except StoreError as e:
            logger.exception("Store failure while resolving short_url=%s", short_url)
            raise StoreError(str(e), client_message=RESOLVE_FAILED_MESSAGE) from e

        if record is None:
            raise NotFound(f"No link for short_url={short_url}")

        return record.original_url
