import logging

from shorturl_app.storage.strategies import LinkStore

logger = logging.getLogger(__name__)


class SequenceAllocator:
    """
    Issues short URLs from a single named counter.

    All ordering is delegated to the store's atomic increment-and-fetch.
    Concurrent callers never observe the same value.
    """

    def __init__(self, store: LinkStore, name: str = "urlid"):
        self.store = store
        self.name = name

    def next(self) -> int:
        """
        Allocate the next short URL.

        Raises:
            StoreError: if the store fails (counter left untouched)
        """
        seq = self.store.increment_and_fetch(self.name)
        logger.debug("Allocated %s=%s", self.name, seq)
        return seq
