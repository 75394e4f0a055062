"""
Factory for creating link store instances.
Configuration comes from the Settings object handed in by the app factory.
"""

import logging
from enum import Enum

from shorturl_app.config import Settings
from shorturl_app.database.connection import Database
from .strategies import InMemoryLinkStore, LinkStore, RedisLinkStore, SQLLinkStore

logger = logging.getLogger(__name__)


class LinkStoreBackend(Enum):
    """Available link store backends"""
    SQL = "sql"
    REDIS = "redis"
    MEMORY = "memory"


class LinkStoreFactory:
    """
    Simple factory for creating link store instances.

    No singleton caching here: the app factory creates one store per
    application and keeps it on app.state, so tests can build as many
    isolated apps as they like.
    """

    @classmethod
    def create(cls, backend: LinkStoreBackend, settings: Settings) -> LinkStore:
        """
        Create a link store for the given backend.

        Nothing is connected yet; LinkStore.initialize() does that at startup.

        Args:
            backend: Type of store backend (from enum)
            settings: Application settings

        Returns:
            LinkStore instance
        """
        if backend == LinkStoreBackend.SQL:
            store = SQLLinkStore(Database(settings.database_url, echo=settings.debug))
        elif backend == LinkStoreBackend.REDIS:
            import redis

            redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            store = RedisLinkStore(redis_client)
        elif backend == LinkStoreBackend.MEMORY:
            store = InMemoryLinkStore()
        else:
            raise ValueError(f"Unknown store backend: {backend}")

        logger.info("Link store created (backend=%s)", backend.value)
        return store
