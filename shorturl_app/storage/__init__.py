"""
Link store module.

Implements the Strategy Pattern for pluggable persistence of links and of
the short URL sequence counter.
"""

from .strategies import InMemoryLinkStore, LinkStore, RedisLinkStore, SQLLinkStore
from .factory import LinkStoreBackend, LinkStoreFactory

__all__ = [
    "LinkStore",
    "SQLLinkStore",
    "RedisLinkStore",
    "InMemoryLinkStore",
    "LinkStoreFactory",
    "LinkStoreBackend",
]
