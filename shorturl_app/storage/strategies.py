"""
Link store strategies using Strategy Pattern.

Allows switching between persistence backends:
- SQL (SQLAlchemy): SQLite for development, PostgreSQL in production (no other dialects)
- Redis: INCR counter plus two hashes
- Memory: tests and throwaway instances

Every backend exposes the same two guarantees:
- increment_and_fetch is a single atomic operation of the backend
- original_url is unique, so a losing concurrent insert returns the winner
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shorturl_app.database.connection import Database
from shorturl_app.exceptions import StartupError, StoreError
from shorturl_app.models.link import Counter, Link
from shorturl_app.schemas.url import LinkRecord

logger = logging.getLogger(__name__)


class LinkStore(ABC):
    """
    Abstract base class for link stores.

    Methods are synchronous (blocking I/O); the service layer runs them in a
    worker thread so the event loop keeps serving other requests.
    """

    @abstractmethod
    def initialize(self, counter_name: str) -> None:
        """
        Verify connectivity, create the schema and seed the counter at 0.

        Raises:
            StartupError: if the backend is unreachable or cannot be prepared
        """
        pass

    @abstractmethod
    def find_by_url(self, original_url: str) -> Optional[LinkRecord]:
        """Exact string match on the original URL."""
        pass

    @abstractmethod
    def find_by_short_id(self, short_url: int) -> Optional[LinkRecord]:
        pass

    @abstractmethod
    def insert(self, original_url: str, short_url: int) -> LinkRecord:
        """
        Persist a new mapping.

        If original_url is already stored (lost a race with a concurrent
        request) the existing record is returned instead.

        Raises:
            StoreError: on any persistence failure
        """
        pass

    @abstractmethod
    def increment_and_fetch(self, name: str) -> int:
        """
        Atomically add 1 to the named counter and return the new value.

        Creates the counter when missing, so the first call returns 1.

        Raises:
            StoreError: on any persistence failure (counter left untouched)
        """
        pass

    def close(self) -> None:
        """Release connections (no-op by default)."""


class SQLLinkStore(LinkStore):
    """
    SQLAlchemy implementation.

    One short session per operation; sessions are never shared between
    requests or threads.
    """

    SUPPORTED_DIALECTS = ("sqlite", "postgresql")

    def __init__(self, database: Database):
        self.database = database

    def initialize(self, counter_name: str) -> None:
        if self.database.dialect not in self.SUPPORTED_DIALECTS:
            raise StartupError(
                f"Unsupported database dialect '{self.database.dialect}' "
                f"(supported: {', '.join(self.SUPPORTED_DIALECTS)})"
            )
        try:
            with self.database.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            self.database.create_all()
            with self.database.session() as db:
                if db.get(Counter, counter_name) is None:
                    db.add(Counter(name=counter_name, seq=0))
                    db.commit()
                    logger.info("Counter '%s' initialized at 0", counter_name)
        except IntegrityError:
            # Another process seeded it between our read and write
            logger.info("Counter '%s' already initialized", counter_name)
        except SQLAlchemyError as e:
            raise StartupError(f"Could not initialize database: {e}") from e

    def find_by_url(self, original_url: str) -> Optional[LinkRecord]:
        try:
            with self.database.session() as db:
                link = db.scalars(
                    select(Link).where(Link.original_url == original_url)
                ).first()
                return LinkRecord.model_validate(link) if link else None
        except SQLAlchemyError as e:
            raise StoreError(f"find_by_url failed: {e}") from e

    def find_by_short_id(self, short_url: int) -> Optional[LinkRecord]:
        try:
            with self.database.session() as db:
                link = db.scalars(
                    select(Link).where(Link.short_url == short_url)
                ).first()
                return LinkRecord.model_validate(link) if link else None
        except SQLAlchemyError as e:
            raise StoreError(f"find_by_short_id failed: {e}") from e

    def insert(self, original_url: str, short_url: int) -> LinkRecord:
        try:
            with self.database.session() as db:
                link = Link(original_url=original_url, short_url=short_url)
                db.add(link)
                db.commit()
                return LinkRecord(original_url=original_url, short_url=short_url)
        except IntegrityError as e:
            existing = self.find_by_url(original_url)
            if existing is None:
                # Violation on short_url, not original_url: a real failure
                raise StoreError(f"insert failed: {e}") from e
            logger.warning(
                "Concurrent insert for %s; keeping short_url=%s, discarding %s",
                original_url, existing.short_url, short_url,
            )
            return existing
        except SQLAlchemyError as e:
            raise StoreError(f"insert failed: {e}") from e

    def increment_and_fetch(self, name: str) -> int:
        try:
            with self.database.session() as db:
                seq = self._upsert_increment(db, name)
                db.commit()
                return seq
        except SQLAlchemyError as e:
            raise StoreError(f"increment_and_fetch failed: {e}") from e

    def _upsert_increment(self, db, name: str) -> int:
        if self.database.dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert

        # INSERT ... ON CONFLICT DO UPDATE SET seq = seq + 1 RETURNING seq
        stmt = (
            insert(Counter)
            .values(name=name, seq=1)
            .on_conflict_do_update(
                index_elements=[Counter.name],
                set_={"seq": Counter.seq + 1},
            )
            .returning(Counter.seq)
        )
        return db.execute(stmt).scalar_one()

    def close(self) -> None:
        self.database.dispose()


class RedisLinkStore(LinkStore):
    """
    Redis implementation.

    - counters:<name>  string, advanced with INCR (atomic, creates at 0)
    - links:by_url     hash original_url -> short_url
    - links:by_id      hash short_url -> original_url

    HSETNX on links:by_url is the uniqueness check; links:by_id is written
    only by the request that won it, inside the same Lua script so the two
    hashes never disagree.
    """

    BY_URL = "links:by_url"
    BY_ID = "links:by_id"

    # KEYS: by_url, by_id  ARGV: original_url, short_url
    INSERT_SCRIPT = """
if redis.call('HSETNX', KEYS[1], ARGV[1], ARGV[2]) == 1 then
    redis.call('HSET', KEYS[2], ARGV[2], ARGV[1])
    return 1
end
return 0
"""

    def __init__(self, redis_client):
        """
        Args:
            redis_client: Redis client instance (redis.Redis, decode_responses=True)
        """
        self.redis = redis_client
        self._insert = redis_client.register_script(self.INSERT_SCRIPT)

    @staticmethod
    def _counter_key(name: str) -> str:
        return f"counters:{name}"

    def initialize(self, counter_name: str) -> None:
        try:
            self.redis.ping()
            if self.redis.set(self._counter_key(counter_name), 0, nx=True):
                logger.info("Counter '%s' initialized at 0", counter_name)
        except redis.RedisError as e:
            raise StartupError(f"Could not initialize Redis: {e}") from e

    def find_by_url(self, original_url: str) -> Optional[LinkRecord]:
        try:
            value = self.redis.hget(self.BY_URL, original_url)
        except redis.RedisError as e:
            raise StoreError(f"find_by_url failed: {e}") from e
        if value is None:
            return None
        return LinkRecord(original_url=original_url, short_url=int(value))

    def find_by_short_id(self, short_url: int) -> Optional[LinkRecord]:
        try:
            value = self.redis.hget(self.BY_ID, str(short_url))
        except redis.RedisError as e:
            raise StoreError(f"find_by_short_id failed: {e}") from e
        if value is None:
            return None
        return LinkRecord(original_url=value, short_url=short_url)

    def insert(self, original_url: str, short_url: int) -> LinkRecord:
        try:
            created = self._insert(
                keys=[self.BY_URL, self.BY_ID],
                args=[original_url, str(short_url)],
            )
        except redis.RedisError as e:
            raise StoreError(f"insert failed: {e}") from e
        if not int(created):
            existing = self.find_by_url(original_url)
            logger.warning(
                "Concurrent insert for %s; keeping short_url=%s, discarding %s",
                original_url, existing.short_url, short_url,
            )
            return existing
        return LinkRecord(original_url=original_url, short_url=short_url)

    def increment_and_fetch(self, name: str) -> int:
        try:
            return int(self.redis.incr(self._counter_key(name)))
        except redis.RedisError as e:
            raise StoreError(f"increment_and_fetch failed: {e}") from e

    def close(self) -> None:
        self.redis.close()


class InMemoryLinkStore(LinkStore):
    """
    In-memory implementation using Python dicts.

    Pros:
    - No external dependencies
    - Good for development and testing

    Cons:
    - Lost on restart
    - Not shared between processes

    The lock plays the role a database plays for the other backends.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_url: Dict[str, int] = {}
        self._by_id: Dict[int, str] = {}
        self._counters: Dict[str, int] = {}

    def initialize(self, counter_name: str) -> None:
        with self._lock:
            self._counters.setdefault(counter_name, 0)

    def find_by_url(self, original_url: str) -> Optional[LinkRecord]:
        short_url = self._by_url.get(original_url)
        if short_url is None:
            return None
        return LinkRecord(original_url=original_url, short_url=short_url)

    def find_by_short_id(self, short_url: int) -> Optional[LinkRecord]:
        original_url = self._by_id.get(short_url)
        if original_url is None:
            return None
        return LinkRecord(original_url=original_url, short_url=short_url)

    def insert(self, original_url: str, short_url: int) -> LinkRecord:
        with self._lock:
            existing = self._by_url.get(original_url)
            if existing is not None:
                return LinkRecord(original_url=original_url, short_url=existing)
            if short_url in self._by_id:
                raise StoreError(f"short_url {short_url} already assigned")
            self._by_url[original_url] = short_url
            self._by_id[short_url] = original_url
        return LinkRecord(original_url=original_url, short_url=short_url)

    def increment_and_fetch(self, name: str) -> int:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + 1
            return self._counters[name]
