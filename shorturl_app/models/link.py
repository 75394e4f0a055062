from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from shorturl_app.database.connection import Base


class Link(Base):
    """
    Mapping between an original URL and its sequential short URL.

    Rows are written once and never updated or deleted.
    The unique constraint on original_url is what keeps two concurrent
    requests for the same new URL from producing two rows.
    """
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    original_url = Column(String(2048), unique=True, nullable=False, index=True)
    short_url = Column(BigInteger, unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Counter(Base):
    """Named sequence; only ever changed through one atomic increment."""
    __tablename__ = "counters"

    name = Column(String(64), primary_key=True)
    seq = Column(BigInteger, nullable=False, default=0)
