"""
Database models for the URL shortener.

Two tables: links (original_url <-> short_url) and a single-row counters
table holding the short URL sequence.
"""

from .link import Counter, Link

__all__ = ["Counter", "Link"]
