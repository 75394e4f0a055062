"""
URL validation: shape check followed by a hostname lookup.

A submitted string is accepted only if it parses into a scheme and a
hostname and that hostname resolves to at least one address.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List
from urllib.parse import urlsplit

from shorturl_app.exceptions import InvalidURL
from shorturl_app.schemas.url import NormalizedURL

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[List[str]]]


async def resolve_hostname(hostname: str) -> List[str]:
    """Resolve hostname to a list of addresses without blocking the loop."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None)
    return [info[4][0] for info in infos]


class URLValidator:
    """
    Validates submitted URLs.

    The resolver is injected so tests never touch the network.
    """

    def __init__(
        self,
        resolver: Resolver = resolve_hostname,
        allowed_schemes: Iterable[str] = ("http", "https"),
        max_length: int = 2048,
    ):
        self.resolver = resolver
        self.allowed_schemes = {scheme.lower() for scheme in allowed_schemes}
        self.max_length = max_length

    def parse(self, candidate: Any) -> NormalizedURL:
        """
        Shape check only: string, bounded length, allowed scheme, hostname.

        Raises:
            InvalidURL: if any of the checks fail
        """
        if not isinstance(candidate, str) or not candidate:
            raise InvalidURL("URL is missing or not a string")

        if len(candidate) > self.max_length:
            raise InvalidURL(f"URL longer than {self.max_length} characters")

        try:
            parts = urlsplit(candidate)
            hostname = parts.hostname
        except ValueError as e:
            raise InvalidURL(f"Unparseable URL: {e}") from e

        if not parts.scheme or parts.scheme.lower() not in self.allowed_schemes:
            raise InvalidURL(f"Unsupported scheme: {parts.scheme!r}")

        if not hostname:
            raise InvalidURL("URL has no hostname")

        return NormalizedURL(original=candidate, hostname=hostname)

    async def validate(self, candidate: Any) -> NormalizedURL:
        """
        Full validation including the hostname lookup.

        A failed lookup is a normal negative result, never retried here.

        Returns:
            NormalizedURL holding the unmodified input and its hostname

        Raises:
            InvalidURL: malformed input or unresolvable hostname
        """
        normalized = self.parse(candidate)

        try:
            addresses = await self.resolver(normalized.hostname)
        except (OSError, UnicodeError) as e:
            logger.debug("Lookup failed for %s: %s", normalized.hostname, e)
            raise InvalidURL(f"Could not resolve {normalized.hostname}") from e

        if not addresses:
            raise InvalidURL(f"No address for {normalized.hostname}")

        return normalized
