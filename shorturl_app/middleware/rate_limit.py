"""
Per-client request throttling.

Every request counts against one fixed window per client IP, whatever route
it is for; over the limit the client gets a plain-text 429 and the request
never reaches the handlers.
"""

import logging

from fastapi import Request
from fastapi.responses import PlainTextResponse
from limits import parse
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed window limiter keyed by client IP.

    Args:
        limit: Rate string such as "100/15 minutes"
        message: Body of the 429 response
        storage_uri: limits storage ("memory://", "redis://host:6379/0", ...)
        enabled: False lets every request through
    """

    def __init__(
        self,
        app,
        limit: str,
        message: str,
        storage_uri: str = "memory://",
        enabled: bool = True,
    ):
        super().__init__(app)
        self.item = parse(limit)
        self.limiter = FixedWindowRateLimiter(storage_from_string(storage_uri))
        self.message = message
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if self.enabled:
            address = client_address(request)
            if not self.limiter.hit(self.item, "shorturl", address):
                logger.info("Rate limit exceeded for %s (%s)", address, self.item)
                return PlainTextResponse(self.message, status_code=429)
        return await call_next(request)
