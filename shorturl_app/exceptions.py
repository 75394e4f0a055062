"""
Domain errors for the URL shortener.

Every error a client can see carries its own ``client_message``; the API layer
turns these into body-level ``{"error": ...}`` responses.
"""

from typing import Optional


class ShortenerError(Exception):
    """Base class for errors that are reported to the client."""

    client_message = "Unexpected error"

    def __init__(self, detail: Optional[str] = None, client_message: Optional[str] = None):
        super().__init__(detail or client_message or self.client_message)
        if client_message is not None:
            self.client_message = client_message


class InvalidURL(ShortenerError):
    """Malformed input, missing hostname or unresolvable hostname."""

    client_message = "Invalid URL"


class MalformedIdentifier(ShortenerError):
    """Short URL path parameter is not a base-10 integer."""

    client_message = "Wrong format. Short URL must be a number."


class NotFound(ShortenerError):
    """No link is stored under the requested short URL."""

    client_message = "No short URL found for the given input"


class StoreError(ShortenerError):
    """
    Any persistence-layer failure during a read or a write.

    ``str(error)`` holds the internal detail and is only logged. Clients see
    ``client_message``, which the service sets per operation.
    """

    client_message = "Database error"


class StartupError(Exception):
    """The link store could not be reached or prepared at boot."""
