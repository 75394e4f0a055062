"""
FastAPI dependencies for dependency injection.

The link store and the validator are created once by the app factory and
kept on app.state; these functions hand them to services and routes.

Pattern: Dependency Injection
- No module-level connection state
- Easy to test (build the app with a substitute store/resolver, or use
  app.dependency_overrides)
"""

from fastapi import Depends, Request

from shorturl_app.services.sequence_allocator import SequenceAllocator
from shorturl_app.services.url_service import URLService
from shorturl_app.services.url_validator import URLValidator
from shorturl_app.storage.strategies import LinkStore


def get_link_store(request: Request) -> LinkStore:
    return request.app.state.link_store


def get_validator(request: Request) -> URLValidator:
    return request.app.state.validator


def get_allocator(
    request: Request,
    store: LinkStore = Depends(get_link_store),
) -> SequenceAllocator:
    return SequenceAllocator(store, name=request.app.state.settings.counter_name)


def get_url_service(
    store: LinkStore = Depends(get_link_store),
    validator: URLValidator = Depends(get_validator),
    allocator: SequenceAllocator = Depends(get_allocator),
) -> URLService:
    """
    Get URLService with all dependencies injected.

    Controller depends on service; service depends on store, validator
    and allocator.
    """
    return URLService(store=store, validator=validator, allocator=allocator)
