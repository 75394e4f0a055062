import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from starlette.exceptions import HTTPException

from shorturl_app.dependencies import get_url_service
from shorturl_app.schemas.url import ErrorResponse, ShortURLResponse
from shorturl_app.services.url_service import URLService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shorturl", tags=["shorturl"])


async def read_url_field(request: Request) -> Any:
    """
    Pull the ``url`` field out of a JSON or form body.

    Anything unreadable counts as a missing field; the validator rejects it.
    """
    content_type = request.headers.get("content-type", "").lower()
    try:
        if content_type.startswith("application/json"):
            body = await request.json()
            return body.get("url") if isinstance(body, dict) else None
        form = await request.form()
        return form.get("url")
    except (ValueError, UnicodeDecodeError, HTTPException) as e:
        logger.debug("Unreadable request body: %s", e)
        return None


@router.post("", response_model=ShortURLResponse)
async def create_short_url(
    request: Request,
    url_service: URLService = Depends(get_url_service),
):
    """Shorten a URL (form or JSON body with a ``url`` field)."""
    candidate = await read_url_field(request)
    record = await url_service.create_short_url(candidate)
    return ShortURLResponse(original_url=record.original_url, short_url=record.short_url)


@router.get(
    "/{short_url}",
    responses={
        200: {"model": ErrorResponse, "description": "Body-level error"},
        302: {"description": "Redirect to the original URL"},
    },
)
async def redirect_to_original_url(
    short_url: str,
    url_service: URLService = Depends(get_url_service),
):
    """Redirect to the original URL stored under a numeric short URL."""
    original_url = await url_service.resolve_short_url(short_url)
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
