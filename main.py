import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from shorturl_app.api.v1 import shorturl
from shorturl_app.config import Settings, settings as default_settings
from shorturl_app.exceptions import ShortenerError, StartupError
from shorturl_app.logging_config import setup_logging
from shorturl_app.middleware.rate_limit import RateLimitMiddleware
from shorturl_app.services.url_validator import URLValidator
from shorturl_app.storage.factory import LinkStoreBackend, LinkStoreFactory
from shorturl_app.storage.strategies import LinkStore

logger = logging.getLogger("shorturl_app.main")


def create_app(
    settings: Optional[Settings] = None,
    link_store: Optional[LinkStore] = None,
    validator: Optional[URLValidator] = None,
) -> FastAPI:
    """
    Build the application.

    The link store is connected and prepared in the lifespan handler; if that
    fails the app refuses to start (uvicorn exits non-zero).
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_json)

    if link_store is None:
        link_store = LinkStoreFactory.create(LinkStoreBackend(settings.store_backend), settings)
    if validator is None:
        validator = URLValidator(
            allowed_schemes=settings.allowed_schemes,
            max_length=settings.max_url_length,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            link_store.initialize(settings.counter_name)
        except StartupError:
            logger.critical("Link store unavailable, shutting down", exc_info=True)
            raise
        logger.info("%s ready (store=%s)", settings.app_name, settings.store_backend)
        yield
        link_store.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A URL shortener microservice issuing sequential numeric short URLs",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.link_store = link_store
    app.state.validator = validator

    ######## Middleware (last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(
        RateLimitMiddleware,
        limit=settings.rate_limit,
        message=settings.rate_limit_message,
        storage_uri=settings.rate_limit_storage_uri,
        enabled=settings.rate_limit_enabled,
    )

    ######## Error handlers
    @app.exception_handler(ShortenerError)
    async def shortener_error_handler(request: Request, exc: ShortenerError):
        """Body-level error: every client-facing failure is an HTTP 200."""
        return JSONResponse({"error": exc.client_message}, status_code=200)

    ######## Pages
    @app.get("/", include_in_schema=False)
    def read_root():
        """Landing page"""
        return FileResponse(settings.views_dir / "index.html")

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": settings.environment}

    app.mount("/public", StaticFiles(directory=settings.public_dir), name="public")

    ######## Include routers
    app.include_router(shorturl.router)

    return app


app = create_app()


def run():
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    run()
