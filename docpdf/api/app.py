"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging and stores the runtime settings and
the browser session factory on ``app.state`` (tests swap the factory for a
fake).  Nothing is held open between requests: every download launches and
closes its own browser.

Routers
-------
    /download  — document URL → PDF
    /health    — liveness probe
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docpdf.config import settings
from docpdf.errors import DownloaderError, InvalidInput
from docpdf.scraper.session import launch_session
from docpdf.utils.logging import configure_logging

from docpdf.api.routers import download as download_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Set up logging and the per-request browser factory."""
    configure_logging(settings.log_level)
    app.state.settings = settings
    app.state.session_factory = launch_session
    logger.info(
        "docpdf ready (env=%s, source=%s)", settings.environment, settings.source_host
    )
    yield


async def _downloader_error_handler(request: Request, exc: DownloaderError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidInput("Request body must be JSON of the form {\"url\": \"...\"}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="docpdf API",
        description=(
            "Renders a paginated web document viewer in a headless browser, "
            "captures one image per page and returns the pages as a single PDF."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Page-Count"],
    )

    app.add_exception_handler(DownloaderError, _downloader_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(download_router.router, prefix="/download", tags=["download"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn docpdf.api.app:app --reload
app = create_app()
