"""Pipeline orchestrator.

``DocumentPipeline.run`` is the single entry point the API and the CLI use.
One pipeline instance handles one request:

    IDLE → SESSION_ACQUIRED → MATERIALIZED → EXTRACTED → ASSEMBLED → RESPONDED

Any error moves straight to ``FAILED``.  The browser session is acquired
once, owned exclusively by the run, and closed exactly once on every exit
path; a failing close is logged and never replaces the original outcome.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List
from urllib.parse import urlparse

from docpdf.config import Settings, settings as default_settings
from docpdf.errors import DownloaderError, InvalidInput, NoContentFound, UnexpectedFailure
from docpdf.pdf.assembler import assemble_pdf
from docpdf.scraper.extractor import extract_page_images, probe_content
from docpdf.scraper.materializer import materialize
from docpdf.scraper.models import ProbeReport
from docpdf.scraper.session import BrowserSession, launch_session

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Settings], BrowserSession]

DEFAULT_FILENAME = "document.pdf"
_SLUG_CHARS = re.compile(r"[^a-z0-9-]+")


class PipelineState(str, Enum):
    IDLE = "idle"
    SESSION_ACQUIRED = "session_acquired"
    MATERIALIZED = "materialized"
    EXTRACTED = "extracted"
    ASSEMBLED = "assembled"
    RESPONDED = "responded"
    FAILED = "failed"


@dataclass
class DownloadResult:
    """A finished PDF and the name the caller should save it under."""

    pdf: bytes
    filename: str
    page_count: int


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

def _allowed_hosts(config: Settings) -> set[str]:
    host = config.source_host.lower()
    bare = host[len("www."):] if host.startswith("www.") else host
    return {host, bare, f"www.{bare}"}


def validate_reference(url: object, config: Settings | None = None) -> str:
    """Return *url* stripped if it is a document link on the source site.

    Raises:
        InvalidInput: For a missing value, a non-https scheme, a foreign host
            or a path without a ``/document/<slug>`` part.
    """
    config = config or default_settings
    if not isinstance(url, str) or not url.strip():
        raise InvalidInput("URL is required")

    url = url.strip()
    parts = urlparse(url)
    try:
        port = parts.port
    except ValueError:
        port = -1
    if (
        parts.scheme != "https"
        or parts.username
        or port is not None
        or (parts.hostname or "").lower() not in _allowed_hosts(config)
    ):
        raise InvalidInput(f"URL must be a https://{config.source_host}/ document link")

    _, marker, rest = parts.path.partition("/document/")
    if not marker or not rest.strip("/"):
        raise InvalidInput(f"URL must point to a document on {config.source_host}")
    return url


def suggested_filename(url: str) -> str:
    """Derive ``<slug>.pdf`` from the last non-numeric path segment of *url*."""
    segments = [s for s in urlparse(url).path.split("/") if s]
    for segment in reversed(segments):
        if segment.isdigit() or segment == "document":
            continue
        slug = _SLUG_CHARS.sub("-", segment.lower()).strip("-")[:100].strip("-")
        if slug:
            return f"{slug}.pdf"
    return DEFAULT_FILENAME


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

@dataclass
class DocumentPipeline:
    """Runs acquire → materialize → extract → assemble → release for one URL."""

    config: Settings = field(default_factory=lambda: default_settings)
    session_factory: SessionFactory = launch_session
    state: PipelineState = PipelineState.IDLE
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])

    def _advance(self, state: PipelineState) -> None:
        logger.debug("pipeline: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _teardown(self, session: BrowserSession) -> None:
        try:
            session.close()
        except Exception:
            logger.exception("Browser teardown failed")

    def run(self, url: object) -> DownloadResult:
        """Fetch *url* and return it as a PDF.

        Raises:
            InvalidInput: Before any browser is started, for a bad reference.
            LaunchFailure: If the browser cannot be started.
            NavigationTimeout: If the document does not load in time.
            NoContentFound: If no page image survives extraction and assembly.
            UnexpectedFailure: For anything else, with the underlying message.
        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError("DocumentPipeline instances are single-use")

        session: BrowserSession | None = None
        try:
            target = validate_reference(url, self.config)
            session = self.session_factory(self.config)
            self._advance(PipelineState.SESSION_ACQUIRED)

            materialize(session.page, target, self.config)
            self._advance(PipelineState.MATERIALIZED)

            images = extract_page_images(session.page, self.config)
            self._advance(PipelineState.EXTRACTED)
            if not images:
                raise NoContentFound("No content found.")

            logger.info("Generating PDF (%d pages)...", len(images))
            document = assemble_pdf(
                images,
                page_width=self.config.pdf_page_width,
                fallback_height=self.config.pdf_fallback_height,
                quality=self.config.jpeg_quality,
            )
            if document.page_count == 0:
                raise NoContentFound("No content found: every page image was unreadable.")
            self._advance(PipelineState.ASSEMBLED)
        except DownloaderError as exc:
            self._advance(PipelineState.FAILED)
            logger.warning("Download failed (%s): %s", exc.category, exc.message)
            raise
        except Exception as exc:
            self._advance(PipelineState.FAILED)
            logger.exception("Unexpected pipeline failure")
            raise UnexpectedFailure(f"Server Error: {exc}") from exc
        finally:
            if session is not None:
                self._teardown(session)

        result = DownloadResult(
            pdf=document.pdf,
            filename=suggested_filename(target),
            page_count=document.page_count,
        )
        self._advance(PipelineState.RESPONDED)
        return result


def download_document(
    url: object,
    config: Settings | None = None,
    session_factory: SessionFactory | None = None,
) -> DownloadResult:
    """Convenience wrapper: run a fresh :class:`DocumentPipeline` for *url*."""
    pipeline = DocumentPipeline(
        config=config or default_settings,
        session_factory=session_factory or launch_session,
    )
    return pipeline.run(url)


def probe_document(
    url: object,
    config: Settings | None = None,
    session_factory: SessionFactory | None = None,
) -> ProbeReport:
    """Materialize *url* and count its extractable pages without building a PDF."""
    config = config or default_settings
    factory = session_factory or launch_session
    target = validate_reference(url, config)

    session = factory(config)
    try:
        materialize(session.page, target, config)
        report = probe_content(session.page, target, config)
    except DownloaderError:
        raise
    except Exception as exc:
        raise UnexpectedFailure(f"Server Error: {exc}") from exc
    finally:
        try:
            session.close()
        except Exception:
            logger.exception("Browser teardown failed")
    logger.info("Found %d pages/content items.", report.content_count)
    return report
