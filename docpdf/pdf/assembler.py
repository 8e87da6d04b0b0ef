"""PDF assembler: one page per captured image, in sequence order.

Every page has the same width; its height follows the image's own aspect
ratio (``height = width * img_height / img_width``) and the image fills the
page edge to edge.

A page that cannot be placed at its computed height is retried once at the
nominal fallback height.  If that fails too the page is left out and the
rest of the document is still written.
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from typing import Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdfcanvas

from docpdf.errors import PerImageFailure
from docpdf.pdf.images import DEFAULT_QUALITY, NormalizedImage, normalize_image

logger = logging.getLogger(__name__)

PAGE_WIDTH, FALLBACK_HEIGHT = A4

# Page sides outside this range (in points) are rejected by common viewers.
MIN_PAGE_SIDE = 3.0
MAX_PAGE_SIDE = 14_400.0


@dataclass
class AssembledDocument:
    """The finished PDF and what went into it."""

    pdf: bytes
    page_count: int
    skipped: int

    @property
    def size_mb(self) -> float:
        return len(self.pdf) / 1024 / 1024


def page_height_for(image: NormalizedImage, page_width: float) -> float:
    """Height of a *page_width*-wide page that keeps *image*'s aspect ratio."""
    if image.width <= 0 or image.height <= 0:
        raise PerImageFailure(f"Image has no area ({image.width}x{image.height})")
    return page_width * image.height / image.width


def _place(c: pdfcanvas.Canvas, image: NormalizedImage, width: float, height: float) -> None:
    """Draw *image* over a whole ``width`` x ``height`` page and close the page.

    Nothing is emitted unless the draw succeeds.
    """
    if not math.isfinite(height) or not MIN_PAGE_SIDE <= height <= MAX_PAGE_SIDE:
        raise PerImageFailure(f"Page height {height:.1f}pt is outside the supported range")
    try:
        c.setPageSize((width, height))
        c.drawImage(ImageReader(io.BytesIO(image.data)), 0, 0, width=width, height=height)
    except PerImageFailure:
        raise
    except Exception as exc:
        raise PerImageFailure(f"Could not draw image: {exc}") from exc
    c.showPage()


def assemble_pdf(
    images: Sequence[str | bytes],
    page_width: float = PAGE_WIDTH,
    fallback_height: float = FALLBACK_HEIGHT,
    quality: int = DEFAULT_QUALITY,
) -> AssembledDocument:
    """Build one PDF from *images*, one page each, in order.

    Args:
        images: Captured images as ``data:`` URLs, base64 strings or raw bytes.
        page_width: Width of every page in PDF points (A4 width by default).
        fallback_height: Page height used when the aspect-computed one fails.
        quality: JPEG quality (1-100) for images that have to be re-encoded.

    Returns:
        An :class:`AssembledDocument`; ``page_count`` never exceeds ``len(images)``.
    """
    buffer = io.BytesIO()
    c = pdfcanvas.Canvas(buffer, pagesize=(page_width, fallback_height))
    page_count = 0
    skipped = 0

    for index, raw in enumerate(images):
        try:
            image = normalize_image(raw, quality=quality)
        except PerImageFailure as exc:
            logger.warning("Skipping image %d: %s", index, exc)
            skipped += 1
            continue

        try:
            _place(c, image, page_width, page_height_for(image, page_width))
        except PerImageFailure as exc:
            logger.info("Image %d at aspect height failed (%s); retrying at %.1fpt", index, exc, fallback_height)
            try:
                _place(c, image, page_width, fallback_height)
            except PerImageFailure as retry_exc:
                logger.warning("Skipping image %d: %s", index, retry_exc)
                skipped += 1
                continue
        page_count += 1

    c.save()
    document = AssembledDocument(pdf=buffer.getvalue(), page_count=page_count, skipped=skipped)
    logger.info(
        "PDF done: %d pages, %d skipped, %.2f MB",
        document.page_count,
        document.skipped,
        document.size_mb,
    )
    return document
