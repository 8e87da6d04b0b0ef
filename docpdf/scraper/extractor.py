"""Page image extraction: one image per logical page, via a strategy cascade.

The viewer may draw a page as an ``<img>``, as a CSS background-image or on a
``<canvas>``, so no single capture method is relied on.  Strategies are tried
in order and the first one that yields at least one image wins:

1. ``containers`` — fetch each page container's image in-page and re-encode it
   as a compressed JPEG.
2. ``screenshots`` — screenshot each page container element directly.
3. ``canvases`` — read every ``<canvas>`` on the page.

Within a strategy a single bad image is dropped and logged; it never aborts
the run.  The whole cascade runs against one deadline
(``Settings.extraction_budget``) so a page with hundreds of slow containers
still returns what it has before the request deadline.  Strategy (2) can be
promoted to first place with ``PREFER_SCREENSHOTS`` when the markup
guarantees container boundaries.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

from docpdf.config import Settings, settings as default_settings
from docpdf.errors import PerImageFailure
from docpdf.pdf.images import decode_image_source
from docpdf.scraper.models import Deadline, ProbeReport

logger = logging.getLogger(__name__)

Strategy = Callable[[Any, Settings, Deadline], List[bytes]]

# ---------------------------------------------------------------------------
# In-page scripts
# ---------------------------------------------------------------------------

# One entry per container, in document order; ``null`` where nothing usable
# was found or the fetch/decode/encode failed.  Containers not reached before
# ``budgetMs`` runs out get no entry.
_CONTAINER_IMAGES_JS = """
async ({ selector, quality, timeoutMs, budgetMs }) => {
    const stopAt = performance.now() + budgetMs;
    const toJpeg = async (url) => {
        const controller = new AbortController();
        const limit = Math.max(1, Math.min(timeoutMs, stopAt - performance.now()));
        const timer = setTimeout(() => controller.abort(), limit);
        try {
            const response = await fetch(url, { signal: controller.signal });
            if (!response.ok) return null;
            const blob = await response.blob();
            const bitmap = await createImageBitmap(blob);
            const canvas = document.createElement('canvas');
            canvas.width = bitmap.width;
            canvas.height = bitmap.height;
            canvas.getContext('2d').drawImage(bitmap, 0, 0);
            bitmap.close();
            return canvas.toDataURL('image/jpeg', quality);
        } catch (e) {
            return null;
        } finally {
            clearTimeout(timer);
        }
    };

    const results = [];
    for (const container of document.querySelectorAll(selector)) {
        if (performance.now() >= stopAt) break;
        const img = container.querySelector('img');
        let source = img && img.src ? img.src : null;
        if (!source) {
            const bg = window.getComputedStyle(container).backgroundImage;
            const match = bg && bg.match(/url\\(['"]?(.*?)['"]?\\)/);
            source = match && match[1] ? match[1] : null;
        }
        results.push(source ? await toJpeg(source) : null);
    }
    return results;
}
"""

_CANVAS_IMAGES_JS = """
(quality) => Array.from(document.querySelectorAll('canvas')).map((canvas) => {
    try {
        return canvas.toDataURL('image/jpeg', quality);
    } catch (e) {
        return null;
    }
})
"""

_PROBE_JS = """
(selector) => {
    const containers = Array.from(document.querySelectorAll(selector));
    let withContent = 0;
    for (const container of containers) {
        const img = container.querySelector('img');
        const bg = window.getComputedStyle(container).backgroundImage;
        if ((img && img.src) || (bg && bg.includes('url'))) {
            withContent++;
        }
    }
    return {
        containers: containers.length,
        withContent: withContent,
        canvases: document.querySelectorAll('canvas').length,
    };
}
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _collect(label: str, captured: Sequence[Optional[str | bytes]]) -> List[bytes]:
    """Decode each captured value, dropping the ones that are missing or broken."""
    images: List[bytes] = []
    for index, value in enumerate(captured):
        if value is None:
            logger.warning("%s %d: no image, skipped", label, index)
            continue
        try:
            images.append(decode_image_source(value).data)
        except PerImageFailure as exc:
            logger.warning("%s %d: %s, skipped", label, index, exc)
    return images


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _deadline_for(config: Settings, deadline: Deadline | None) -> Deadline:
    if deadline is not None:
        return deadline
    return Deadline.after(config.extraction_budget)


def capture_containers(
    page: Any, config: Settings, deadline: Deadline | None = None
) -> List[bytes]:
    """Fetch each container's ``<img>`` or background image and re-encode it in-page."""
    deadline = _deadline_for(config, deadline)
    captured = page.evaluate(
        _CONTAINER_IMAGES_JS,
        {
            "selector": config.page_container_selector,
            "quality": config.image_quality,
            "timeoutMs": int(config.element_timeout * 1000),
            "budgetMs": int(deadline.remaining() * 1000),
        },
    )
    return _collect("container", captured or [])


def screenshot_containers(
    page: Any, config: Settings, deadline: Deadline | None = None
) -> List[bytes]:
    """Screenshot every container element, keeping any overlaid text.

    Stops at *deadline* and keeps what was captured so far; each screenshot
    is bounded by ``element_timeout`` or the time left, whichever is shorter.
    """
    deadline = _deadline_for(config, deadline)
    elements = page.query_selector_all(config.page_container_selector)
    captured: List[Optional[bytes]] = []
    for index, element in enumerate(elements):
        remaining = deadline.remaining()
        if remaining <= 0:
            logger.warning(
                "Extraction budget spent after %d of %d containers", index, len(elements)
            )
            break
        timeout = max(1, int(min(config.element_timeout, remaining) * 1000))
        try:
            captured.append(
                element.screenshot(type="jpeg", quality=config.jpeg_quality, timeout=timeout)
            )
        except Exception as exc:
            logger.warning("screenshot %d failed: %s", index, exc)
            captured.append(None)
    return _collect("screenshot", captured)


def capture_canvases(
    page: Any, config: Settings, deadline: Deadline | None = None
) -> List[bytes]:
    """Read every ``<canvas>`` on the page as a JPEG, in DOM order."""
    captured = page.evaluate(_CANVAS_IMAGES_JS, config.image_quality)
    return _collect("canvas", captured or [])


DEFAULT_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("containers", capture_containers),
    ("screenshots", screenshot_containers),
    ("canvases", capture_canvases),
)


def strategy_order(config: Settings) -> Tuple[Tuple[str, Strategy], ...]:
    """Return the strategies in the order *config* asks for."""
    if not config.prefer_screenshots:
        return DEFAULT_STRATEGIES
    by_name = dict(DEFAULT_STRATEGIES)
    return (
        ("screenshots", by_name["screenshots"]),
        ("containers", by_name["containers"]),
        ("canvases", by_name["canvases"]),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_page_images(
    page: Any,
    config: Settings | None = None,
    strategies: Sequence[Tuple[str, Strategy]] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> List[bytes]:
    """Run the strategy cascade against the rendered *page*.

    All strategies share one ``extraction_budget`` deadline; once it has
    passed no further strategy is started.

    Returns the images from the first strategy that produced any, or an empty
    list when none did.
    """
    config = config or default_settings
    deadline = Deadline.after(config.extraction_budget, clock)
    for name, strategy in strategies or strategy_order(config):
        if deadline.expired:
            logger.warning("Extraction budget spent before strategy %r", name)
            break
        images = strategy(page, config, deadline)
        logger.info("Strategy %r produced %d image(s)", name, len(images))
        if images:
            return images
    return []


def probe_content(page: Any, url: str, config: Settings | None = None) -> ProbeReport:
    """Count containers and canvases carrying extractable content, without capturing."""
    config = config or default_settings
    counts = page.evaluate(_PROBE_JS, config.page_container_selector) or {}
    return ProbeReport(
        url=url,
        containers=int(counts.get("containers", 0)),
        containers_with_content=int(counts.get("withContent", 0)),
        canvases=int(counts.get("canvases", 0)),
    )
