"""Document materializer: navigate, then force the lazy viewer to render.

The viewer only attaches page content as it scrolls into view, so after the
initial DOM is parsed the page is scrolled in fixed steps until the content
runs out or one of the caps in :class:`ScrollBudget` is hit.  There is no
further readiness wait; the extractor's per-image decode is the real gate.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from docpdf.config import Settings, settings as default_settings
from docpdf.errors import NavigationTimeout
from docpdf.scraper.models import ScrollBudget, ScrollResult

logger = logging.getLogger(__name__)

# Measure first, then scroll: the height read is the one the step is judged against.
_SCROLL_STEP_JS = """
(distance) => {
    const scrollHeight = document.body.scrollHeight;
    window.scrollBy(0, distance);
    return scrollHeight;
}
"""


def budget_from_settings(config: Settings) -> ScrollBudget:
    return ScrollBudget(
        distance=config.scroll_distance,
        interval=config.scroll_interval,
        max_distance=config.scroll_max_distance,
        max_time=config.scroll_max_time,
    )


def navigate(page: Any, url: str, timeout_ms: int) -> None:
    """Open *url* and wait for the initial DOM only (not network idle).

    Raises:
        NavigationTimeout: If the page is unreachable or does not parse in time.
    """
    logger.info("Navigating to %s", url)
    try:
        page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except Exception as exc:
        raise NavigationTimeout(f"Could not load {url}: {exc}") from exc


def wait_for_containers(page: Any, selector: str, timeout_ms: int) -> bool:
    """Give the viewer a moment to attach its first page container.

    A miss is not an error: some documents only render canvases.
    """
    try:
        page.wait_for_selector(selector, timeout=timeout_ms)
    except Exception as exc:
        logger.warning("%r not found after %d ms, scrolling anyway (%s)", selector, timeout_ms, exc)
        return False
    return True


def auto_scroll(
    page: Any,
    budget: ScrollBudget,
    clock: Callable[[], float] = time.monotonic,
) -> ScrollResult:
    """Scroll *page* by ``budget.distance`` every ``budget.interval`` seconds.

    Stops as soon as one of these holds:

    * the distance travelled reaches the current scroll height (``exhausted``);
    * the distance travelled exceeds ``budget.max_distance`` (``distance_cap``);
    * ``budget.max_time`` seconds have elapsed (``time_cap``).

    The scroll height is re-read on every step, so a container that keeps
    growing is still bounded by the time cap.
    """
    started = clock()
    deadline = started + budget.max_time
    travelled = 0
    steps = 0

    while True:
        height = int(page.evaluate(_SCROLL_STEP_JS, budget.distance) or 0)
        travelled += budget.distance
        steps += 1

        if travelled >= height:
            reason = "exhausted"
            break
        if travelled > budget.max_distance:
            reason = "distance_cap"
            break

        remaining = deadline - clock()
        if remaining <= 0:
            reason = "time_cap"
            break
        page.wait_for_timeout(min(budget.interval, remaining) * 1000)
        if clock() >= deadline:
            reason = "time_cap"
            break

    result = ScrollResult(
        reason=reason,
        distance=travelled,
        elapsed=clock() - started,
        steps=steps,
    )
    logger.info(
        "Scroll finished: %s after %d px / %.1f s (%d steps)",
        result.reason,
        result.distance,
        result.elapsed,
        result.steps,
    )
    return result


def materialize(page: Any, url: str, config: Settings | None = None) -> ScrollResult:
    """Navigate *page* to *url* and scroll the viewer until fully rendered."""
    config = config or default_settings
    navigate(page, url, config.navigation_timeout_ms)
    wait_for_containers(
        page,
        config.page_container_selector,
        int(config.container_wait_timeout * 1000),
    )
    return auto_scroll(page, budget_from_settings(config))
