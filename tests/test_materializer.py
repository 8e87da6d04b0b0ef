"""Tests for the document materializer (navigation + bounded auto-scroll).

The browser page is a ``FakePage`` and time comes from a ``FakeClock`` that
only moves when the page "waits", so the scroll caps are exercised without
any real sleeping.
"""

from __future__ import annotations

import dataclasses

import pytest

from docpdf.config import Settings
from docpdf.errors import NavigationTimeout
from docpdf.scraper.materializer import (
    auto_scroll,
    budget_from_settings,
    materialize,
    navigate,
    wait_for_containers,
)
from docpdf.scraper.models import ScrollBudget

from fakes import FakeClock, FakePage


def _ever_growing(scrolled: int) -> int:
    """A container that is always 10 000 px taller than what was scrolled."""
    return scrolled + 10_000


# ---------------------------------------------------------------------------
# auto_scroll
# ---------------------------------------------------------------------------

class TestAutoScroll:
    def test_stops_when_content_is_exhausted(self) -> None:
        clock = FakeClock()
        page = FakePage(scroll_height=lambda scrolled: 1000, clock=clock)
        budget = ScrollBudget(distance=100, interval=0.1, max_distance=50_000, max_time=30.0)

        result = auto_scroll(page, budget, clock=clock)

        assert result.reason == "exhausted"
        assert result.distance == 1000
        assert result.steps == 10

    def test_scrolls_by_the_configured_increment(self) -> None:
        page = FakePage(scroll_height=lambda scrolled: 750)
        budget = ScrollBudget(distance=250, interval=0.0, max_distance=50_000, max_time=30.0)

        auto_scroll(page, budget)

        scrolls = [c for c in page.calls if c[0] == "scroll"]
        assert scrolls == [("scroll", 250)] * 3

    def test_distance_cap_stops_a_runaway_container(self) -> None:
        clock = FakeClock()
        page = FakePage(scroll_height=_ever_growing, clock=clock)
        budget = ScrollBudget(distance=100, interval=0.1, max_distance=500, max_time=1000.0)

        result = auto_scroll(page, budget, clock=clock)

        assert result.reason == "distance_cap"
        assert result.distance == 600
        assert result.steps == 6

    def test_time_cap_bounds_an_ever_growing_container(self) -> None:
        clock = FakeClock()
        page = FakePage(scroll_height=_ever_growing, clock=clock)
        budget = ScrollBudget(distance=100, interval=0.1, max_distance=10**9, max_time=2.0)

        result = auto_scroll(page, budget, clock=clock)

        assert result.reason == "time_cap"
        assert result.elapsed <= budget.max_time + 1e-9
        assert 15 <= result.steps <= 25

    def test_time_cap_holds_when_each_step_is_slow(self) -> None:
        """Even if every scroll step itself takes time, the loop still ends."""
        clock = FakeClock()
        page = FakePage(scroll_height=_ever_growing, clock=clock, step_cost=0.7)
        budget = ScrollBudget(distance=100, interval=0.1, max_distance=10**9, max_time=2.0)

        result = auto_scroll(page, budget, clock=clock)

        assert result.reason == "time_cap"
        assert result.steps <= 3

    def test_never_waits_past_the_time_cap(self) -> None:
        clock = FakeClock()
        page = FakePage(scroll_height=_ever_growing, clock=clock)
        budget = ScrollBudget(distance=100, interval=0.3, max_distance=10**9, max_time=1.0)

        auto_scroll(page, budget, clock=clock)

        waits = [c[1] for c in page.calls if c[0] == "wait_for_timeout"]
        assert sum(waits) == pytest.approx(1000.0)
        assert max(waits) <= 300.0


# ---------------------------------------------------------------------------
# navigate / wait_for_containers
# ---------------------------------------------------------------------------

class TestNavigate:
    def test_waits_for_dom_content_loaded(self) -> None:
        page = FakePage()
        navigate(page, "https://www.studocu.com/row/document/x/y/1", 30_000)
        assert page.calls[0] == (
            "goto",
            "https://www.studocu.com/row/document/x/y/1",
            "domcontentloaded",
            30_000,
        )

    def test_goto_error_becomes_navigation_timeout(self) -> None:
        page = FakePage(goto_error=TimeoutError("Timeout 30000ms exceeded"))
        with pytest.raises(NavigationTimeout, match="30000ms"):
            navigate(page, "https://www.studocu.com/row/document/x/y/1", 30_000)


class TestWaitForContainers:
    def test_found(self) -> None:
        assert wait_for_containers(FakePage(), ".pc", 10_000) is True

    def test_missing_selector_is_only_a_warning(self) -> None:
        page = FakePage(selector_found=False)
        assert wait_for_containers(page, ".pc", 10_000) is False


# ---------------------------------------------------------------------------
# materialize / settings
# ---------------------------------------------------------------------------

class TestMaterialize:
    def test_runs_navigate_wait_then_scroll(self) -> None:
        config = dataclasses.replace(Settings(), scroll_interval=0.0, page_container_selector=".page")
        page = FakePage(scroll_height=lambda scrolled: 300, selector_found=False)

        result = materialize(page, "https://www.studocu.com/row/document/x/y/1", config)

        names = page.call_names()
        assert names[0] == "goto"
        assert names[1] == "wait_for_selector"
        assert page.calls[1][1] == ".page"
        assert "scroll" in names[2:]
        assert result.reason == "exhausted"

    def test_navigation_failure_skips_scrolling(self) -> None:
        page = FakePage(goto_error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
        with pytest.raises(NavigationTimeout):
            materialize(page, "https://www.studocu.com/row/document/x/y/1", Settings())
        assert page.call_names() == ["goto"]


class TestScrollSettings:
    def test_budget_from_settings(self) -> None:
        config = dataclasses.replace(
            Settings(),
            scroll_distance=200,
            scroll_interval=0.05,
            scroll_max_distance=1234,
            scroll_max_time=9.0,
        )
        assert budget_from_settings(config) == ScrollBudget(200, 0.05, 1234, 9.0)

    @pytest.mark.parametrize(
        "seconds, expected_ms",
        [(5.0, 30_000), (30.0, 30_000), (45.0, 45_000), (120.0, 60_000)],
    )
    def test_navigation_timeout_is_clamped(self, seconds: float, expected_ms: int) -> None:
        config = dataclasses.replace(Settings(), navigation_timeout=seconds)
        assert config.navigation_timeout_ms == expected_ms
