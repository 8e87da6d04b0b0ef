"""Browser session provider.

Two launch variants sit behind one predicate (``settings.is_development``):

``local``
    Playwright's own bundled Chromium, the one ``playwright install``
    downloads.  Headless unless ``HEADLESS=false``.

``packaged``
    A Chromium binary resolved for constrained sandboxes (serverless
    containers, slim images).  ``CHROMIUM_EXECUTABLE_PATH`` wins; otherwise a
    system ``chromium`` / ``google-chrome`` on ``PATH``; otherwise Playwright's
    bundled binary.  Always headless, always with the sandbox-safe flag set.

Callers only ever see a :class:`BrowserSession`.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from docpdf.config import Settings, settings as default_settings
from docpdf.errors import LaunchFailure

if TYPE_CHECKING:
    from playwright.sync_api import Browser, Page, Playwright

logger = logging.getLogger(__name__)

Variant = Literal["local", "packaged"]

# Flags required to run Chromium inside a locked-down Linux sandbox.
PACKAGED_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--no-zygote",
    "--single-process",
)

_SYSTEM_BINARIES = (
    "chromium",
    "chromium-browser",
    "google-chrome",
    "google-chrome-stable",
)


@dataclass
class BrowserSession:
    """A running browser plus the one page a request works on."""

    playwright: Playwright
    browser: Browser
    page: Page
    variant: Variant
    _closed: bool = field(default=False, repr=False)

    def close(self) -> None:
        """Close the browser and stop the Playwright driver.

        Calling ``close`` a second time is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self.browser.close()
        finally:
            self.playwright.stop()


def select_variant(config: Settings) -> Variant:
    """Return which launch variant *config* selects."""
    return "local" if config.is_development else "packaged"


def resolve_packaged_executable(config: Settings) -> str | None:
    """Locate the Chromium binary for the packaged variant.

    Returns ``None`` when nothing is found, in which case Playwright falls back
    to its own bundled build.
    """
    if config.chromium_executable_path:
        return config.chromium_executable_path
    for name in _SYSTEM_BINARIES:
        path = shutil.which(name)
        if path:
            return path
    return None


def _launch_options(config: Settings, variant: Variant) -> dict[str, Any]:
    timeout = config.navigation_timeout_ms
    if variant == "local":
        return {"headless": config.headless, "timeout": timeout}

    options: dict[str, Any] = {
        "headless": True,
        "args": list(PACKAGED_ARGS),
        "timeout": timeout,
    }
    executable = resolve_packaged_executable(config)
    if executable:
        options["executable_path"] = executable
    return options


def launch_session(config: Settings | None = None) -> BrowserSession:
    """Start a browser and open a fresh page bound to the configured user-agent.

    Playwright is imported lazily so modules that only need the session type
    (and the test suite) don't pull in the driver.

    Raises:
        LaunchFailure: If the driver or browser process cannot be started.
    """
    from playwright.sync_api import sync_playwright  # noqa: PLC0415

    config = config or default_settings
    variant = select_variant(config)
    options = _launch_options(config, variant)
    logger.info("Launching %s browser (headless=%s)", variant, options["headless"])

    try:
        pw = sync_playwright().start()
    except Exception as exc:
        raise LaunchFailure(f"Could not start the browser driver: {exc}") from exc

    try:
        browser = pw.chromium.launch(**options)
        context = browser.new_context(
            user_agent=config.user_agent,
            ignore_https_errors=variant == "packaged",
        )
        page = context.new_page()
    except Exception as exc:
        pw.stop()
        raise LaunchFailure(f"Could not launch the {variant} browser: {exc}") from exc

    return BrowserSession(playwright=pw, browser=browser, page=page, variant=variant)
