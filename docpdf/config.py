"""Centralised settings for the docpdf service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

# Seconds of the request deadline kept free for PDF assembly and teardown.
_TEARDOWN_RESERVE = 5.0

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/110.0.0.0 Safari/537.36"
)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Environment / source site
    # ------------------------------------------------------------------
    environment: str = field(
        default_factory=lambda: os.environ.get("DOCPDF_ENV", "production")
    )
    source_host: str = field(
        default_factory=lambda: os.environ.get("SOURCE_HOST", "www.studocu.com")
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", _DEFAULT_USER_AGENT)
    )

    @property
    def is_development(self) -> bool:
        """``True`` when the locally installed browser should be used."""
        return self.environment.strip().lower() == "development"

    # ------------------------------------------------------------------
    # Browser
    # ------------------------------------------------------------------
    chromium_executable_path: str | None = field(
        default_factory=lambda: os.environ.get("CHROMIUM_EXECUTABLE_PATH") or None
    )
    headless: bool = field(default_factory=lambda: _env_bool("HEADLESS", "true"))
    navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("NAVIGATION_TIMEOUT", "30.0"))
    )
    container_wait_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CONTAINER_WAIT_TIMEOUT", "5.0"))
    )
    element_timeout: float = field(
        default_factory=lambda: float(os.environ.get("ELEMENT_TIMEOUT", "5.0"))
    )

    # ------------------------------------------------------------------
    # Materializer (auto-scroll budget)
    # ------------------------------------------------------------------
    scroll_distance: int = field(
        default_factory=lambda: int(os.environ.get("SCROLL_DISTANCE", "100"))
    )
    scroll_interval: float = field(
        default_factory=lambda: float(os.environ.get("SCROLL_INTERVAL", "0.1"))
    )
    scroll_max_distance: int = field(
        default_factory=lambda: int(os.environ.get("SCROLL_MAX_DISTANCE", "50000"))
    )
    scroll_max_time: float = field(
        default_factory=lambda: float(os.environ.get("SCROLL_MAX_TIME", "12.0"))
    )

    # ------------------------------------------------------------------
    # Extractor
    # ------------------------------------------------------------------
    page_container_selector: str = field(
        default_factory=lambda: os.environ.get("PAGE_CONTAINER_SELECTOR", ".pc")
    )
    image_quality: float = field(
        default_factory=lambda: float(os.environ.get("IMAGE_QUALITY", "0.5"))
    )
    prefer_screenshots: bool = field(
        default_factory=lambda: _env_bool("PREFER_SCREENSHOTS", "false")
    )
    extraction_max_time: float = field(
        default_factory=lambda: float(os.environ.get("EXTRACTION_MAX_TIME", "8.0"))
    )

    # ------------------------------------------------------------------
    # PDF assembly
    # ------------------------------------------------------------------
    pdf_page_width: float = field(
        default_factory=lambda: float(os.environ.get("PDF_PAGE_WIDTH", "595.28"))
    )
    pdf_fallback_height: float = field(
        default_factory=lambda: float(os.environ.get("PDF_FALLBACK_HEIGHT", "841.89"))
    )

    # ------------------------------------------------------------------
    # Process
    # ------------------------------------------------------------------
    request_max_duration: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_MAX_DURATION", "60"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    @property
    def navigation_timeout_ms(self) -> int:
        """Navigation budget in milliseconds, clamped to the 30-60 s window."""
        return int(min(max(self.navigation_timeout, 30.0), 60.0) * 1000)

    @property
    def extraction_budget(self) -> float:
        """Seconds the extractor may spend across all of its strategies.

        Capped by ``extraction_max_time`` and by whatever ``request_max_duration``
        leaves once navigation, the container wait and the scroll have used their
        full caps and the teardown reserve is set aside.  Never below one second.
        """
        spent = (
            self.navigation_timeout_ms / 1000
            + self.container_wait_timeout
            + self.scroll_max_time
            + _TEARDOWN_RESERVE
        )
        return max(1.0, min(self.extraction_max_time, self.request_max_duration - spent))

    @property
    def jpeg_quality(self) -> int:
        """``image_quality`` on Pillow's and Playwright's 1-100 scale."""
        return max(1, min(100, int(round(self.image_quality * 100))))


# Module-level singleton; import this everywhere:
#   from docpdf.config import settings
settings = Settings()
