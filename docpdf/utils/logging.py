from __future__ import annotations

import logging
import os


def configure_logging(level: str | None = None) -> None:
    """
    Configure logging defaults for the API server and the CLI.

    Goals:
    - Keep pipeline stage logs visible at INFO.
    - Avoid noisy third-party logs (image codecs, PDF writer, HTTP client).
    - Keep configuration idempotent so uvicorn or a host can override it safely.
    """
    root = logging.getLogger()

    # Only set up basicConfig if nothing configured yet (common for scripts).
    if not root.handlers:
        name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
        logging.basicConfig(
            level=getattr(logging, name, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    noisy_loggers = (
        "asyncio",
        "PIL",
        "pypdf",
        "httpx",
        "httpcore",
    )
    for name in noisy_loggers:
        # `asyncio` can emit noisy warnings about slow callbacks in worker threads.
        level_for = logging.ERROR if name == "asyncio" else logging.WARNING
        logging.getLogger(name).setLevel(level_for)
