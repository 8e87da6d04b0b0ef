"""Error taxonomy for the download pipeline.

Every request-level failure is a :class:`DownloaderError` subclass carrying a
machine-readable ``category`` and the HTTP status it maps to.
:class:`PerImageFailure` is the one exception that never leaves the pipeline:
the extractor and assembler catch it and drop the affected page.
"""

from __future__ import annotations


class DownloaderError(Exception):
    """Base class for failures surfaced to the caller."""

    category: str = "unexpected"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "category": self.category}


class InvalidInput(DownloaderError):
    """Missing or malformed document reference."""

    category = "invalid_input"
    status_code = 400


class LaunchFailure(DownloaderError):
    """The browser session could not be created."""

    category = "launch_failure"
    status_code = 500


class NavigationTimeout(DownloaderError):
    """The target did not load or parse within its budget."""

    category = "navigation_timeout"
    status_code = 500


class NoContentFound(DownloaderError):
    """The document rendered but yielded zero page images."""

    category = "no_content"
    status_code = 404


class UnexpectedFailure(DownloaderError):
    """Any other failure, wrapped at the orchestrator boundary."""

    category = "unexpected"
    status_code = 500


class PerImageFailure(Exception):
    """A single page image could not be fetched, decoded, encoded or placed."""
