"""Shared helpers."""

from docpdf.utils.logging import configure_logging

__all__ = ["configure_logging"]
