"""Scraper package — browser session, materialization & page image extraction."""

from docpdf.scraper.extractor import extract_page_images, probe_content
from docpdf.scraper.materializer import auto_scroll, materialize
from docpdf.scraper.models import Deadline, ProbeReport, ScrollBudget, ScrollResult
from docpdf.scraper.session import BrowserSession, launch_session

__all__ = [
    "launch_session",
    "BrowserSession",
    "materialize",
    "auto_scroll",
    "extract_page_images",
    "probe_content",
    "Deadline",
    "ScrollBudget",
    "ScrollResult",
    "ProbeReport",
]
