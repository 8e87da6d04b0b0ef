"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from docpdf.api import app

    uvicorn docpdf.api:app --reload
"""

from docpdf.api.app import app

__all__ = ["app"]
