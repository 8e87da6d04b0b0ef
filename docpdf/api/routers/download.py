"""Download endpoint — document URL in, PDF out.

Routes
------
POST /download    Body: {"url": "https://www.studocu.com/.../document/..."}

Success is the raw PDF with an ``attachment`` disposition.  Failures are
rendered by the app-level ``DownloaderError`` handler as
``{"error": ..., "category": ...}`` with status 400, 404 or 500.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from docpdf.pipeline import DocumentPipeline

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class DownloadRequest(BaseModel):
    # Left optional so a missing URL reaches the pipeline's own validation
    # and comes back as ``invalid_input`` rather than a 422.
    url: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
def download_endpoint(body: DownloadRequest, request: Request) -> Response:
    """Render the document in a headless browser and return it as one PDF.

    Runs synchronously; FastAPI executes it in its worker thread pool so each
    request drives its own browser on its own thread.
    """
    pipeline = DocumentPipeline(
        config=request.app.state.settings,
        session_factory=request.app.state.session_factory,
    )
    result = pipeline.run(body.url)
    return Response(
        content=result.pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Page-Count": str(result.page_count),
        },
    )
