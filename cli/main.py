"""docpdf CLI — entry-point for running the pipeline outside the API.

Usage:
    python cli/main.py --help

Commands:
    download  → fetch a document and write it as a PDF
    probe     → count extractable pages without building a PDF
    serve     → run the HTTP API under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from docpdf.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import dataclasses
from typing import Optional

import typer

from docpdf.config import settings
from docpdf.errors import DownloaderError
from docpdf.utils.logging import configure_logging

app = typer.Typer(
    name="docpdf",
    help="Save a web document viewer's pages as a single PDF.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level)


# ---------------------------------------------------------------------------
# download
# ---------------------------------------------------------------------------
@app.command("download")
def download(
    url: str = typer.Option(..., help="Document URL."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Where to write the PDF (default: ./<slug>.pdf)."
    ),
) -> None:
    """Render a document and save it as a PDF."""
    from docpdf.pipeline import download_document

    typer.echo(f"[download] Fetching {url!r} …")
    try:
        result = download_document(url)
    except DownloaderError as exc:
        typer.echo(f"[download] {exc.category}: {exc.message}", err=True)
        raise typer.Exit(1)

    target = output or Path(result.filename)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(result.pdf)
    size_mb = len(result.pdf) / 1024 / 1024
    typer.echo(f"[download] {result.page_count} pages, {size_mb:.2f} MB → {target}")


# ---------------------------------------------------------------------------
# probe
# ---------------------------------------------------------------------------
@app.command("probe")
def probe(
    url: str = typer.Option(..., help="Document URL."),
    headful: bool = typer.Option(
        False, "--headful", help="Open a visible local browser to watch the run."
    ),
) -> None:
    """Scroll a document and report how many pages carry extractable content."""
    from docpdf.pipeline import probe_document

    config = settings
    if headful:
        config = dataclasses.replace(settings, environment="development", headless=False)

    typer.echo(f"[probe] URL: {url}")
    try:
        report = probe_document(url, config=config)
    except DownloaderError as exc:
        typer.echo(f"[probe] {exc.category}: {exc.message}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[probe] Containers        : {report.containers}")
    typer.echo(f"[probe] With image content: {report.containers_with_content}")
    typer.echo(f"[probe] Canvases          : {report.canvases}")
    if report.content_count > 0:
        typer.echo(f"[probe] SUCCESS: found {report.content_count} pages/content items.")
    else:
        typer.echo("[probe] FAILURE: no content found.")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("docpdf.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
