"""Tests for the docpdf CLI commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from cli.main import app
from docpdf.config import settings
from docpdf.errors import InvalidInput, NoContentFound
from docpdf.pipeline import DownloadResult
from docpdf.scraper.models import ProbeReport

runner = CliRunner()

URL = "https://www.studocu.com/row/document/uni/course/exam-notes/42"


def test_download_writes_pdf(tmp_path: Path, monkeypatch) -> None:
    calls = []

    def fake_download(url):
        calls.append(url)
        return DownloadResult(pdf=b"%PDF-1.4 fake", filename="exam-notes.pdf", page_count=3)

    monkeypatch.setattr("docpdf.pipeline.download_document", fake_download)
    target = tmp_path / "out" / "notes.pdf"

    result = runner.invoke(app, ["download", "--url", URL, "--output", str(target)])

    assert result.exit_code == 0, result.output
    assert calls == [URL]
    assert target.read_bytes() == b"%PDF-1.4 fake"
    assert "3 pages" in result.output


def test_download_defaults_to_slug_filename(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "docpdf.pipeline.download_document",
        lambda url: DownloadResult(pdf=b"%PDF", filename="exam-notes.pdf", page_count=1),
    )

    result = runner.invoke(app, ["download", "--url", URL])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "exam-notes.pdf").read_bytes() == b"%PDF"


def test_download_reports_pipeline_errors(monkeypatch) -> None:
    def fake_download(url):
        raise NoContentFound("No content found.")

    monkeypatch.setattr("docpdf.pipeline.download_document", fake_download)

    result = runner.invoke(app, ["download", "--url", URL])

    assert result.exit_code == 1
    assert "no_content" in result.output


def test_probe_success(monkeypatch) -> None:
    seen = {}

    def fake_probe(url, config=None):
        seen["config"] = config
        return ProbeReport(url=url, containers=8, containers_with_content=7, canvases=0)

    monkeypatch.setattr("docpdf.pipeline.probe_document", fake_probe)

    result = runner.invoke(app, ["probe", "--url", URL])

    assert result.exit_code == 0, result.output
    assert "SUCCESS: found 7 pages" in result.output
    assert seen["config"] is settings


def test_probe_headful_switches_to_visible_local_browser(monkeypatch) -> None:
    seen = {}

    def fake_probe(url, config=None):
        seen["config"] = config
        return ProbeReport(url=url, containers=0, containers_with_content=0, canvases=2)

    monkeypatch.setattr("docpdf.pipeline.probe_document", fake_probe)

    result = runner.invoke(app, ["probe", "--url", URL, "--headful"])

    assert result.exit_code == 0, result.output
    assert seen["config"].is_development is True
    assert seen["config"].headless is False


def test_probe_without_content_fails(monkeypatch) -> None:
    monkeypatch.setattr(
        "docpdf.pipeline.probe_document",
        lambda url, config=None: ProbeReport(url, 3, 0, 0),
    )

    result = runner.invoke(app, ["probe", "--url", URL])

    assert result.exit_code == 1
    assert "FAILURE" in result.output


def test_probe_invalid_url(monkeypatch) -> None:
    def fake_probe(url, config=None):
        raise InvalidInput("URL must be a https://www.studocu.com/ document link")

    monkeypatch.setattr("docpdf.pipeline.probe_document", fake_probe)

    result = runner.invoke(app, ["probe", "--url", "https://example.com"])

    assert result.exit_code == 1
    assert "invalid_input" in result.output
