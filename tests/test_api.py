"""Tests for the /download and /health API endpoints.

The TestClient lifespan installs the real browser factory; each test swaps
it for one returning a ``FakeSession`` so no browser is ever launched.
"""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from docpdf.api.app import create_app

from fakes import FakePage, FakeSession, data_url, jpeg_bytes

URL = "https://www.studocu.com/row/document/some-university/some-course/lecture-notes-week-1/123456"


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    app = create_app()
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


def _install(client: TestClient, page: FakePage) -> list[FakeSession]:
    """Route session creation to a fake; returns the list of sessions handed out."""
    sessions: list[FakeSession] = []

    def factory(config):
        session = FakeSession(page)
        sessions.append(session)
        return session

    client.app.state.session_factory = factory
    return sessions


class TestDownload:
    def test_returns_pdf_attachment(self, client: TestClient) -> None:
        page = FakePage(
            container_images=[data_url(jpeg_bytes()), data_url(jpeg_bytes())],
            scroll_height=lambda s: 100,
        )
        sessions = _install(client, page)

        resp = client.post("/download", json={"url": URL})

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-disposition"] == (
            'attachment; filename="lecture-notes-week-1.pdf"'
        )
        assert resp.headers["x-page-count"] == "2"
        assert resp.content.startswith(b"%PDF")
        assert [s.close_calls for s in sessions] == [1]

    def test_foreign_host_is_rejected_without_a_browser(self, client: TestClient) -> None:
        sessions = _install(client, FakePage())

        resp = client.post("/download", json={"url": "https://example.com/document/x"})

        assert resp.status_code == 400
        assert resp.json()["category"] == "invalid_input"
        assert sessions == []

    def test_missing_url(self, client: TestClient) -> None:
        sessions = _install(client, FakePage())

        resp = client.post("/download", json={})

        assert resp.status_code == 400
        assert resp.json() == {"error": "URL is required", "category": "invalid_input"}
        assert sessions == []

    def test_malformed_body(self, client: TestClient) -> None:
        resp = client.post(
            "/download",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["category"] == "invalid_input"

    def test_no_content_is_404(self, client: TestClient) -> None:
        sessions = _install(client, FakePage(scroll_height=lambda s: 100))

        resp = client.post("/download", json={"url": URL})

        assert resp.status_code == 404
        assert resp.json() == {"error": "No content found.", "category": "no_content"}
        assert [s.close_calls for s in sessions] == [1]

    def test_navigation_timeout_is_500(self, client: TestClient) -> None:
        sessions = _install(client, FakePage(goto_error=TimeoutError("Timeout 30000ms exceeded")))

        resp = client.post("/download", json={"url": URL})

        assert resp.status_code == 500
        assert resp.json()["category"] == "navigation_timeout"
        assert [s.close_calls for s in sessions] == [1]

    def test_unexpected_failure_includes_message(self, client: TestClient) -> None:
        page = FakePage(evaluate_error=RuntimeError("boom"), scroll_height=lambda s: 100)
        sessions = _install(client, page)

        resp = client.post("/download", json={"url": URL})

        assert resp.status_code == 500
        body = resp.json()
        assert body["category"] == "unexpected"
        assert "boom" in body["error"]
        assert [s.close_calls for s in sessions] == [1]


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
