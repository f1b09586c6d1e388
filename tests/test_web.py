"""Tests for web module."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

# Skip all tests if FastAPI not installed
fastapi = pytest.importorskip("fastapi")

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

from work_session_tracker.csv_codec import NOT_CSV_ERROR  # noqa: E402
from work_session_tracker.grouping import GroupingEngine  # noqa: E402
from work_session_tracker.presenters import ChartPresenter, DashboardPresenter  # noqa: E402
from work_session_tracker.session_service import ServiceResult, SessionService  # noqa: E402
from work_session_tracker.storage import StorageManager  # noqa: E402
from work_session_tracker.web import create_app  # noqa: E402
from work_session_tracker.web.routes import (  # noqa: E402
    _placeholder_chart_svg,
    get_chart_presenter,
    get_dashboard_presenter,
    get_session_service,
)


@pytest.fixture
def app(storage: StorageManager) -> fastapi.FastAPI:
    """Dashboard app whose dependencies read the in-memory store.

    Business context:
    Every route builds its presenter or service per request. Overriding
    the three factories points all of them at the same MockFileSystem, so
    tests can seed sessions and inspect writes.
    """
    application = create_app()
    engine = GroupingEngine()
    application.dependency_overrides[get_session_service] = lambda: SessionService(
        storage, engine
    )
    application.dependency_overrides[get_dashboard_presenter] = lambda: DashboardPresenter(
        storage, engine
    )
    application.dependency_overrides[get_chart_presenter] = lambda: ChartPresenter(
        storage, engine
    )
    return application


@pytest.fixture
def client(app: fastapi.FastAPI) -> TestClient:
    """Create FastAPI test client for HTTP endpoint testing.

    Example:
        >>> response = client.get('/')
        >>> assert response.status_code == 200
    """
    from fastapi.testclient import TestClient as TC

    return TC(app)


class TestCreateApp:
    """Test suite for the application factory."""

    def test_title(self) -> None:
        assert create_app().title == "Work Session Tracker"

    def test_lifespan_logs_start_and_stop(
        self, app: fastapi.FastAPI, caplog: pytest.LogCaptureFixture
    ) -> None:
        from fastapi.testclient import TestClient as TC

        with caplog.at_level(logging.INFO), TC(app):
            pass
        assert "dashboard starting" in caplog.text
        assert "dashboard shutting down" in caplog.text


class TestCalendarPage:
    """Test suite for GET /."""

    def test_renders_requested_month(self, client: TestClient, storage, make_session) -> None:
        storage.upsert(make_session("Client call", date(2025, 3, 14), minutes=90))

        response = client.get("/", params={"month": "2025-03"})

        assert response.status_code == 200
        assert "March 2025" in response.text
        assert "Client call" in response.text
        assert 'href="/?month=2025-02"' in response.text
        assert 'href="/?month=2025-04"' in response.text
        assert "1.50" in response.text

    def test_malformed_month_falls_back(self, client: TestClient) -> None:
        response = client.get("/", params={"month": "soon"})
        assert response.status_code == 200
        assert date.today().strftime("%B %Y") in response.text

    def test_includes_form_and_import(self, client: TestClient) -> None:
        text = client.get("/").text
        assert 'hx-post="/api/sessions"' in text
        assert "Import CSV" in text

    def test_titles_are_escaped(self, client: TestClient, storage, make_session) -> None:
        storage.upsert(make_session("<b>bold</b>", date(2025, 3, 14)))
        text = client.get("/", params={"month": "2025-03"}).text
        assert "&lt;b&gt;bold&lt;/b&gt;" in text
        assert "<b>bold</b>" not in text

    def test_days_link_to_prefilled_add_form(self, client: TestClient) -> None:
        """Verifies clicking a day opens the add form with that date filled in.

        Assertion Strategy:
        The grid links each day to ?date=, and following the link renders
        the add form with the date input's value set.
        """
        grid = client.get("/", params={"month": "2025-03"}).text
        assert 'href="/?month=2025-03&date=2025-03-14#session-form"' in grid

        text = client.get("/", params={"month": "2025-03", "date": "2025-03-14"}).text
        assert "Add Session" in text
        assert 'name="date" type="date" value="2025-03-14"' in text
        assert 'name="id"' not in text

    def test_malformed_date_is_ignored(self, client: TestClient) -> None:
        text = client.get("/", params={"date": "14/03/2025"}).text
        assert 'name="date" type="date" value=""' in text

    def test_edit_prefills_form(self, client: TestClient, storage, make_session) -> None:
        session = make_session(
            "Client call",
            date(2025, 3, 14),
            start=(10, 0),
            minutes=90,
            project="Acme",
            tags=["a", "b"],
        )
        storage.upsert(session)

        text = client.get("/", params={"edit": session.id}).text

        assert "Edit Session" in text
        assert f'<input type="hidden" name="id" value="{session.id}">' in text
        assert 'value="Client call"' in text
        assert 'value="2025-03-14"' in text
        assert 'name="start" type="time" value="10:00"' in text
        assert 'name="end" type="time" value="11:30"' in text
        assert 'value="Acme"' in text
        assert 'value="a, b"' in text

    def test_unknown_edit_id_shows_add_form(self, client: TestClient) -> None:
        text = client.get("/", params={"edit": "missing"}).text
        assert "Add Session" in text
        assert 'name="id"' not in text


class TestListPage:
    def test_empty(self, client: TestClient) -> None:
        response = client.get("/list")
        assert response.status_code == 200
        assert "No sessions yet" in response.text

    def test_paginates(self, client: TestClient, storage, make_session) -> None:
        storage.upsert_many([make_session(f"S{i}", date(2025, 1, i + 1)) for i in range(6)])
        text = client.get("/list", params={"page": 2}).text
        assert "Page 2 of 2" in text
        assert "S0" in text
        assert "S5" not in text

    def test_rows_link_to_edit_form(self, client: TestClient, storage, make_session) -> None:
        session = make_session("Review", date(2025, 3, 14))
        storage.upsert(session)
        text = client.get("/list").text
        assert f'href="/?month=2025-03&edit={session.id}#session-form"' in text

    def test_clear_all_button(self, client: TestClient, storage, make_session) -> None:
        """Verifies the list offers a confirmed clear-all only when there is data."""
        assert 'hx-delete="/api/sessions"' not in client.get("/list").text

        storage.upsert(make_session())
        text = client.get("/list").text
        assert 'hx-delete="/api/sessions"' in text
        assert 'hx-confirm="Delete ALL sessions? This cannot be undone."' in text


class TestReportPage:
    """Test suite for GET /report."""

    def test_week_bucket(self, client: TestClient, storage, make_session) -> None:
        storage.upsert_many(
            [
                make_session("A", date(2025, 3, 10), minutes=90),
                make_session("B", date(2025, 3, 14), minutes=45),
            ]
        )
        text = client.get("/report", params={"period": "week"}).text
        assert "10/03/2025 → 16/03/2025" in text
        assert "2.25" in text
        assert "2 session(s)" in text

    def test_month_navigation(self, client: TestClient, storage, make_session) -> None:
        storage.upsert_many(
            [make_session("Jan", date(2025, 1, 5)), make_session("Feb", date(2025, 2, 5))]
        )
        text = client.get("/report", params={"period": "month", "index": 1}).text
        assert "January 2025" in text
        assert "index=0" in text

    def test_empty(self, client: TestClient) -> None:
        assert "No sessions yet" in client.get("/report?period=month").text

    def test_invalid_period(self, client: TestClient) -> None:
        assert client.get("/report", params={"period": "year"}).status_code == 400


class TestExportRoute:
    def test_empty_store_is_404(self, client: TestClient) -> None:
        response = client.get("/export.csv")
        assert response.status_code == 404
        assert response.json()["detail"] == "No sessions to export"

    def test_download(self, client: TestClient, storage, make_session) -> None:
        storage.upsert(make_session("Review", date(2025, 3, 14)))
        response = client.get("/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="time-tracking-')
        assert disposition.endswith('.csv"')
        assert '"2025-03-14","Review"' in response.text

    def test_missing_payload_is_500(self, app: fastapi.FastAPI) -> None:
        from fastapi.testclient import TestClient as TC

        service = MagicMock()
        service.export_csv.return_value = ServiceResult(
            success=True, message="Exported 1 session(s)"
        )
        app.dependency_overrides[get_session_service] = lambda: service

        response = TC(app).get("/export.csv")

        assert response.status_code == 500
        assert response.json()["detail"] == "Exported 1 session(s): no data returned"


class TestImportRoute:
    """Test suite for POST /api/import.

    Categories:
    1. Preview - Counts without writing (2 tests)
    2. Confirm - Commit accepted sessions (2 tests)
    3. Validation - Missing filename (1 test)
    """

    CSV = "Date,Title\n2025-01-06,A\n2025-01-07,B"

    def test_preview_does_not_write(self, client: TestClient, storage) -> None:
        response = client.post("/api/import", params={"filename": "a.csv"}, content=self.CSV)
        body = response.json()

        assert response.status_code == 200
        assert body["imported"] == 2
        assert body["committed"] is False
        assert storage.load_all() == []

    def test_non_csv_rejected(self, client: TestClient) -> None:
        body = client.post("/api/import", params={"filename": "a.txt"}, content="x").json()
        assert body["success"] is False
        assert body["errors"] == [NOT_CSV_ERROR]

    def test_confirm_commits(self, client: TestClient, storage) -> None:
        response = client.post(
            "/api/import",
            params={"filename": "a.csv", "confirm": "true"},
            content=self.CSV,
        )
        assert response.json()["committed"] is True
        assert [s.title for s in storage.load_all()] == ["A", "B"]

    def test_confirm_with_only_duplicates(
        self, client: TestClient, storage, make_session
    ) -> None:
        storage.upsert(make_session("A", date(2025, 1, 6)))
        body = client.post(
            "/api/import",
            params={"filename": "a.csv", "confirm": "true"},
            content="Date,Title\n2025-01-06,A",
        ).json()
        assert body["skipped"] == 1
        assert body["committed"] is False
        assert len(storage.load_all()) == 1

    def test_filename_required(self, client: TestClient) -> None:
        assert client.post("/api/import", content=self.CSV).status_code == 422


class TestChartRoute:
    def test_invalid_period(self, client: TestClient) -> None:
        assert client.get("/charts/hours.png", params={"period": "day"}).status_code == 400

    def test_falls_back_to_svg(self, app: fastapi.FastAPI) -> None:
        """Verifies an ImportError from rendering yields the SVG placeholder."""
        from fastapi.testclient import TestClient as TC

        presenter = MagicMock()
        presenter.render_hours_chart.side_effect = ImportError("matplotlib")
        app.dependency_overrides[get_chart_presenter] = lambda: presenter

        response = TC(app).get("/charts/hours.png", params={"period": "month"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/svg+xml"
        assert b"Hours per month" in response.content

    def test_png(self, app: fastapi.FastAPI) -> None:
        from fastapi.testclient import TestClient as TC

        presenter = MagicMock()
        presenter.render_hours_chart.return_value = b"\x89PNG fake"
        app.dependency_overrides[get_chart_presenter] = lambda: presenter

        response = TC(app).get("/charts/hours.png")

        assert response.headers["content-type"] == "image/png"
        presenter.render_hours_chart.assert_called_once_with("week")

    def test_placeholder_escapes_title(self) -> None:
        assert b"a &amp; b" in _placeholder_chart_svg("a & b")


class TestSessionsApi:
    """Test suite for /api/sessions."""

    def test_create(self, client: TestClient, storage) -> None:
        response = client.post(
            "/api/sessions",
            json={
                "title": "Client call",
                "date": "2025-03-14",
                "start": "09:00",
                "end": "10:30",
                "tags": "billing, calls",
            },
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Saved session: Client call"
        stored = storage.load_all()[0]
        assert stored.duration == 90
        assert stored.tags == ["billing", "calls"]

    def test_create_requires_title(self, client: TestClient) -> None:
        response = client.post("/api/sessions", json={"date": "2025-03-14"})
        assert response.status_code == 400
        assert response.json()["detail"] == "title is required"

    def test_edit_unknown_id_is_404(self, client: TestClient) -> None:
        response = client.post(
            "/api/sessions", json={"title": "X", "date": "2025-03-14", "id": "nope"}
        )
        assert response.status_code == 404

    def test_edit_replaces_in_place(self, client: TestClient, storage, make_session) -> None:
        session = make_session("Draft", date(2025, 3, 14))
        storage.upsert(session)

        response = client.post(
            "/api/sessions",
            json={
                "title": "Final",
                "date": "2025-03-15",
                "start": "10:00",
                "end": "11:00",
                "id": session.id,
            },
        )

        assert response.json()["message"] == "Updated session: Final"
        stored = storage.load_all()
        assert [(s.id, s.title, s.duration) for s in stored] == [(session.id, "Final", 60)]

    def test_list_newest_first(self, client: TestClient, storage, make_session) -> None:
        storage.upsert_many(
            [make_session("Old", date(2025, 1, 1)), make_session("New", date(2025, 2, 1))]
        )
        assert [s["title"] for s in client.get("/api/sessions").json()] == ["New", "Old"]

    def test_delete(self, client: TestClient, storage, make_session) -> None:
        session = make_session()
        storage.upsert(session)
        assert client.delete(f"/api/sessions/{session.id}").status_code == 200
        assert storage.load_all() == []

    def test_delete_unknown_is_404(self, client: TestClient) -> None:
        assert client.delete("/api/sessions/missing").status_code == 404

    def test_clear(self, client: TestClient, storage, make_session) -> None:
        storage.upsert_many([make_session(), make_session()])
        assert client.delete("/api/sessions").json()["success"] is True
        assert storage.load_all() == []


class TestReportsApi:
    def test_month_report(self, client: TestClient, storage, make_session) -> None:
        storage.upsert(make_session("A", date(2025, 3, 10), minutes=30))
        body = client.get("/api/reports/month").json()
        assert body["period"] == "month"
        assert body["total_hours"] == 0.5
        assert body["buckets"][0]["key"] == "03/2025"

    def test_invalid_period(self, client: TestClient) -> None:
        assert client.get("/api/reports/year").status_code == 400

    def test_missing_payload_is_500(self, app: fastapi.FastAPI) -> None:
        from fastapi.testclient import TestClient as TC

        service = MagicMock()
        service.report.return_value = ServiceResult(success=True, message="0 week bucket(s)")
        app.dependency_overrides[get_session_service] = lambda: service

        assert TC(app).get("/api/reports/week").status_code == 500
