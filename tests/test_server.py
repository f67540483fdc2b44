"""Tests for the HTTP report server."""

import json
import threading
import urllib.error
import urllib.request
from contextlib import contextmanager

import pytest

from cutsim_bench.api import ReportService
from cutsim_bench.server import ReportServer
from cutsim_bench.store import InMemoryStore


@pytest.fixture
def static_dir(tmp_path):
    root = tmp_path / "static"
    root.mkdir()
    (root / "report.js").write_text("console.log('report');\n")
    (tmp_path / "secret.txt").write_text("not served\n")
    return root


@contextmanager
def running_server(service, static_dir):
    """Run a ReportServer on an ephemeral port and yield its base URL."""
    server = ReportServer(("127.0.0.1", 0), service, static_dir)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture
def base_url(sqlite_store, static_dir):
    with running_server(ReportService(sqlite_store), static_dir) as url:
        yield url


# Bypass any proxy configured in the environment
_opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))


def _get(url):
    """Return (status, headers, body) without raising on error statuses."""
    try:
        with _opener.open(url, timeout=5) as response:
            return response.status, response.headers, response.read()
    except urllib.error.HTTPError as e:
        with e:
            return e.code, e.headers, e.read()


def _get_json(url):
    status, headers, body = _get(url)
    assert headers["Content-Type"] == "application/json"
    return status, json.loads(body)


class TestApiRoutes:
    """Test the JSON routes."""

    def test_revisions(self, base_url):
        status, data = _get_json(f"{base_url}/api/revisions")
        assert status == 200
        assert data == {"revisions": [800001, 800002]}

    def test_compare(self, base_url):
        status, data = _get_json(f"{base_url}/api/compare?r1=800001&r2=800002&sort=name")
        assert status == 200
        assert [row["name"] for row in data["rows_by_category"]["csb"]] == [
            "alpha.csb",
            "beta.csb",
        ]

    def test_compare_sort_with_space(self, base_url):
        status, data = _get_json(f"{base_url}/api/compare?sort=draw%20time")
        assert status == 200
        assert data["sort"] == "draw time"

    def test_compare_bad_revision(self, base_url):
        status, data = _get_json(f"{base_url}/api/compare?r1=abc")
        assert status == 400
        assert data["error_type"] == "REQUEST_ERROR"

    def test_compare_revision_too_large(self, base_url):
        """Revisions beyond SQLite's integer range are rejected with 400."""
        status, data = _get_json(f"{base_url}/api/compare?r1=99999999999999999999999&r2=800002")
        assert status == 400
        assert data["error_type"] == "REQUEST_ERROR"
        assert data["message"].count("r1:") == 1

    def test_all_series_revision_too_large(self, base_url):
        status, data = _get_json(f"{base_url}/api/all/csb_memory?r1=0&r2=9223372036854775808")
        assert status == 400
        assert data["error_type"] == "REQUEST_ERROR"

    def test_all_series_largest_revision(self, base_url):
        status, data = _get_json(f"{base_url}/api/all/csb_memory?r1=800001&r2=9223372036854775807")
        assert status == 200
        assert data["labels"] == [800001, 800002]

    def test_file_series(self, base_url):
        status, data = _get_json(f"{base_url}/api/file/csb?id=%25alpha.csb")
        assert status == 200
        assert data["labels"] == [800001, 800002]
        assert data["datasets"][0]["data"][0] == {"x": 800001, "y": 1.0, "v": 100.0}

    def test_file_series_unknown_category(self, base_url):
        status, data = _get_json(f"{base_url}/api/file/stl?id=x")
        assert status == 400
        assert data["error_type"] == "UNSUPPORTED_CATEGORY"

    def test_all_series(self, base_url):
        status, data = _get_json(f"{base_url}/api/all/ini_cut_time?r1=800001&r2=800002")
        assert status == 200
        assert [d["label"] for d in data["datasets"]] == ["face.ini", "old.ini", "pocket.ini"]

    def test_unknown_route(self, base_url):
        status, data = _get_json(f"{base_url}/api/nothing")
        assert status == 404
        assert data["error_type"] == "NOT_FOUND"


class BrokenStore(InMemoryStore):
    def revisions(self, table, floor=0):
        raise RuntimeError("disk on fire")


class TestUnexpectedErrors:
    """Errors outside the package hierarchy still get a JSON reply."""

    def test_internal_error_response(self, static_dir):
        with running_server(ReportService(BrokenStore()), static_dir) as url:
            status, data = _get_json(f"{url}/api/revisions")
        assert status == 500
        assert data["error_type"] == "INTERNAL_ERROR"
        assert data["message"] == "disk on fire"

    def test_server_keeps_serving(self, static_dir):
        with running_server(ReportService(BrokenStore()), static_dir) as url:
            _get_json(f"{url}/api/revisions")
            status, _, body = _get(f"{url}/static/report.js")
        assert status == 200
        assert body == b"console.log('report');\n"


class TestStaticFiles:
    """Test /static."""

    def test_serves_file_with_cache_header(self, base_url):
        status, headers, body = _get(f"{base_url}/static/report.js")
        assert status == 200
        assert body == b"console.log('report');\n"
        assert headers["Cache-Control"] == "max-age=86400"

    def test_missing_file(self, base_url):
        status, _, _ = _get(f"{base_url}/static/missing.js")
        assert status == 404

    def test_no_escape_from_static_dir(self, base_url):
        status, _, _ = _get(f"{base_url}/static/..%2Fsecret.txt")
        assert status == 404
