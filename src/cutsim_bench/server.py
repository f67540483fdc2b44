"""
HTTP server for the benchmark report.

Routes:

- ``GET /api/compare?r1=&r2=&sort=``       comparison of all categories
- ``GET /api/revisions``                   known revisions
- ``GET /api/file/<category>?id=``         history of one testcase
- ``GET /api/all/<metric_key>?r1=&r2=``    one metric for all testcases
- ``GET /static/<path>``                   files from the static directory
"""

from __future__ import annotations

import json
import logging
import mimetypes
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

from .api import ReportService

logger = logging.getLogger(__name__)

STATIC_MAX_AGE = 86400


class ReportRequestHandler(BaseHTTPRequestHandler):
    """Dispatches report requests to the :class:`ReportService` of the server."""

    server: ReportServer

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        params = parse_qs(url.query)
        parts = [unquote(p) for p in url.path.split("/") if p]
        service = self.server.service

        if parts[:1] == ["static"]:
            self.send_static("/".join(parts[1:]))
            return

        if parts == ["api", "compare"]:
            status, payload = service.handle(service.comparison, params)
        elif parts == ["api", "revisions"]:
            status, payload = service.handle(service.revisions, params)
        elif len(parts) == 3 and parts[:2] == ["api", "file"]:
            status, payload = service.handle(service.testcase_series, parts[2], params)
        elif len(parts) == 3 and parts[:2] == ["api", "all"]:
            status, payload = service.handle(service.metric_series, parts[2], params)
        else:
            status, payload = HTTPStatus.NOT_FOUND, {
                "error_type": "NOT_FOUND",
                "message": f"No route for {url.path}",
                "suggestions": [],
                "context": {},
            }
        self.send_json(payload, status)

    def send_json(self, data: Any, status: int = HTTPStatus.OK) -> None:
        body = json.dumps(data).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def send_static(self, relative: str) -> None:
        root = self.server.static_dir
        if root is None:
            self.send_error(HTTPStatus.NOT_FOUND)
            return
        root = root.resolve()
        path = (root / relative).resolve()
        if not path.is_relative_to(root) or not path.is_file():
            self.send_error(HTTPStatus.NOT_FOUND)
            return

        body = path.read_bytes()
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", f"max-age={STATIC_MAX_AGE}")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


class ReportServer(ThreadingHTTPServer):
    """Threaded HTTP server sharing one :class:`ReportService` across requests."""

    daemon_threads = True

    def __init__(
        self,
        address: tuple[str, int],
        service: ReportService,
        static_dir: Path | None = None,
    ):
        super().__init__(address, ReportRequestHandler)
        self.service = service
        self.static_dir = static_dir


def serve(
    service: ReportService,
    host: str = "127.0.0.1",
    port: int = 8000,
    static_dir: Path | None = None,
) -> None:
    """Run the report server until interrupted."""
    with ReportServer((host, port), service, static_dir) as httpd:
        logger.info("Serving benchmark report on http://%s:%d", host, httpd.server_address[1])
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
