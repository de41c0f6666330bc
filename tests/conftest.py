"""Shared fixtures: a loopback HTTP server standing in for the ingestion API."""

import base64
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

SHARED_KEY = base64.b64encode(b"test-workspace-key").decode("ascii")
CUSTOMER_ID = "00000000-test-workspace"


class _CaptureHandler(BaseHTTPRequestHandler):
    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length)
        self.server.received.append(
            {"path": self.path, "headers": self.headers, "body": body}
        )
        if self.server.delay:
            time.sleep(self.server.delay)
        status = self.server.statuses.pop(0) if self.server.statuses else 200
        self.send_response(status)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


@pytest.fixture
def ingest_server():
    """Start an HTTP server on an ephemeral port that records every POST.

    Set ``server.statuses`` to a list of status codes to return them in
    order, and ``server.delay`` to make responses slow.
    """
    server = HTTPServer(("127.0.0.1", 0), _CaptureHandler)
    server.received = []
    server.statuses = []
    server.delay = 0.0
    server.endpoint = "http://127.0.0.1:%d" % server.server_address[1]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


class RecordingShip:
    """Callable stand-in for OmsShipper.ship that records each batch."""

    def __init__(self, result=True):
        self.calls = []
        self.result = result
        self.closed = False
        self._lock = threading.Lock()

    def __call__(self, log_type, entries):
        with self._lock:
            self.calls.append((log_type, list(entries)))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    # Lets the same object pose as a shipper for OmsLogSink.
    def ship(self, log_type, entries):
        return self(log_type, entries)

    def close(self):
        self.closed = True

    def by_type(self) -> dict:
        grouped = {}
        for log_type, entries in self.calls:
            grouped.setdefault(log_type, []).extend(entries)
        return grouped


@pytest.fixture
def recording_ship():
    return RecordingShip()
