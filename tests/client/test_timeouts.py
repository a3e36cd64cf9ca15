# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for timeouts against a real server that answers slowly."""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from chainreq.client.request import Request
from chainreq.core.context import RequestContext
from chainreq.kernel.exceptions import RequestTimeoutException

_DRIP_INTERVAL = 0.3


class _SlowHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == "/slow-headers":
            time.sleep(_DRIP_INTERVAL * 4)
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", "6")
        self.end_headers()
        self.wfile.flush()
        try:
            for _ in range(6):
                if self.path == "/drip":
                    time.sleep(_DRIP_INTERVAL)
                self.wfile.write(b"x")
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def slow_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _SlowHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


class TestSlowServer:
    def test_fast_body_within_timeout(self, slow_server):
        assert Request("GET", f"{slow_server}/fast").with_timeout(5).content() == b"xxxxxx"

    def test_dripping_body_exceeds_timeout(self, slow_server):
        req = Request("GET", f"{slow_server}/drip").with_timeout(0.5)

        started = time.monotonic()
        with pytest.raises(RequestTimeoutException, match="timeout exceeded"):
            req.content()
        assert time.monotonic() - started < _DRIP_INTERVAL * 6

        assert req.must_text() == ""
        assert req.must_content() == b""
        assert isinstance(req.error, RequestTimeoutException)

    def test_slow_headers_exceed_timeout(self, slow_server):
        req = Request("GET", f"{slow_server}/slow-headers").with_timeout(0.3)
        with pytest.raises(RequestTimeoutException):
            req.status_code()
        assert req.must_text() == ""
        assert req.must_content() == b""

    def test_context_deadline_bounds_body_read(self, slow_server):
        ctx = RequestContext.background().with_timeout(0.5)
        req = Request("GET", f"{slow_server}/drip").with_context(ctx)
        with pytest.raises(RequestTimeoutException, match="context deadline exceeded"):
            req.text()
