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
"""Tests for HttpxTransport: the default TransportPort adapter."""

import httpx
import pytest

from chainreq.client.adapters.httpx_adapter import HttpxTransport
from chainreq.client.ports.outbound import Exchange, OutgoingRequest, TransportPort
from chainreq.core.context import RequestContext
from chainreq.kernel.exceptions import (
    RequestCancelledException,
    RequestTimeoutException,
    ResponseReadException,
    TransportException,
)


def _transport(handler):
    return HttpxTransport(httpx.MockTransport(handler))


class TestHttpxTransportConformance:
    def test_implements_transport_port(self):
        assert isinstance(HttpxTransport(), TransportPort)

    def test_exchange_implements_port(self):
        exchange = _transport(lambda r: httpx.Response(204)).send(OutgoingRequest("GET", "http://example.com/"))
        assert isinstance(exchange, Exchange)
        exchange.close()


class TestHttpxTransportSend:
    def test_headers_and_body_are_sent(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="pong")

        exchange = _transport(handler).send(
            OutgoingRequest("POST", "http://example.com/ping", headers=[("X-Id", "1")], body=b"ping")
        )
        assert exchange.response.status_code == 200
        assert exchange.read() == b"pong"
        assert seen[0].headers["x-id"] == "1"
        assert seen[0].content == b"ping"

    def test_connect_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportException, match="send request failed: refused"):
            _transport(handler).send(OutgoingRequest("GET", "http://example.com/"))

    def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(RequestTimeoutException) as exc_info:
            _transport(handler).send(OutgoingRequest("GET", "http://example.com/", timeout=0.1))
        assert exc_info.value.code == "TIMEOUT"

    def test_read_failure(self):
        class BrokenStream(httpx.SyncByteStream):
            def __iter__(self):
                yield b"partial"
                raise httpx.ReadError("connection reset")

        exchange = _transport(lambda r: httpx.Response(200, stream=BrokenStream())).send(
            OutgoingRequest("GET", "http://example.com/")
        )
        with pytest.raises(ResponseReadException, match="read response failed"):
            exchange.read()

    def test_cancelled_before_read(self):
        ctx = RequestContext.background().with_cancel()
        exchange = _transport(lambda r: httpx.Response(200, text="body")).send(
            OutgoingRequest("GET", "http://example.com/", context=ctx)
        )
        ctx.cancel()
        with pytest.raises(RequestCancelledException, match="read response failed: context canceled"):
            exchange.read()

    def test_redirects_not_followed(self):
        def handler(request):
            return httpx.Response(301, headers={"Location": "http://example.com/new"})

        exchange = _transport(handler).send(
            OutgoingRequest("GET", "http://example.com/old", follow_redirects=False)
        )
        assert exchange.response.status_code == 301
        exchange.close()
