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
"""httpx-based transport adapter.

httpx timeouts bound each socket operation, not the whole exchange. The
request timeout is therefore also tracked as a deadline taken when the
round-trip starts and checked after the send and after every body chunk.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import IO

import httpx

from chainreq.client.ports.outbound import OutgoingRequest
from chainreq.kernel.exceptions import (
    ChainreqException,
    RequestBuildException,
    RequestTimeoutException,
    ResponseReadException,
    TransportException,
)

_CHUNK_SIZE = 64 * 1024


class HttpxExchange:
    """A streamed httpx response plus the client that owns its connection."""

    def __init__(
        self,
        client: httpx.Client,
        response: httpx.Response,
        request: OutgoingRequest,
        deadline: float | None = None,
    ) -> None:
        self._client = client
        self._response = response
        self._request = request
        self._deadline = deadline

    @property
    def response(self) -> httpx.Response:
        return self._response

    def read(self) -> bytes:
        """Read the whole body, then release the connection."""
        context = self._request.context
        release = context.on_cancel(self.close) if context is not None else _noop
        try:
            _raise_for_context(self._request, "read response")
            chunks: list[bytes] = []
            for chunk in self._response.iter_bytes():
                chunks.append(chunk)
                _raise_for_deadline(self._deadline, self._request, "read response")
            _raise_for_deadline(self._deadline, self._request, "read response")
            _raise_for_context(self._request, "read response")
            return b"".join(chunks)
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise _translate(exc, self._request, "read response") from exc
        finally:
            release()
            self.close()

    def close(self) -> None:
        self._response.close()
        self._client.close()


class HttpxTransport:
    """Transport backed by one short-lived httpx.Client per round-trip.

    Args:
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
        max_redirects: Redirect limit when redirects are followed.
    """

    def __init__(
        self,
        transport: httpx.BaseTransport | None = None,
        max_redirects: int = 10,
    ) -> None:
        self._transport = transport
        self._max_redirects = max_redirects

    def send(self, request: OutgoingRequest) -> HttpxExchange:
        _raise_for_context(request, "send request")
        deadline = time.monotonic() + request.timeout if request.timeout else None
        client = httpx.Client(
            verify=request.verify,
            cookies=request.cookie_jar,
            timeout=httpx.Timeout(request.timeout),
            transport=self._transport,
            max_redirects=self._max_redirects,
        )
        context = request.context
        release = context.on_cancel(client.close) if context is not None else _noop
        try:
            outgoing = client.build_request(
                request.method,
                request.url,
                headers=request.headers,
                content=_content(request.body),
            )
            response = client.send(outgoing, stream=True, follow_redirects=request.follow_redirects)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            client.close()
            raise _translate(exc, request, "send request") from exc
        except RuntimeError as exc:
            # httpx refuses to send once a cancellation has closed the client.
            client.close()
            error = context.error() if context is not None else None
            if error is None:
                raise
            raise _annotate(error, request, "send request") from exc
        finally:
            release()

        exchange = HttpxExchange(client, response, request, deadline)
        try:
            _raise_for_context(request, "send request")
            _raise_for_deadline(deadline, request, "send request")
        except ChainreqException:
            exchange.close()
            raise
        return exchange


def _noop() -> None:
    pass


def _content(body: bytes | IO[bytes] | None) -> bytes | Iterator[bytes] | None:
    if body is None or isinstance(body, bytes):
        return body
    return _iter_stream(body)


def _iter_stream(stream: IO[bytes]) -> Iterator[bytes]:
    while chunk := stream.read(_CHUNK_SIZE):
        yield chunk


def _raise_for_context(request: OutgoingRequest, action: str) -> None:
    if request.context is None:
        return
    error = request.context.error()
    if error is not None:
        raise _annotate(error, request, action)


def _raise_for_deadline(deadline: float | None, request: OutgoingRequest, action: str) -> None:
    if deadline is None or time.monotonic() < deadline:
        return
    error = request.context.error() if request.context is not None else None
    if error is not None:
        raise _annotate(error, request, action)
    raise RequestTimeoutException(
        f"[chainreq] {request.method} {request.url} {action} failed: timeout exceeded ({request.timeout}s)",
        code="TIMEOUT",
        context={"method": request.method, "url": request.url},
    )


def _annotate(error: ChainreqException, request: OutgoingRequest, action: str) -> ChainreqException:
    return type(error)(
        f"[chainreq] {request.method} {request.url} {action} failed: {error}",
        code=error.code,
        context={"method": request.method, "url": request.url},
    )


def _translate(exc: Exception, request: OutgoingRequest, action: str) -> ChainreqException:
    """Classify an httpx failure, preferring the context's own verdict."""
    context = {"method": request.method, "url": request.url}
    prefix = f"[chainreq] {request.method} {request.url} {action} failed"

    if request.context is not None:
        error = request.context.error()
        if error is not None:
            return _annotate(error, request, action)

    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutException(
            f"{prefix}: timeout exceeded ({type(exc).__name__}: {exc})",
            code="TIMEOUT",
            context=context,
        )
    if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return RequestBuildException(f"{prefix}: {exc}", context=context)
    if action == "read response":
        return ResponseReadException(f"{prefix}: {exc}", context=context)
    return TransportException(f"{prefix}: {exc}", context=context)
