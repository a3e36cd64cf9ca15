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
"""Shared fixtures: an in-memory HTTP server behind the real httpx transport."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from chainreq.client.adapters.httpx_adapter import HttpxTransport
from chainreq.client.ports.outbound import Exchange, OutgoingRequest

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingExchange:
    def __init__(self, owner: RecordingTransport, inner: Exchange) -> None:
        self._owner = owner
        self._inner = inner

    @property
    def response(self) -> httpx.Response:
        return self._inner.response

    def read(self) -> bytes:
        with self._owner._lock:
            self._owner.reads += 1
        return self._inner.read()

    def close(self) -> None:
        self._inner.close()


class RecordingTransport:
    """HttpxTransport over httpx.MockTransport, counting round-trips and reads."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[OutgoingRequest] = []
        self.seen: list[httpx.Request] = []
        self.reads = 0
        self._lock = threading.Lock()
        self._handler = handler
        self._inner = HttpxTransport(httpx.MockTransport(self._record))

    @property
    def sends(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.seen[-1]

    def send(self, request: OutgoingRequest) -> Exchange:
        with self._lock:
            self.requests.append(request)
        return RecordingExchange(self, self._inner.send(request))

    def _record(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.seen.append(request)
        return self._handler(request)


class RecordingLogger:
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.errors: list[str] = []

    def info(self, context: Any, message: str, *args: Any) -> None:
        self.infos.append(message % args)

    def error(self, context: Any, message: str, *args: Any) -> None:
        self.errors.append(message % args)


@pytest.fixture
def make_transport() -> Callable[[Handler], RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def ok_transport() -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(200, text="ok"))


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
