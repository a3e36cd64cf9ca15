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
"""Outbound port: the transport performing one HTTP round-trip."""

from __future__ import annotations

from dataclasses import dataclass, field
from http.cookiejar import CookieJar
from typing import Protocol, runtime_checkable

import httpx

from chainreq.client.body import Body
from chainreq.core.context import RequestContext


@dataclass(frozen=True)
class OutgoingRequest:
    """Everything the transport needs to perform one round-trip."""

    method: str
    url: str
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: Body | None = None
    timeout: float | None = None
    verify: bool = True
    follow_redirects: bool = True
    cookie_jar: CookieJar | None = None
    context: RequestContext | None = None


@runtime_checkable
class Exchange(Protocol):
    """A completed round-trip whose body may not have been read yet."""

    @property
    def response(self) -> httpx.Response: ...

    def read(self) -> bytes: ...

    def close(self) -> None: ...


@runtime_checkable
class TransportPort(Protocol):
    """Abstract HTTP transport."""

    def send(self, request: OutgoingRequest) -> Exchange: ...
