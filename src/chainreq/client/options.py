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
"""Request options: reusable configuration applied by a Factory or Session.

An option is any callable taking a :class:`Request`. The helpers below wrap
the matching ``Request.with_*`` call so a fixed set of options can be applied
to every request a factory produces::

    factory = new_factory(with_timeout(5), with_user_agent("crawler/1.0"))
    factory.new("GET", "https://example.com").text()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import timedelta
from typing import TYPE_CHECKING

from chainreq.core.context import RequestContext
from chainreq.logging.port import RequestLogger

if TYPE_CHECKING:
    from chainreq.client.ports.outbound import TransportPort
    from chainreq.client.request import Request

RequestOption = Callable[["Request"], None]


def with_logger(logger: RequestLogger) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_logger(logger)

    return apply


def with_timeout(timeout: timedelta | float | None) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_timeout(timeout)

    return apply


def with_header(key: str, value: str) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_header(key, value)

    return apply


def with_headers(headers: Mapping[str, str]) -> RequestOption:
    frozen = dict(headers)

    def apply(request: Request) -> None:
        request.with_headers(frozen)

    return apply


def with_user_agent(user_agent: str) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_user_agent(user_agent)

    return apply


def with_ignore_ssl(ignore: bool = True) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_ignore_ssl(ignore)

    return apply


def with_redirect(follow: bool) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_redirect(follow)

    return apply


def with_base_url(base_url: str) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_base_url(base_url)

    return apply


def with_transport(transport: TransportPort) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_transport(transport)

    return apply


def with_context(context: RequestContext) -> RequestOption:
    def apply(request: Request) -> None:
        request.with_context(context)

    return apply
