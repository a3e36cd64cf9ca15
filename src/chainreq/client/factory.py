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
"""Factory: builds Requests with a fixed list of options applied."""

from __future__ import annotations

from chainreq.client.options import (
    RequestOption,
    with_base_url,
    with_headers,
    with_ignore_ssl,
    with_redirect,
    with_timeout,
    with_user_agent,
)
from chainreq.client.request import Request
from chainreq.config.properties.request import RequestProperties
from chainreq.core.config import Config
from chainreq.kernel.exceptions import ChainreqException


def apply_options(request: Request, options: tuple[RequestOption, ...]) -> Request:
    """Apply *options* in order, stopping at the first one that fails."""
    for option in options:
        if request.error is not None:
            break
        try:
            option(request)
        except ChainreqException as exc:
            request.set_error(exc)
            break
    return request


class Factory:
    """Produces Requests sharing the same options.

    A factory keeps no state between requests: no cookie persistence and no
    deduplication. Use a :class:`~chainreq.client.session.Session` for
    cookies carried across requests.
    """

    def __init__(self, *options: RequestOption) -> None:
        self._options = options

    @property
    def options(self) -> tuple[RequestOption, ...]:
        return self._options

    @classmethod
    def from_config(cls, config: Config, *options: RequestOption) -> Factory:
        """Build a factory from the ``chainreq.request`` section of *config*.

        Extra *options* are applied after the configured defaults.
        """
        props = config.bind(RequestProperties)
        configured: list[RequestOption] = [
            with_ignore_ssl(props.ignore_ssl),
            with_redirect(props.follow_redirects),
        ]
        if props.timeout:
            configured.append(with_timeout(props.timeout))
        if props.base_url:
            configured.append(with_base_url(props.base_url))
        if props.user_agent:
            configured.append(with_user_agent(props.user_agent))
        if props.headers:
            configured.append(with_headers({str(k): str(v) for k, v in props.headers.items()}))
        return cls(*configured, *options)

    def new(self, method: str, url: str) -> Request:
        return apply_options(Request(method, url), self._options)


def new_factory(*options: RequestOption) -> Factory:
    return Factory(*options)
