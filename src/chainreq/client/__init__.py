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
"""chainreq client: chainable, lazily executed HTTP requests."""

from chainreq.client.cookies import PersistentCookieStore
from chainreq.client.factory import Factory, new_factory
from chainreq.client.options import (
    RequestOption,
    with_base_url,
    with_context,
    with_header,
    with_headers,
    with_ignore_ssl,
    with_logger,
    with_redirect,
    with_timeout,
    with_transport,
    with_user_agent,
)
from chainreq.client.ports.outbound import Exchange, OutgoingRequest, TransportPort
from chainreq.client.query import query_field, query_params
from chainreq.client.request import DEFAULT_USER_AGENT, Request
from chainreq.client.session import Session, SessionRegistry, default_registry, new_session

__all__ = [
    "DEFAULT_USER_AGENT",
    "Exchange",
    "Factory",
    "OutgoingRequest",
    "PersistentCookieStore",
    "Request",
    "RequestOption",
    "Session",
    "SessionRegistry",
    "TransportPort",
    "default_registry",
    "new_factory",
    "new_session",
    "query_field",
    "query_params",
    "with_base_url",
    "with_context",
    "with_header",
    "with_headers",
    "with_ignore_ssl",
    "with_logger",
    "with_redirect",
    "with_timeout",
    "with_transport",
    "with_user_agent",
]
