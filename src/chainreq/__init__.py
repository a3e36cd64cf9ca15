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
"""chainreq: chainable HTTP requests that send themselves on first use.

    import chainreq

    status = chainreq.new("GET", "https://example.com").status_code()
"""

from chainreq._version import __version__
from chainreq.client import (
    DEFAULT_USER_AGENT,
    Factory,
    PersistentCookieStore,
    Request,
    RequestOption,
    Session,
    SessionRegistry,
    default_registry,
    new_factory,
    new_session,
    query_field,
    query_params,
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
from chainreq.core import Config, RequestContext
from chainreq.kernel import (
    AlreadySentException,
    ChainreqException,
    ConfigurationException,
    CookieStoreException,
    DecodeException,
    QueryMappingException,
    RequestBuildException,
    RequestCancelledException,
    RequestTimeoutException,
    ResponseReadException,
    SerializationException,
    TransportException,
)

__all__ = [
    "AlreadySentException",
    "ChainreqException",
    "Config",
    "ConfigurationException",
    "CookieStoreException",
    "DEFAULT_USER_AGENT",
    "DecodeException",
    "Factory",
    "PersistentCookieStore",
    "QueryMappingException",
    "Request",
    "RequestBuildException",
    "RequestCancelledException",
    "RequestContext",
    "RequestOption",
    "RequestTimeoutException",
    "ResponseReadException",
    "SerializationException",
    "Session",
    "SessionRegistry",
    "TransportException",
    "__version__",
    "default_registry",
    "new",
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


def new(method: str, url: str) -> Request:
    """Create a Request with default settings; nothing is sent yet."""
    return Request(method, url)
