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
"""Request: a lazily executed, memoized, error-sticky HTTP request."""

from __future__ import annotations

import dataclasses
import json
import re
import threading
from collections.abc import Callable, Mapping
from datetime import timedelta
from typing import IO, Any
from urllib.parse import urljoin

import httpx

from chainreq._version import __version__
from chainreq.client.adapters.httpx_adapter import HttpxTransport
from chainreq.client.body import (
    JSON_CONTENT_TYPE,
    Body,
    encode_file,
    encode_form,
    to_body,
)
from chainreq.client.cookies import PersistentCookieStore
from chainreq.client.ports.outbound import Exchange, OutgoingRequest, TransportPort
from chainreq.client.query import merge_query, query_values, to_query_values
from chainreq.core.context import RequestContext
from chainreq.kernel.exceptions import (
    AlreadySentException,
    ChainreqException,
    ConfigurationException,
    DecodeException,
    RequestBuildException,
    ResponseReadException,
    TransportException,
)
from chainreq.logging import default_logger
from chainreq.logging.port import RequestLogger

DEFAULT_USER_AGENT = f"chainreq/{__version__} (+https://pypi.org/project/chainreq/)"

# RFC 9110 token
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

_PREVIEW_LIMIT = 256

_default_transport = HttpxTransport()


class Request:
    """An HTTP request built by chained configuration and sent on first use.

    Configuration methods (``with_*``) never do I/O and always return the
    request itself. The first terminal accessor (``content()``, ``text()``,
    ``unmarshal()``, ``status_code()``...) performs the round-trip; every
    later accessor reuses the cached response and body.

        user = (
            Request("GET", "https://api.example.com/users")
            .with_query("id", "42")
            .with_timeout(timedelta(seconds=5))
            .unmarshal(User)
        )

    Errors are sticky: the first failure, whether raised by a configuration
    call or by the round-trip, is recorded and every later call raises that
    same exception. Configuration after the request was sent is itself such
    a failure (:class:`AlreadySentException`).

    Each ``must_*`` accessor discards the error and returns an empty value
    instead. They lose information on failure and are meant for callers
    that accept best-effort results.

    A Request is safe to share between threads: concurrent accessors
    perform exactly one round-trip and one body read.
    """

    def __init__(
        self,
        method: str,
        url: str,
        *,
        transport: TransportPort | None = None,
        logger: RequestLogger | None = None,
    ) -> None:
        self._method = (method or "").strip().upper()
        self._url = (url or "").strip()
        self._base_url = ""
        self._headers: list[tuple[str, str]] = []
        self._query: dict[str, list[str]] = {}
        self._body: Body | None = None
        self._timeout: float | None = None
        self._ignore_ssl = False
        self._no_redirect = False
        self._context: RequestContext | None = None
        self._cookie_store: PersistentCookieStore | None = None
        self._logger: RequestLogger = logger or default_logger()
        self._transport: TransportPort = transport or _default_transport

        self._error: ChainreqException | None = None
        self._sent = False
        self._read = False
        self._full_url: str | None = None
        self._exchange: Exchange | None = None
        self._content = b""
        self._closed_error: ResponseReadException | None = None

        # Configuration and sending share one lock; reading has its own.
        self._lock = threading.Lock()
        self._read_lock = threading.Lock()

        if not self._method:
            self._fail(ConfigurationException("[chainreq] request method is required", context=self._describe()))
        elif not _METHOD_RE.match(self._method):
            self._fail(
                ConfigurationException(f"[chainreq] invalid request method {method!r}", context=self._describe())
            )
        elif not self._url:
            self._fail(ConfigurationException("[chainreq] request url is required", context=self._describe()))

    # ------------------------------------------------------------------
    # Request description
    # ------------------------------------------------------------------

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        """The target URL as given, without configured query parameters."""
        return self._url

    @property
    def full_url(self) -> str:
        """The URL the request is (or would be) sent to, query merged in."""
        if self._full_url is not None:
            return self._full_url
        with self._lock:
            if self._full_url is not None:
                return self._full_url
            try:
                return self._resolve_url()
            except RequestBuildException:
                return self._url

    @property
    def timeout(self) -> timedelta | None:
        return timedelta(seconds=self._timeout) if self._timeout is not None else None

    @property
    def context(self) -> RequestContext:
        return self._context if self._context is not None else RequestContext.background()

    @property
    def request_headers(self) -> httpx.Headers:
        return httpx.Headers(list(self._headers))

    @property
    def cookie_store(self) -> PersistentCookieStore | None:
        return self._cookie_store

    @property
    def error(self) -> ChainreqException | None:
        """The sticky error, if any."""
        return self._error

    @property
    def sent(self) -> bool:
        return self._sent

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def with_header(self, key: str, value: str) -> Request:
        """Add a header value; existing values for *key* are kept."""
        return self._configure(lambda: self._headers.append((key, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Request:
        """Add several header values."""
        return self._configure(lambda: self._headers.extend(headers.items()))

    def with_user_agent(self, user_agent: str) -> Request:
        return self._configure(lambda: self._set_header("User-Agent", user_agent))

    def with_query(self, key: str, value: Any) -> Request:
        """Add a query parameter value; lists add one value per item."""

        def mutate() -> None:
            self._query.setdefault(key, []).extend(to_query_values(value))

        return self._configure(mutate)

    def with_queries(self, query: Mapping[str, Any]) -> Request:
        """Add several query parameters."""

        def mutate() -> None:
            for key, value in query.items():
                self._query.setdefault(key, []).extend(to_query_values(value))

        return self._configure(mutate)

    def with_query_struct(self, obj: Any) -> Request:
        """Add the query parameters declared by *obj*'s query schema.

        See :func:`chainreq.client.query.query_field` and
        :func:`chainreq.client.query.query_params`.
        """

        def mutate() -> None:
            for key, values in query_values(obj).items():
                self._query.setdefault(key, []).extend(values)

        return self._configure(mutate)

    def with_body(self, body: Any) -> Request:
        """Set the body: a binary stream, bytes, str, or any JSON-serializable value."""

        def mutate() -> None:
            self._body = to_body(body)

        return self._configure(mutate)

    def with_json(self, body: Any) -> Request:
        """Like :meth:`with_body`, and set ``Content-Type: application/json``."""

        def mutate() -> None:
            self._body = to_body(body)
            self._set_header("Content-Type", JSON_CONTENT_TYPE)

        return self._configure(mutate)

    def with_form(self, fields: Mapping[str, str]) -> Request:
        """Send *fields* as a multipart/form-data body."""

        def mutate() -> None:
            self._body, content_type = encode_form(fields)
            self._set_header("Content-Type", content_type)

        return self._configure(mutate)

    def with_file(
        self,
        filename: str,
        file: bytes | IO[bytes] | None,
        file_key: str = "file",
        params: Mapping[str, str] | None = None,
    ) -> Request:
        """Upload *file* as form field *file_key*, plus extra form *params*."""

        def mutate() -> None:
            self._body, content_type = encode_file(filename, file, file_key, params)
            self._set_header("Content-Type", content_type)

        return self._configure(mutate)

    def with_timeout(self, timeout: timedelta | float | None) -> Request:
        """Bound the round-trip and the body read; ``None`` or 0 disables it."""

        def mutate() -> None:
            seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else timeout
            if seconds is not None and seconds < 0:
                raise ConfigurationException(f"[chainreq] negative timeout: {timeout!r}")
            self._timeout = float(seconds) if seconds else None

        return self._configure(mutate)

    def with_context(self, context: RequestContext) -> Request:
        """Run the request under *context* (deadline, cancellation, log values)."""

        def mutate() -> None:
            self._context = context

        return self._configure(mutate)

    def with_ignore_ssl(self, ignore: bool = True) -> Request:
        """Skip TLS certificate verification."""

        def mutate() -> None:
            self._ignore_ssl = ignore

        return self._configure(mutate)

    def with_redirect(self, follow: bool) -> Request:
        """Follow redirects (the default) or return the redirect response itself."""

        def mutate() -> None:
            self._no_redirect = not follow

        return self._configure(mutate)

    def with_base_url(self, base_url: str) -> Request:
        """Resolve a relative target URL against *base_url*."""

        def mutate() -> None:
            self._base_url = base_url

        return self._configure(mutate)

    def with_cookie_store(self, store: PersistentCookieStore | None) -> Request:
        """Attach a persistent cookie store, saved after the round-trip."""

        def mutate() -> None:
            self._cookie_store = store

        return self._configure(mutate)

    def with_url_cookie(self, url: str) -> Request:
        """Add one ``Cookie`` header with the stored cookies matching *url*.

        Does nothing without a cookie store.
        """

        def mutate() -> None:
            if self._cookie_store is None:
                return
            try:
                cookies = self._cookie_store.cookies_for_url(url)
            except ValueError as exc:
                raise ConfigurationException(f"[chainreq] invalid cookie url {url!r}: {exc}") from exc
            if cookies:
                self._headers.append(("Cookie", "; ".join(f"{name}={value}" for name, value in cookies)))

        return self._configure(mutate)

    def with_logger(self, logger: RequestLogger) -> Request:
        def mutate() -> None:
            self._logger = logger

        return self._configure(mutate)

    def with_transport(self, transport: TransportPort) -> Request:
        def mutate() -> None:
            self._transport = transport

        return self._configure(mutate)

    def set_error(self, error: ChainreqException) -> Request:
        """Record *error* as the sticky error unless one is already set."""
        with self._lock:
            self._fail(error)
        return self

    def _configure(self, mutate: Callable[[], None]) -> Request:
        with self._lock:
            if self._sent:
                self._fail(
                    AlreadySentException(
                        f"[chainreq] request {self._method} {self._full_url or self._url} already sent, "
                        "cannot set request params",
                        code="ALREADY_SENT",
                        context=self._describe(),
                    )
                )
                return self
            if self._error is not None:
                return self
            try:
                mutate()
            except ChainreqException as exc:
                exc.context.setdefault("method", self._method)
                exc.context.setdefault("url", self._url)
                self._fail(exc)
        return self

    def _set_header(self, key: str, value: str) -> None:
        lowered = key.lower()
        self._headers = [(k, v) for k, v in self._headers if k.lower() != lowered]
        self._headers.append((key, value))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _ensure_request_sent(self) -> None:
        error = self._error
        if error is not None:
            raise error

        with self._lock:
            if self._error is not None:
                raise self._error
            if self._sent:
                return
            try:
                self._send()
            except ChainreqException as exc:
                self._fail(exc)
                raise
            except Exception as exc:
                wrapped = TransportException(
                    f"[chainreq] {self._method} {self._full_url} send request failed: {exc}",
                    context=self._describe(),
                )
                self._fail(wrapped)
                raise wrapped from exc

    def _send(self) -> None:
        self._sent = True
        self._full_url = self._resolve_url()

        self._logger.info(self._context, "[chainreq] %s: %s", self._method, self._full_url)
        try:
            self._exchange = self._transport.send(self._outgoing())
        finally:
            if self._cookie_store is not None:
                self._save_cookies()

    def _ensure_body_read(self) -> None:
        self._ensure_request_sent()

        with self._read_lock:
            if self._error is not None:
                raise self._error
            if self._read:
                return
            if self._closed_error is not None:
                raise self._closed_error
            self._read = True
            try:
                self._content = self._exchange.read()  # type: ignore[union-attr]
            except ChainreqException as exc:
                self._fail(exc)
                raise
            except Exception as exc:
                wrapped = ResponseReadException(
                    f"[chainreq] {self._method} {self._full_url} read response failed: {exc}",
                    context=self._describe(),
                )
                self._fail(wrapped)
                raise wrapped from exc

            self._logger.info(
                self._context,
                "[chainreq] %s: %s, read: %s",
                self._method,
                self._full_url,
                _preview(self._content),
            )

    def _resolve_url(self) -> str:
        url = urljoin(self._base_url, self._url) if self._base_url else self._url
        return merge_query(url, self._query)

    def _outgoing(self) -> OutgoingRequest:
        headers = list(self._headers)
        if not any(key.lower() == "user-agent" for key, _ in headers):
            headers.append(("User-Agent", DEFAULT_USER_AGENT))

        return OutgoingRequest(
            method=self._method,
            url=self._full_url or self._url,
            headers=headers,
            body=self._body,
            timeout=self._effective_timeout(),
            verify=not self._ignore_ssl,
            follow_redirects=not self._no_redirect,
            cookie_jar=self._cookie_store.jar if self._cookie_store is not None else None,
            context=self._context,
        )

    def _effective_timeout(self) -> float | None:
        remaining = self._context.remaining() if self._context is not None else None
        candidates = [t for t in (self._timeout, remaining) if t is not None]
        return min(candidates) if candidates else None

    def _save_cookies(self) -> None:
        store = self._cookie_store
        try:
            store.save()  # type: ignore[union-attr]
        except OSError as exc:
            self._logger.error(self._context, "[chainreq] save cookies to %s failed: %s", store.path, exc)  # type: ignore[union-attr]

    def _fail(self, error: ChainreqException) -> None:
        if self._error is None:
            self._error = error

    def _describe(self) -> dict[str, str]:
        return {"method": self._method, "url": self._full_url or self._url}

    # ------------------------------------------------------------------
    # Terminal accessors
    # ------------------------------------------------------------------

    def content(self) -> bytes:
        """The response body."""
        self._ensure_body_read()
        return self._content

    def text(self) -> str:
        """The response body decoded with the response charset (UTF-8 by default)."""
        content = self.content()
        encoding = self._exchange.response.charset_encoding or "utf-8"  # type: ignore[union-attr]
        try:
            return content.decode(encoding, errors="replace")
        except LookupError:
            return content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """The response body decoded as JSON."""
        return self.unmarshal(None)

    def unmarshal(self, target: Any = None) -> Any:
        """Decode the JSON body into *target* and return the result.

        *target* may be a dataclass type (constructed from the JSON object),
        a builtin type such as ``dict`` or ``list`` (type-checked), a
        ``dict`` or ``list`` instance (updated in place) or ``None``.

        Raises:
            DecodeException: the body is not JSON or does not fit *target*.
                Not sticky: the request stays usable.
        """
        content = self.content()
        try:
            return _convert(json.loads(content), target)
        except (TypeError, ValueError) as exc:
            raise self._decode_error(content, _type_name(target), exc) from exc

    def map(self) -> dict[str, Any]:
        """The response body decoded as a JSON object."""
        content = self.content()
        try:
            payload = json.loads(content)
        except ValueError as exc:
            raise self._decode_error(content, "map", exc) from exc
        if not isinstance(payload, dict):
            raise self._decode_error(content, "map", TypeError(f"got {type(payload).__name__}"))
        return payload

    def response(self) -> httpx.Response:
        """The raw httpx response; its body is only loaded once read."""
        self._ensure_request_sent()
        return self._exchange.response  # type: ignore[union-attr]

    def status_code(self) -> int:
        return self.response().status_code

    def response_headers(self) -> httpx.Headers:
        return self.response().headers

    def response_header(self, key: str) -> str:
        """First value of response header *key*, or ``""``."""
        values = self.response().headers.get_list(key)
        return values[0] if values else ""

    def response_header_values(self, key: str) -> list[str]:
        """All values of response header *key*."""
        return self.response().headers.get_list(key)

    def response_cookies(self, name: str) -> list[str]:
        """Values of the cookies named *name* set by the response."""
        return [cookie.value for cookie in self.response().cookies.jar if cookie.name == name]  # type: ignore[misc]

    def _decode_error(self, content: bytes, target_name: str, exc: Exception) -> DecodeException:
        return DecodeException(
            f"[chainreq] {self._method} {self._full_url} unmarshal {_preview(content)!r} "
            f"to {target_name} failed: {exc}",
            context={**self._describe(), "target": target_name},
        )

    # ------------------------------------------------------------------
    # Error-discarding accessors
    # ------------------------------------------------------------------

    def must_content(self) -> bytes:
        """:meth:`content`, or ``b""`` on any error."""
        try:
            return self.content()
        except ChainreqException:
            return b""

    def must_text(self) -> str:
        """:meth:`text`, or ``""`` on any error."""
        try:
            return self.text()
        except ChainreqException:
            return ""

    def must_json(self) -> Any:
        try:
            return self.json()
        except ChainreqException:
            return None

    def must_unmarshal(self, target: Any = None) -> Any:
        """:meth:`unmarshal`, or ``None`` on any error."""
        try:
            return self.unmarshal(target)
        except ChainreqException:
            return None

    def must_map(self) -> dict[str, Any]:
        try:
            return self.map()
        except ChainreqException:
            return {}

    def must_response(self) -> httpx.Response | None:
        try:
            return self.response()
        except ChainreqException:
            return None

    def must_status_code(self) -> int:
        """:meth:`status_code`, or ``0`` on any error."""
        try:
            return self.status_code()
        except ChainreqException:
            return 0

    def must_response_headers(self) -> httpx.Headers:
        try:
            return self.response_headers()
        except ChainreqException:
            return httpx.Headers()

    def must_response_header(self, key: str) -> str:
        try:
            return self.response_header(key)
        except ChainreqException:
            return ""

    def must_response_header_values(self, key: str) -> list[str]:
        try:
            return self.response_header_values(key)
        except ChainreqException:
            return []

    def must_response_cookies(self, name: str) -> list[str]:
        try:
            return self.response_cookies(name)
        except ChainreqException:
            return []

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the connection of a response whose body was never read.

        Body accessors called afterwards raise :class:`ResponseReadException`;
        status and header accessors keep working.
        """
        with self._read_lock:
            if self._exchange is not None and not self._read and self._closed_error is None:
                self._closed_error = ResponseReadException(
                    f"[chainreq] {self._method} {self._full_url} response closed before body was read",
                    context=self._describe(),
                )
                self._exchange.close()

    def __enter__(self) -> Request:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Request(method={self._method!r}, url={self._url!r}, sent={self._sent})"


def _preview(content: bytes) -> str:
    text = content[:_PREVIEW_LIMIT].decode("utf-8", errors="replace")
    return text + "..." if len(content) > _PREVIEW_LIMIT else text


def _type_name(target: Any) -> str:
    if target is None:
        return "any"
    if isinstance(target, type):
        return target.__name__
    return type(target).__name__


def _convert(payload: Any, target: Any) -> Any:
    if target is None:
        return payload

    if isinstance(target, type):
        if dataclasses.is_dataclass(target):
            if not isinstance(payload, dict):
                raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
            names = {f.name for f in dataclasses.fields(target) if f.init}
            return target(**{k: v for k, v in payload.items() if k in names})
        if target is float and isinstance(payload, int) and not isinstance(payload, bool):
            return float(payload)
        if not isinstance(payload, target):
            raise TypeError(f"expected {target.__name__}, got {type(payload).__name__}")
        return payload

    if isinstance(target, dict):
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
        target.update(payload)
        return target

    if isinstance(target, list):
        if not isinstance(payload, list):
            raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
        target.extend(payload)
        return target

    raise TypeError(f"unsupported target {type(target).__name__}")
