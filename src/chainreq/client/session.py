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
"""Session: Requests sharing a persistent cookie store, one per cookie file."""

from __future__ import annotations

import os
import threading

from chainreq.client.cookies import PersistentCookieStore
from chainreq.client.factory import apply_options
from chainreq.client.options import RequestOption
from chainreq.client.request import Request
from chainreq.kernel.exceptions import ChainreqException, CookieStoreException


class Session:
    """A cookie file plus the options applied to each Request it builds.

    If the cookie file cannot be opened the failure is kept as the session
    error and every Request from :meth:`new` starts out failed with it.
    """

    def __init__(self, key: str, options: tuple[RequestOption, ...] = ()) -> None:
        self._key = key
        self._options = options
        self._cookie_store: PersistentCookieStore | None = None
        self._error: ChainreqException | None = None
        try:
            self._cookie_store = PersistentCookieStore(key)
        except CookieStoreException as exc:
            self._error = exc

    @property
    def key(self) -> str:
        return self._key

    @property
    def cookie_store(self) -> PersistentCookieStore | None:
        return self._cookie_store

    @property
    def error(self) -> ChainreqException | None:
        return self._error

    def new(self, method: str, url: str) -> Request:
        """Build a Request with the cookie store attached and options applied."""
        request = Request(method, url)
        if self._error is not None:
            return request.set_error(self._error)
        request.with_cookie_store(self._cookie_store)
        return apply_options(request, self._options)

    def __repr__(self) -> str:
        return f"Session(key={self._key!r})"


class SessionRegistry:
    """Process-wide map of cookie file to Session.

    The lock is held while a Session is constructed, so concurrent callers
    asking for the same key always get the same instance.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: str, options: tuple[RequestOption, ...] = ()) -> Session:
        """Return the Session for *key*; *options* only apply on first creation."""
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = Session(key, options)
                self._sessions[key] = session
            return session

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


_default_registry = SessionRegistry()


def default_registry() -> SessionRegistry:
    return _default_registry


def new_session(
    cookie_file: str | os.PathLike[str],
    *options: RequestOption,
    registry: SessionRegistry | None = None,
) -> Session:
    """Return the Session persisting cookies to *cookie_file*.

    Paths are resolved, so ``cookies.txt`` and ``./cookies.txt`` share one
    Session.
    """
    key = os.path.realpath(os.fspath(cookie_file))
    registry = registry if registry is not None else _default_registry
    return registry.get_or_create(key, options)
