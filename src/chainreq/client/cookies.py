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
"""Persistent cookie store backed by an LWP-format cookie file."""

from __future__ import annotations

import os
import threading
import urllib.request
from http.cookiejar import LoadError, LWPCookieJar
from pathlib import Path

from chainreq.kernel.exceptions import CookieStoreException


class PersistentCookieStore:
    """A cookie jar loaded from, and saved back to, one file.

    The jar is handed to httpx for each round-trip, so ``Set-Cookie``
    responses land in it and matching cookies are sent automatically.
    Session cookies (without an expiry) are persisted too.

    Raises:
        CookieStoreException: the file exists but is not a valid cookie file,
            or cannot be read.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._jar = LWPCookieJar(str(self._path))
        self._save_lock = threading.Lock()

        try:
            if self._path.exists() and self._path.stat().st_size > 0:
                self._jar.load(ignore_discard=True)
        except (LoadError, OSError) as exc:
            raise CookieStoreException(
                f"open cookie file {self._path} failed: {exc}",
                context={"path": str(self._path)},
            ) from exc

    @property
    def path(self) -> Path:
        return self._path

    @property
    def jar(self) -> LWPCookieJar:
        return self._jar

    def cookies_for_url(self, url: str) -> list[tuple[str, str]]:
        """Name/value pairs of the cookies that would be sent to *url*."""
        probe = urllib.request.Request(url)
        self._jar.add_cookie_header(probe)
        header = probe.get_header("Cookie")
        if not header:
            return []

        pairs: list[tuple[str, str]] = []
        for item in header.split("; "):
            name, _, value = item.partition("=")
            if name and not name.startswith("$"):
                pairs.append((name, value))
        return pairs

    def save(self) -> None:
        """Write the jar to its file, creating parent directories as needed."""
        with self._save_lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._jar.save(ignore_discard=True, ignore_expires=True)

    def __len__(self) -> int:
        return len(self._jar)

    def __repr__(self) -> str:
        return f"PersistentCookieStore(path={str(self._path)!r}, cookies={len(self._jar)})"
