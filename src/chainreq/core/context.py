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
"""RequestContext: deadline, cancellation and logging values for a request."""

from __future__ import annotations

import threading
import time
import weakref
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from chainreq.kernel.exceptions import (
    ChainreqException,
    RequestCancelledException,
    RequestTimeoutException,
)


class RequestContext:
    """Carries an optional deadline, a cancellation flag and bound values.

    Contexts form a tree: a child derived with :meth:`with_timeout`,
    :meth:`with_cancel` or :meth:`with_values` is cancelled when its parent
    is, never expires later than its parent, and sees its parent's values.

        ctx = RequestContext.background().with_timeout(timedelta(seconds=5))
        chainreq.new("GET", url).with_context(ctx).text()

    Cancellation callbacks run synchronously in the thread that calls
    :meth:`cancel`.
    """

    def __init__(
        self,
        deadline: float | None = None,
        values: dict[str, Any] | None = None,
        parent: RequestContext | None = None,
    ) -> None:
        self._parent = parent
        self._values: dict[str, Any] = dict(values or {})
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []
        self._children: weakref.WeakSet[RequestContext] = weakref.WeakSet()

        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

        if parent is not None:
            parent._adopt(self)

    @classmethod
    def background(cls) -> RequestContext:
        """A root context with no deadline that is never cancelled by others."""
        return cls()

    # -- derivation ----------------------------------------------------------

    def with_timeout(self, timeout: timedelta | float) -> RequestContext:
        """Derive a child context expiring *timeout* from now."""
        seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
        return RequestContext(deadline=time.monotonic() + seconds, parent=self)

    def with_deadline(self, deadline: float) -> RequestContext:
        """Derive a child context expiring at *deadline* (``time.monotonic()`` clock)."""
        return RequestContext(deadline=deadline, parent=self)

    def with_cancel(self) -> RequestContext:
        """Derive a child context that can be cancelled independently."""
        return RequestContext(parent=self)

    def with_values(self, **values: Any) -> RequestContext:
        """Derive a child context carrying extra logging values."""
        return RequestContext(values=values, parent=self)

    # -- state ---------------------------------------------------------------

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def values(self) -> dict[str, Any]:
        """Values bound on this context and its ancestors (nearest wins)."""
        merged = self._parent.values if self._parent is not None else {}
        merged.update(self._values)
        return merged

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> ChainreqException | None:
        """The exception a request running under this context should raise, if any."""
        if self._cancelled:
            return RequestCancelledException("context canceled", code="CANCELLED")
        if self.expired:
            return RequestTimeoutException("context deadline exceeded", code="TIMEOUT")
        return None

    # -- cancellation --------------------------------------------------------

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.cancel()
        for callback in callbacks:
            callback()
        if self._parent is not None:
            self._parent._release(self)

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register *callback* to run on cancellation.

        Runs immediately if the context is already cancelled. Returns a
        function that unregisters the callback.
        """
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return lambda: self._discard(callback)
        callback()
        return lambda: None

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    # Children are held weakly: an unreferenced child drops out of the set.
    def _adopt(self, child: RequestContext) -> None:
        with self._lock:
            if not self._cancelled:
                self._children.add(child)
                return
        child.cancel()

    def _release(self, child: RequestContext) -> None:
        with self._lock:
            self._children.discard(child)

    def __repr__(self) -> str:
        return f"RequestContext(deadline={self._deadline!r}, cancelled={self._cancelled})"
