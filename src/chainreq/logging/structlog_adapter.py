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
"""Structlog-backed logging for chainreq.

``StructlogAdapter`` applies the ``chainreq.logging`` settings to structlog
and the stdlib root logger. ``StructlogRequestLogger`` is the RequestLogger
every Request uses unless another one is injected.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from chainreq.config.properties.logging import LoggingProperties
from chainreq.core.config import Config
from chainreq.core.context import RequestContext

DEFAULT_LOGGER_NAME = "chainreq"


def _to_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _processors(fmt: str) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer())
    return chain


class StructlogAdapter:
    """LoggingPort implementation driven by :class:`LoggingProperties`."""

    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        """Bind ``chainreq.logging`` from *config* and install it."""
        props = config.bind(LoggingProperties)
        self._root_level = str(props.level).upper()
        self._format = str(props.format).lower()
        self._module_levels = {name: str(level).upper() for name, level in props.levels.items()}

        # Loggers are created at import time, so they must not be cached
        # before this runs.
        structlog.configure(
            processors=_processors(self._format),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )
        logging.basicConfig(format="%(message)s", stream=sys.stderr, level=_to_level(self._root_level), force=True)
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_to_level(level))


class StructlogRequestLogger:
    """RequestLogger writing through structlog.

    Values bound on the request's :class:`RequestContext` are attached to
    every event.
    """

    def __init__(self, name: str = DEFAULT_LOGGER_NAME) -> None:
        self._logger = structlog.get_logger(name)

    def info(self, context: RequestContext | None, message: str, *args: Any) -> None:
        self._bind(context).info(_render(message, args))

    def error(self, context: RequestContext | None, message: str, *args: Any) -> None:
        self._bind(context).error(_render(message, args))

    def _bind(self, context: RequestContext | None) -> Any:
        if context is None:
            return self._logger
        values = context.values
        return self._logger.bind(**values) if values else self._logger


def _render(message: str, args: tuple[Any, ...]) -> str:
    return message % args if args else message
