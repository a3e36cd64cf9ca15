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
"""chainreq logging: ports and adapters."""

from chainreq.logging.discard import DiscardLogger
from chainreq.logging.port import LoggingPort, RequestLogger
from chainreq.logging.structlog_adapter import StructlogAdapter, StructlogRequestLogger

__all__ = [
    "DiscardLogger",
    "LoggingPort",
    "RequestLogger",
    "StructlogAdapter",
    "StructlogRequestLogger",
    "default_logger",
    "discard_logger",
]

_default_logger = StructlogRequestLogger()


def default_logger() -> RequestLogger:
    """The shared structlog-backed logger used when a Request has none."""
    return _default_logger


def discard_logger() -> RequestLogger:
    """A logger that drops every message."""
    return DiscardLogger()
