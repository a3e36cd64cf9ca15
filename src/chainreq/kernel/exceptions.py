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
"""Unified exception hierarchy for chainreq.

All errors raised by a Request inherit from ChainreqException, so callers can
catch the base class to handle every failure, or a specific subclass to branch
on the failure kind (for example "did it time out").

Categories:
- ConfigurationException: invalid configuration, mutation after send
- RequestBuildException: the transport request could not be constructed
- TransportException: connection, TLS, timeout and cancellation failures
- ResponseReadException: the response body could not be read
- DecodeException: the response body could not be decoded
- CookieStoreException: the persistent cookie store could not be opened
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class ChainreqException(Exception):
    """Base exception for all chainreq errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "TIMEOUT").
        context: Arbitrary key-value pairs, usually the request method and URL.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(ChainreqException):
    """A configuration call or option could not be applied."""


class AlreadySentException(ConfigurationException):
    """The request was already sent, its parameters can no longer change."""


class QueryMappingException(ConfigurationException):
    """An object could not be converted to query parameters."""


class SerializationException(ConfigurationException):
    """A request body could not be serialized."""


# =============================================================================
# Execution Exceptions
# =============================================================================


class RequestBuildException(ChainreqException):
    """The underlying transport request could not be constructed."""


class TransportException(ChainreqException):
    """The round-trip failed: connection, TLS or protocol error."""


class RequestTimeoutException(TransportException):
    """The round-trip or body read exceeded its timeout or deadline."""


class RequestCancelledException(TransportException):
    """The request context was cancelled."""


class ResponseReadException(ChainreqException):
    """The response body could not be read."""


class DecodeException(ChainreqException):
    """The response body could not be decoded into the requested target."""


# =============================================================================
# Session Exceptions
# =============================================================================


class CookieStoreException(ChainreqException):
    """The persistent cookie store could not be opened or parsed."""
