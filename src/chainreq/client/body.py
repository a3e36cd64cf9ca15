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
"""Request body encoding: raw payloads, JSON and multipart forms."""

from __future__ import annotations

import dataclasses
import io
import json
from collections.abc import Mapping
from typing import IO, Any

import httpx

from chainreq.kernel.exceptions import SerializationException

JSON_CONTENT_TYPE = "application/json"

# Placeholder target for the multipart encoder, never contacted.
_ENCODER_URL = "http://multipart.invalid/"

Body = bytes | IO[bytes]


def is_stream(value: Any) -> bool:
    return callable(getattr(value, "read", None)) and not isinstance(value, io.TextIOBase)


def to_body(value: Any) -> Body:
    """Convert a payload to a request body.

    Binary streams are used as-is, ``bytes`` and ``str`` are sent raw, any
    other value is serialized as JSON.
    """
    if is_stream(value):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, io.TextIOBase):
        return value.read().encode("utf-8")
    return encode_json(value)


def encode_json(value: Any) -> bytes:
    """Compact JSON encoding of *value*; dataclasses are encoded as objects."""
    try:
        return json.dumps(
            value, separators=(",", ":"), ensure_ascii=False, default=_json_default
        ).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationException(f"serialize {type(value).__name__} to json failed: {exc}") from exc


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_form(fields: Mapping[str, str]) -> tuple[bytes, str]:
    """Encode *fields* as multipart/form-data; returns (body, content type)."""
    files = [(key, (None, str(value).encode("utf-8"))) for key, value in fields.items()]
    return _encode_multipart(data=None, files=files)


def encode_file(
    filename: str,
    file: bytes | IO[bytes] | None,
    file_key: str,
    params: Mapping[str, str] | None = None,
) -> tuple[bytes, str]:
    """Encode one file plus extra form fields as multipart/form-data."""
    content = file if file is not None else b""
    return _encode_multipart(
        data=dict(params) if params else None,
        files=[(file_key, (filename, content))],
    )


def _encode_multipart(data: dict[str, str] | None, files: list[tuple[str, Any]]) -> tuple[bytes, str]:
    try:
        request = httpx.Request("POST", _ENCODER_URL, data=data, files=files)
        body = request.read()
    except (TypeError, ValueError, OSError) as exc:
        raise SerializationException(f"encode multipart body failed: {exc}") from exc
    return body, request.headers["Content-Type"]
