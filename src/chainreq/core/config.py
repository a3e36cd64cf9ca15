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
"""Layered configuration: YAML/TOML file, profile overlays and CHAINREQ_* env vars."""

from __future__ import annotations

import dataclasses
import os
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_CONFIG_PROPERTIES_ATTR = "__chainreq_config_prefix__"

ENV_PREFIX = "CHAINREQ_"

_MISSING = object()


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="chainreq.request")
        @dataclass
        class RequestProperties:
            timeout: float = 0
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Nested configuration read by dotted key.

    A ``CHAINREQ_*`` environment variable beats the loaded data, which beats
    the dataclass defaults used by :meth:`bind`. The variable name drops a
    leading ``chainreq.`` from the key: ``chainreq.request.timeout`` is
    overridden by ``CHAINREQ_REQUEST_TIMEOUT``.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def from_file(cls, path: str | Path, active_profiles: list[str] | None = None) -> Config:
        """Load *path*, then each ``{stem}-{profile}{suffix}`` overlay beside it.

        A missing base file yields an empty Config; missing overlays are skipped.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        data = _read(path)
        for profile in active_profiles or []:
            overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
            if overlay.exists():
                data = _merge(data, _read(overlay))
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dotted *key*, with its environment override taking precedence."""
        env_val = os.environ.get(_env_key(key))
        if env_val is not None:
            return env_val
        value = self._walk(key)
        return default if value is _MISSING or value is None else value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """The mapping stored under *prefix*, or an empty dict."""
        value = self._walk(prefix)
        return value if isinstance(value, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Build a @config_properties dataclass from its section.

        Each field goes through :meth:`get`, so environment overrides apply;
        string values are coerced to the annotated int, float or bool.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = self.get_section(prefix)
        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            value = self.get(f"{prefix}.{field.name}")
            if value is None:
                if field.name not in section:
                    continue
                value = section[field.name]
            kwargs[field.name] = _coerce(value, hints.get(field.name))

        return config_cls(**kwargs)

    def _walk(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return _MISSING
            current = current[part]
        return current


def _env_key(key: str) -> str:
    return ENV_PREFIX + key.removeprefix("chainreq.").upper().replace(".", "_").replace("-", "_")


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f) or {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce(value: Any, expected_type: Any) -> Any:
    if not isinstance(value, str):
        return value
    if expected_type is int:
        return int(value)
    if expected_type is float:
        return float(value)
    if expected_type is bool:
        return value.lower() in ("true", "1", "yes")
    return value
