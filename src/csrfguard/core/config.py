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
"""Configuration for csrfguard: YAML/TOML files, env vars and typed binding.

Values are looked up by dotted key (``csrfguard.csrf.cookie_name``).  An
environment variable derived from the key (``CSRFGUARD_CSRF_COOKIE_NAME``)
always wins over file contents, and string values may reference other keys
or environment variables with ``${key}`` or ``${key:default}``.
"""

from __future__ import annotations

import dataclasses
import os
import re
import tomllib
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from csrfguard.kernel.exceptions import ConfigurationException

T = TypeVar("T")

_PREFIX_ATTR = "__csrfguard_config_prefix__"
_ENV_PREFIX = "CSRFGUARD_"
_REFERENCE = re.compile(r"\$\{([^}]+)\}")
_MAX_NESTING = 10
_MISSING = object()

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_COERCIONS: dict[Any, Callable[[str], Any]] = {
    int: int,
    float: float,
    bool: lambda raw: raw.strip().lower() in _TRUE_STRINGS,
}


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Declare the configuration section a dataclass or pydantic model binds to.

    Usage::

        @config_properties(prefix="csrfguard.csrf")
        class CsrfProperties(BaseModel):
            enabled: bool = True
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def _lookup(data: Any, key: str) -> Any:
    for part in key.split("."):
        if not isinstance(data, dict) or data.get(part) is None:
            return _MISSING
        data = data[part]
    return data


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        merged[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _read_file(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with path.open("rb") as fh:
            return tomllib.load(fh)
    with path.open() as fh:
        return yaml.safe_load(fh) or {}


class Config:
    """Read-only, dotted-key view over nested configuration data."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = []

    @classmethod
    def from_file(cls, path: str | Path, active_profiles: Iterable[str] | None = None) -> Config:
        """Load *path*, then overlay ``{stem}-{profile}{suffix}`` for each profile.

        A missing base file gives an empty configuration; missing profile
        files are skipped.
        """
        path = Path(path)
        config = cls()
        if not path.exists():
            return config

        config._absorb(path, str(path))
        for profile in active_profiles or ():
            overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
            if overlay.exists():
                config._absorb(overlay, f"{overlay} (profile: {profile})")
        return config

    def _absorb(self, path: Path, label: str) -> None:
        self._data = _merge(self._data, _read_file(path))
        self._sources.append(label)

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this configuration, base file first."""
        return list(self._sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @staticmethod
    def env_key(key: str) -> str:
        """``csrfguard.csrf.cookie-name`` -> ``CSRFGUARD_CSRF_COOKIE_NAME``."""
        name = key.removeprefix("csrfguard.")
        return _ENV_PREFIX + re.sub(r"[.\-]", "_", name).upper()

    def get(self, key: str, default: Any = None) -> Any:
        env_value = os.environ.get(self.env_key(key))
        if env_value is not None:
            return env_value

        value = _lookup(self._data, key)
        if value is _MISSING:
            return default
        if isinstance(value, str):
            return self._interpolate(value)
        return value

    def _interpolate(self, text: str, depth: int = 0) -> str:
        if "${" not in text:
            return text
        if depth > _MAX_NESTING:
            raise ConfigurationException(
                f"Placeholders in '{text}' nest too deeply; check for circular references"
            )

        def substitute(match: re.Match[str]) -> str:
            ref, has_default, fallback = match.group(1).partition(":")
            if ref in os.environ:
                return os.environ[ref]
            found = _lookup(self._data, ref)
            if found is not _MISSING:
                return self._interpolate(str(found), depth + 1)
            if has_default:
                return fallback
            raise ConfigurationException(
                f"Cannot resolve placeholder '${{{match.group(1)}}}': not found in environment or config"
            )

        return _REFERENCE.sub(substitute, text)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Raw mapping under *prefix*, empty when absent or not a mapping."""
        section = _lookup(self._data, prefix)
        return section if isinstance(section, dict) else {}

    def _section_for(self, prefix: str, fields: Iterable[str]) -> dict[str, Any]:
        section = dict(self.get_section(prefix))
        for name in fields:
            env_value = os.environ.get(self.env_key(f"{prefix}.{name}"))
            if env_value is not None:
                section[name] = env_value
        return section

    def bind(self, config_cls: type[T]) -> T:
        """Build a ``@config_properties`` class from its section.

        Pydantic models are validated as a whole; a failure raises
        :class:`ConfigurationException` naming the class.  Dataclasses get
        string values coerced to ``int``, ``float`` and ``bool`` fields.
        """
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ConfigurationException(f"{config_cls.__name__} is not decorated with @config_properties")

        if issubclass(config_cls, BaseModel):
            section = self._section_for(prefix, config_cls.model_fields)
            try:
                return cast(T, config_cls.model_validate(section))
            except ValidationError as exc:
                raise ConfigurationException(
                    f"Invalid configuration for {config_cls.__name__} under '{prefix}':\n{exc}",
                    context={"prefix": prefix},
                ) from exc

        fields = [f.name for f in dataclasses.fields(config_cls)]  # type: ignore[arg-type]
        section = self._section_for(prefix, fields)
        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for name in fields:
            if name not in section:
                continue
            value = section[name]
            coerce = _COERCIONS.get(hints.get(name))
            kwargs[name] = coerce(value) if coerce and isinstance(value, str) else value
        return config_cls(**kwargs)
