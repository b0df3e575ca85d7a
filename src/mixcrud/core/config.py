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
"""Layered configuration for the CRUD layer.

Layers, lowest first: the packaged ``mixcrud-defaults.yaml``, a YAML or TOML
file, its profile overlays, then ``MIXCRUD_*`` environment variables.  Typed
sections are read with :meth:`Config.bind` into pydantic models marked with
:func:`config_properties`.
"""

from __future__ import annotations

import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar, cast

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")

_PREFIX_ATTR = "__mixcrud_config_prefix__"
_DEFAULTS_RESOURCE = "mixcrud-defaults.yaml"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a pydantic model as the typed view of the section at *prefix*.

    Usage:
        @config_properties(prefix="mixcrud.query")
        class QueryProperties(BaseModel):
            root_alias: str = "entity"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_var_for(key: str) -> str:
    """Environment variable overriding *key*: ``mixcrud.query.max_limit`` -> ``MIXCRUD_QUERY_MAX_LIMIT``."""
    path = key.removeprefix("mixcrud.")
    return "MIXCRUD_" + re.sub(r"[.\-]", "_", path).upper()


def _read_file(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        return tomllib.loads(path.read_text()) or {}
    return yaml.safe_load(path.read_text()) or {}


def _read_packaged_defaults() -> dict[str, Any]:
    text = importlib.resources.files("mixcrud.resources").joinpath(_DEFAULTS_RESOURCE).read_text()
    return yaml.safe_load(text) or {}


def _overlay(base: Mapping[str, Any], top: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *top* over *base*; nested mappings merge, anything else is replaced."""
    result = dict(base)
    for key, value in top.items():
        below = result.get(key)
        result[key] = _overlay(below, value) if isinstance(below, Mapping) and isinstance(value, Mapping) else value
    return result


class Config:
    """Read-only view over merged configuration data.

    Keys use dot notation.  An environment variable named by
    :func:`env_var_for` wins over the stored value; strings with ``${...}``
    placeholders are expanded on read.
    """

    def __init__(self, data: dict[str, Any] | None = None, sources: list[str] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = sources or []

    @property
    def loaded_sources(self) -> list[str]:
        """Where the data came from, lowest layer first."""
        return list(self._sources)

    @classmethod
    def defaults(cls) -> Config:
        return cls(_read_packaged_defaults(), [f"{_DEFAULTS_RESOURCE} (defaults)"])

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* and the ``{stem}-{profile}{suffix}`` overlays beside it.

        A missing *path* yields the defaults alone.  Overlays are applied in
        the order of *active_profiles*; missing ones are skipped.
        """
        path = Path(path)
        layers: list[tuple[str, dict[str, Any]]] = []
        if load_defaults:
            layers.append((f"{_DEFAULTS_RESOURCE} (defaults)", _read_packaged_defaults()))
        if path.exists():
            layers.append((str(path), _read_file(path)))
            for profile in active_profiles or []:
                overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
                if overlay.exists():
                    layers.append((f"{overlay} (profile: {profile})", _read_file(overlay)))

        data: dict[str, Any] = {}
        for _, layer in layers:
            data = _overlay(data, layer)
        return cls(data, [source for source, _ in layers])

    def get(self, key: str, default: Any = None) -> Any:
        """Value at *key*, *default* when absent."""
        override = os.environ.get(env_var_for(key))
        if override is not None:
            return override
        value = self._find(key)
        if value is None:
            return default
        if isinstance(value, str):
            return self._expand(value, ())
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        section = self._find(prefix)
        return dict(section) if isinstance(section, Mapping) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Validate the section under the model's prefix into *config_cls*.

        Field-level environment overrides are applied before validation, so
        ``MIXCRUD_QUERY_MAX_LIMIT=7`` reaches ``QueryProperties.max_limit`` as
        the string ``"7"`` and pydantic coerces it.
        """
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")
        if not issubclass(config_cls, BaseModel):
            raise TypeError(f"{config_cls.__name__} must be a pydantic BaseModel")

        section = self.get_section(prefix)
        for field in config_cls.model_fields:
            override = os.environ.get(env_var_for(f"{prefix}.{field}"))
            if override is not None:
                section[field] = override
        try:
            return cast(T, config_cls.model_validate(section))
        except ValidationError as exc:
            raise ValueError(f"Invalid configuration for {config_cls.__name__} under '{prefix}':\n{exc}") from exc

    def _find(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return None
            node = node[part]
        return node

    def _expand(self, value: str, chain: tuple[str, ...]) -> str:
        """Expand ``${name}`` and ``${name:default}``; *name* is an env var or a config key."""

        def substitute(match: re.Match[str]) -> str:
            name, sep, fallback = match.group(1).partition(":")
            if name in chain:
                raise ValueError(f"Circular placeholder reference: {' -> '.join((*chain, name))}")
            if name in os.environ:
                return os.environ[name]
            found = self._find(name)
            if found is not None:
                return self._expand(str(found), (*chain, name))
            if sep:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{name}}}': not found in environment or config")

        return _PLACEHOLDER.sub(substitute, value)
