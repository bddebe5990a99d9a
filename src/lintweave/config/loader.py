# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Configuration sources (pyproject and standalone TOML) and their merge."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from .models import Config, ConfigError

PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
CONFIG_FILENAME: Final[str] = "lintweave.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "lintweave"

_ENV_VAR_PATTERN = re.compile(r"\$(\w+)|\$\{([^}]+)\}")


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):

        def _replace(match: re.Match[str]) -> str:
            key = match.group(1) or match.group(2)
            if key is None:
                return match.group(0)
            return env.get(key, match.group(0))

        return _ENV_VAR_PATTERN.sub(_replace, value)
    if isinstance(value, Mapping):
        return {k: _expand_env_value(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(v, env) for v in value]
    return value


class TomlConfigSource:
    """Load configuration data from a TOML document."""

    def __init__(self, path: Path, *, env: Mapping[str, str] | None = None) -> None:
        self.path = path
        self._env = env if env is not None else os.environ

    def load(self) -> Mapping[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("rb") as handle:
                data = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Unable to read configuration at {self.path}: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigError(f"Configuration at {self.path} must be a table")
        return _expand_env_value(dict(data), self._env)

    def describe(self) -> str:
        return f"TOML configuration at {self.path}"


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.lintweave]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        data = super().load()
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return dict(section)

    def describe(self) -> str:
        return f"pyproject.toml ({self.path})"


def load_config(root: Path, *, path: Path | None = None, env: Mapping[str, str] | None = None) -> Config:
    """Return the effective configuration for a project rooted at ``root``.

    Fragments are merged in order: ``[tool.lintweave]`` from ``pyproject.toml``,
    then ``lintweave.toml`` (or ``path`` when supplied). Values left unset keep
    the model defaults.

    Args:
        root: Project root used to locate configuration documents.
        path: Optional explicit configuration file replacing ``lintweave.toml``.
        env: Environment used for ``$VAR`` expansion; defaults to ``os.environ``.

    Returns:
        Config: Validated configuration model.

    Raises:
        ConfigError: If an explicit ``path`` is missing or any document is invalid.
    """

    if path is not None and not path.exists():
        raise ConfigError(f"Configuration file {path} does not exist")
    sources = (
        PyProjectConfigSource(root / PYPROJECT_FILENAME, env=env),
        TomlConfigSource(path if path is not None else root / CONFIG_FILENAME, env=env),
    )
    merged: dict[str, Any] = {}
    for source in sources:
        merged = _deep_merge(merged, source.load())
    try:
        return Config.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


__all__ = ["PyProjectConfigSource", "TomlConfigSource", "load_config"]
