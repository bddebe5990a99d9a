# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from lintweave.config import Config, OutputConfig, PerformanceConfig
from lintweave.core.logging import get_console_manager


@pytest.fixture(autouse=True)
def _fresh_consoles() -> None:
    """Drop cached consoles so captured output follows the active stdout."""
    get_console_manager().clear()


@pytest.fixture
def make_files(tmp_path: Path) -> Callable[..., list[Path]]:
    """Return a factory creating ``count`` small source files under ``tmp_path``."""

    def _make(count: int, *, suffix: str = ".js", content: str = "const x = 1;\n") -> list[Path]:
        root = tmp_path / "src"
        root.mkdir(exist_ok=True)
        files = []
        for index in range(count):
            path = root / f"file_{index:04d}{suffix}"
            path.write_text(content, encoding="utf-8")
            files.append(path)
        return files

    return _make


@pytest.fixture
def quiet_config() -> Config:
    """Return a configuration with console output suppressed."""
    return Config(output=OutputConfig(quiet=True, emoji=False, color=False))


@pytest.fixture
def fast_timeouts() -> PerformanceConfig:
    """Return performance limits with a 50ms batch deadline."""
    return PerformanceConfig(
        base_timeout_ms=50,
        timeout_per_file_ms=0,
        timeout_per_rule_ms=0,
        max_timeout_ms=50,
    )
