# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing status messages and the package debug log handler."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

from rich.logging import RichHandler
from rich.text import Text

from .console import detect_tty, get_console_manager

ROOT_LOGGER_NAME: Final[str] = "lintweave"


@dataclass(frozen=True, slots=True)
class _Level:
    prefix: str
    style: str
    stderr: bool = False


_LEVELS: Final[Mapping[str, _Level]] = {
    "info": _Level("ℹ️ ", "cyan"),
    "ok": _Level("✅ ", "green"),
    "warn": _Level("⚠️ ", "yellow", stderr=True),
    "fail": _Level("❌ ", "red", stderr=True),
}


def emoji(symbol: str, enable: bool) -> str:
    """Return ``symbol`` when emoji output is enabled, otherwise an empty string."""

    return symbol if enable else ""


def _emit(level: str, msg: str, *, use_emoji: bool, use_color: bool | None) -> None:
    """Print ``msg`` with the prefix and style registered for ``level``.

    Args:
        level: Key into the level table (``info``, ``ok``, ``warn``, ``fail``).
        msg: Message text to print.
        use_emoji: Whether the level's emoji prefix is rendered.
        use_color: Explicit colour flag; ``None`` follows TTY detection.
    """

    spec = _LEVELS[level]
    color_enabled = detect_tty(stderr=spec.stderr) if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji, stderr=spec.stderr)
    text = Text(f"{emoji(spec.prefix, use_emoji)}{msg}")
    if color_enabled:
        text.stylize(spec.style)
    console.print(text)


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message on stdout."""

    _emit("info", msg, use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message on stdout."""

    _emit("ok", msg, use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning on stderr.

    Args:
        msg: Message text to display.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
    """

    _emit("warn", msg, use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message on stderr."""

    _emit("fail", msg, use_emoji=use_emoji, use_color=use_color)


def configure_debug_logging(*, verbose: bool) -> None:
    """Attach a Rich handler to the package logger.

    Repeated calls only adjust the level; the handler is installed once.

    Args:
        verbose: ``True`` to emit DEBUG records, ``False`` to keep warnings only.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if any(isinstance(handler, RichHandler) for handler in logger.handlers):
        return
    console = get_console_manager().get(color=detect_tty(stderr=True), emoji=False, stderr=True)
    logger.addHandler(RichHandler(console=console, show_path=False, markup=False))


__all__ = ["ROOT_LOGGER_NAME", "configure_debug_logging", "emoji", "fail", "info", "ok", "warn"]
