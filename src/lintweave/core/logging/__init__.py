# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Console status helpers and debug log configuration."""

from __future__ import annotations

from .console import RichConsoleManager, detect_tty, get_console_manager
from .public import ROOT_LOGGER_NAME, configure_debug_logging, emoji, fail, info, ok, warn

__all__ = [
    "ROOT_LOGGER_NAME",
    "RichConsoleManager",
    "configure_debug_logging",
    "detect_tty",
    "emoji",
    "fail",
    "get_console_manager",
    "info",
    "ok",
    "warn",
]
