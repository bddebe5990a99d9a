# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for console status helpers and debug log configuration."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from lintweave.core.logging import ROOT_LOGGER_NAME, configure_debug_logging, fail, info, ok, warn


def test_status_messages_split_between_streams(capsys: pytest.CaptureFixture[str]) -> None:
    ok("done", use_emoji=False, use_color=False)
    info("note", use_emoji=False, use_color=False)
    warn("careful", use_emoji=False, use_color=False)
    fail("broken", use_emoji=False, use_color=False)

    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["done", "note"]
    assert captured.err.splitlines() == ["careful", "broken"]


def test_emoji_prefix_is_optional(capsys: pytest.CaptureFixture[str]) -> None:
    ok("with", use_emoji=True, use_color=False)
    ok("without", use_emoji=False, use_color=False)

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("✅")
    assert lines[1] == "without"


def test_configure_debug_logging_installs_one_handler() -> None:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    before = list(logger.handlers)
    try:
        configure_debug_logging(verbose=True)
        configure_debug_logging(verbose=False)

        handlers = [handler for handler in logger.handlers if isinstance(handler, RichHandler)]
        assert len(handlers) == 1
        assert logger.level == logging.WARNING
    finally:
        logger.handlers[:] = before
        logger.setLevel(logging.NOTSET)
