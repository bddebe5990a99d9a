# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the pattern-based heuristic engine."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from lintweave.catalog import Rule, RuleCatalog
from lintweave.core.models import Severity
from lintweave.engines import AnalysisOptions, CancellationToken, HeuristicEngine
from lintweave.errors import AnalysisCancelledError

CONSOLE_RULE = Rule(
    id="C043",
    category="quality",
    languages=("javascript", "python"),
    patterns=(r"\bconsole\.log\(",),
    message="Console output call found",
)
SECURITY_RULE = Rule(id="S009", category="security", severity="error", patterns=(r"\bmd5\b",))
PLAIN_RULE = Rule(id="C006")


def _engine() -> HeuristicEngine:
    engine = HeuristicEngine(RuleCatalog(rules=[CONSOLE_RULE, SECURITY_RULE, PLAIN_RULE]))
    asyncio.run(engine.initialize({}))
    return engine


def test_initialize_registers_only_pattern_rules() -> None:
    engine = _engine()

    assert engine.get_supported_rules() == ["C043", "S009"]
    assert not engine.is_rule_supported("C006")


def test_initialize_honours_rule_restriction() -> None:
    engine = HeuristicEngine(RuleCatalog(rules=[CONSOLE_RULE, SECURITY_RULE]))

    asyncio.run(engine.initialize({"rules": ["s009"]}))

    assert engine.get_supported_rules() == ["S009"]


def test_analyze_reports_line_and_column(tmp_path: Path) -> None:
    source = tmp_path / "app.js"
    source.write_text("const a = 1;\n  console.log(a);\nconst h = md5(a);\n", encoding="utf-8")
    engine = _engine()

    report = asyncio.run(
        engine.analyze([source], [CONSOLE_RULE, SECURITY_RULE, PLAIN_RULE], AnalysisOptions(timeout_ms=1_000)),
    )

    (result,) = report.results
    found = {(item.rule_id, item.line, item.column) for item in result.violations}
    assert found == {("C043", 2, 3), ("S009", 3, 11)}
    security = next(item for item in result.violations if item.rule_id == "S009")
    assert security.severity is Severity.ERROR
    assert security.engine == "heuristic"
    assert security.category == "security"


def test_analyze_skips_languages_the_rule_does_not_cover(tmp_path: Path) -> None:
    source = tmp_path / "Main.kt"
    source.write_text("console.log(x)\n", encoding="utf-8")

    report = asyncio.run(_engine().analyze([source], [CONSOLE_RULE], AnalysisOptions(timeout_ms=1_000)))

    assert report.results == []


def test_cancelled_token_stops_analysis(tmp_path: Path) -> None:
    source = tmp_path / "app.js"
    source.write_text("console.log(1)\n", encoding="utf-8")
    token = CancellationToken()
    token.cancel("deadline")

    with pytest.raises(AnalysisCancelledError):
        asyncio.run(
            _engine().analyze([source], [CONSOLE_RULE], AnalysisOptions(timeout_ms=1_000, cancellation=token)),
        )


def test_cleanup_forgets_rules() -> None:
    engine = _engine()

    asyncio.run(engine.cleanup())

    assert engine.get_supported_rules() == []
    assert not engine.initialized
