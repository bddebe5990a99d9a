# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for folding batch outcomes into an aggregated result."""

from __future__ import annotations

from lintweave.core.models import (
    BatchOutcome,
    FailureClassification,
    FailureKind,
    FileResult,
    PerformanceMetrics,
    Severity,
    Violation,
)
from lintweave.orchestration import ResultMerger


def _violation(rule_id: str, file: str, *, category: str | None = None, severity=Severity.WARNING) -> Violation:
    return Violation(rule_id=rule_id, file=file, line=1, message="m", category=category, severity=severity)


def _outcome(engine: str, number: int, total: int, rules: tuple[str, ...], violations: list[Violation]) -> BatchOutcome:
    results = tuple(
        FileResult(file=file, violations=[item for item in violations if item.file == file])
        for file in dict.fromkeys(item.file for item in violations)
    )
    return BatchOutcome(
        engine=engine,
        batch_number=number,
        total_batches=total,
        rules=rules,
        file_count=4,
        success=True,
        results=results,
    )


def test_empty_input_yields_zero_result() -> None:
    merger = ResultMerger()

    for empty in (None, []):
        result = merger.merge(empty)
        assert result.violations == ()
        assert result.summary.total_engines == 0
        assert result.summary.total_violations == 0
        assert result.summary.total_batches == 0
        assert result.performance == PerformanceMetrics()
        assert not result.has_failures()


def test_merge_concatenates_in_outcome_order_and_counts_engines_once() -> None:
    outcomes = [
        _outcome("heuristic", 1, 2, ("A",), [_violation("A", "a.js", category="security")]),
        _outcome("heuristic", 2, 2, ("B",), [_violation("B", "a.js"), _violation("B", "b.js")]),
        _outcome("syntax", 1, 1, ("C",), [_violation("C", "c.js", severity=Severity.ERROR)]),
    ]

    result = ResultMerger().merge(outcomes, file_count=4, rule_categories={"B": "naming"}, skipped_rules=["Z"])

    assert [item.rule_id for item in result.violations] == ["A", "B", "B", "C"]
    assert result.summary.total_engines == 2
    assert result.summary.total_batches == 3
    assert result.summary.total_violations == 4
    assert result.summary.total_files == 4
    heuristic = result.summary.engines["heuristic"]
    assert heuristic.rules == ("A", "B")
    assert heuristic.violations == 3
    assert heuristic.files == 4
    assert heuristic.batches == 2
    assert result.summary.categories == {"security": 1, "naming": 2, "uncategorized": 1}
    assert result.summary.severities == {"warning": 3, "error": 1}
    assert result.skipped_rules == ("Z",)


def test_failed_outcomes_count_but_contribute_no_violations() -> None:
    failed = BatchOutcome(
        engine="heuristic",
        batch_number=1,
        total_batches=1,
        rules=("A",),
        file_count=2,
        success=False,
        error="boom",
        classification=FailureClassification(kind=FailureKind.FATAL, reason="ValueError"),
    )

    result = ResultMerger().merge([failed], file_count=2)

    assert result.has_failures()
    assert not result.has_violations()
    assert result.summary.failed_batches == 1
    assert result.summary.engines["heuristic"].failed_batches == 1
