# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Fold batch outcomes into the aggregated run result."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Final

from ..core.models import (
    AggregatedResult,
    BatchOutcome,
    EngineSummary,
    FileResult,
    JsonValue,
    PerformanceMetrics,
    RunSummary,
    Violation,
)

UNCATEGORIZED: Final[str] = "uncategorized"


@dataclass(slots=True)
class _EngineTally:
    rules: dict[str, None] = field(default_factory=dict)
    violations: int = 0
    files: int = 0
    batches: int = 0
    failed_batches: int = 0

    def freeze(self) -> EngineSummary:
        return EngineSummary(
            rules=tuple(self.rules),
            violations=self.violations,
            files=self.files,
            batches=self.batches,
            failed_batches=self.failed_batches,
        )


class ResultMerger:
    """Deterministic, side-effect free fold over :class:`BatchOutcome` values."""

    def merge(
        self,
        outcomes: Iterable[BatchOutcome] | None,
        *,
        file_count: int = 0,
        performance: PerformanceMetrics | None = None,
        skipped_rules: Sequence[str] = (),
        rule_categories: Mapping[str, str] | None = None,
        metadata: Mapping[str, JsonValue] | None = None,
    ) -> AggregatedResult:
        """Merge ``outcomes`` in the order they were produced.

        Engine file counts are taken once per engine rather than summed per
        batch because every batch of a run shares the same file set.

        Args:
            outcomes: Batch outcomes; ``None`` or empty yields zero totals.
            file_count: Number of files analysed by the run.
            performance: Workload metrics to attach to the result.
            skipped_rules: Rules the router declined to run.
            rule_categories: Rule id to category, used when a violation
                carries no category of its own.
            metadata: Extra JSON-compatible metadata for the result.

        Returns:
            AggregatedResult: Immutable aggregated result.
        """

        collected = tuple(outcomes or ())
        categories_by_rule = rule_categories or {}
        results: list[FileResult] = []
        violations: list[Violation] = []
        tallies: dict[str, _EngineTally] = {}
        categories: Counter[str] = Counter()
        severities: Counter[str] = Counter()

        for outcome in collected:
            tally = tallies.setdefault(outcome.engine, _EngineTally())
            tally.batches += 1
            tally.rules.update(dict.fromkeys(outcome.rules))
            tally.files = max(tally.files, outcome.file_count)
            if not outcome.success:
                tally.failed_batches += 1
                continue
            results.extend(outcome.results)
            batch_violations = [item for result in outcome.results for item in result.violations]
            batch_violations.extend(outcome.violations)
            tally.violations += len(batch_violations)
            for violation in batch_violations:
                category = violation.category or categories_by_rule.get(violation.rule_id.upper(), UNCATEGORIZED)
                categories[category] += 1
                severities[violation.severity.value] += 1
            violations.extend(batch_violations)

        summary = RunSummary(
            total_engines=len(tallies),
            total_batches=len(collected),
            failed_batches=sum(tally.failed_batches for tally in tallies.values()),
            total_violations=len(violations),
            total_files=file_count,
            engines={engine_id: tally.freeze() for engine_id, tally in tallies.items()},
            categories=dict(categories),
            severities=dict(severities),
        )
        return AggregatedResult(
            results=tuple(results),
            violations=tuple(violations),
            summary=summary,
            outcomes=collected,
            skipped_rules=tuple(skipped_rules),
            performance=performance or PerformanceMetrics(),
            metadata=dict(metadata or {}),
        )


__all__ = ["ResultMerger", "UNCATEGORIZED"]
