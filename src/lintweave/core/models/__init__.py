# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the lintweave package."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import TypeAliasType

JsonScalar = TypeAliasType("JsonScalar", str | int | float | bool | None)
JsonValue = TypeAliasType("JsonValue", JsonScalar | list["JsonValue"] | dict[str, "JsonValue"])


class Severity(str, Enum):
    """Severity levels reported by analysis engines."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


class Violation(BaseModel):
    """Single rule violation reported by an engine."""

    model_config = ConfigDict(validate_assignment=True)

    rule_id: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    message: str
    severity: Severity = Severity.WARNING
    engine: str | None = None
    category: str | None = None
    meta: dict[str, JsonValue] = Field(default_factory=dict)

    @field_validator("file", mode="before")
    @classmethod
    def _normalize_file(cls, value: str | Path | None) -> str | None:
        """Render path-like file references as POSIX strings.

        Args:
            value: File reference emitted by the engine.

        Returns:
            str | None: POSIX path string, or ``None`` when the engine omitted the value.
        """

        if value is None:
            return None
        if isinstance(value, Path):
            return value.as_posix()
        return str(value)


class FileResult(BaseModel):
    """Violations reported for one file."""

    model_config = ConfigDict(validate_assignment=True)

    file: str
    violations: list[Violation] = Field(default_factory=list)

    @field_validator("file", mode="before")
    @classmethod
    def _normalize_file(cls, value: str | Path) -> str:
        return value.as_posix() if isinstance(value, Path) else str(value)


class EngineReport(BaseModel):
    """Payload returned by :meth:`Engine.analyze`.

    ``results`` groups violations per file. ``violations`` holds findings that
    the engine could not attribute to a file result (project-wide checks).
    """

    model_config = ConfigDict(validate_assignment=True)

    results: list[FileResult] = Field(default_factory=list)
    violations: list[Violation] = Field(default_factory=list)
    metadata: dict[str, JsonValue] = Field(default_factory=dict)

    def iter_violations(self) -> Iterator[Violation]:
        """Yield every violation, file results first.

        Returns:
            Iterator[Violation]: Violations in report order.
        """

        for file_result in self.results:
            yield from file_result.violations
        yield from self.violations

    def violation_count(self) -> int:
        """Return the number of violations carried by the report.

        Returns:
            int: Count of file-level and free-standing violations.
        """

        return sum(len(result.violations) for result in self.results) + len(self.violations)


class FailureKind(str, Enum):
    """Classification applied to failed batches."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


class FailureClassification(BaseModel):
    """Typed verdict describing how a batch failure should be treated."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    reason: str
    suggested_batch_size: int | None = None

    @property
    def retryable(self) -> bool:
        """Return ``True`` when the failed batch may be retried in smaller slices."""

        return self.kind is FailureKind.RETRYABLE


class BatchOutcome(BaseModel):
    """Execution outcome recorded for one (engine, batch) pair."""

    model_config = ConfigDict(frozen=True)

    engine: str
    batch_number: int
    total_batches: int
    rules: tuple[str, ...]
    file_count: int
    success: bool
    results: tuple[FileResult, ...] = ()
    violations: tuple[Violation, ...] = ()
    timeout_ms: int = 0
    duration_ms: float = 0.0
    error: str | None = None
    classification: FailureClassification | None = None
    attempt: int = 0
    sub_batch: int | None = None

    @property
    def violation_count(self) -> int:
        """Return the number of violations attached to the outcome."""

        return sum(len(result.violations) for result in self.results) + len(self.violations)

    @property
    def retry_recommended(self) -> bool:
        """Return ``True`` when the failure classification suggests a smaller retry."""

        return self.classification is not None and self.classification.retryable


class PerformanceMetrics(BaseModel):
    """Counters captured while preparing the run's workload."""

    model_config = ConfigDict(frozen=True)

    original_files: int = 0
    optimized_files: int = 0
    filtered_files: int = 0
    original_rules: int = 0
    optimized_rules: int = 0
    rule_batches: int = 0
    optimization_time_ms: float = 0.0


class EngineSummary(BaseModel):
    """Per-engine statistics accumulated across batches."""

    model_config = ConfigDict(frozen=True)

    rules: tuple[str, ...] = ()
    violations: int = 0
    files: int = 0
    batches: int = 0
    failed_batches: int = 0


class RunSummary(BaseModel):
    """Run-wide totals derived from every batch outcome."""

    model_config = ConfigDict(frozen=True)

    total_engines: int = 0
    total_batches: int = 0
    failed_batches: int = 0
    total_violations: int = 0
    total_files: int = 0
    engines: dict[str, EngineSummary] = Field(default_factory=dict)
    categories: dict[str, int] = Field(default_factory=dict)
    severities: dict[str, int] = Field(default_factory=dict)


class AggregatedResult(BaseModel):
    """Terminal value returned by an orchestrator run."""

    model_config = ConfigDict(frozen=True)

    results: tuple[FileResult, ...] = ()
    violations: tuple[Violation, ...] = ()
    summary: RunSummary = Field(default_factory=RunSummary)
    outcomes: tuple[BatchOutcome, ...] = ()
    skipped_rules: tuple[str, ...] = ()
    performance: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    metadata: dict[str, JsonValue] = Field(default_factory=dict)

    def has_violations(self) -> bool:
        """Return whether any engine reported a violation.

        Returns:
            bool: ``True`` when the merged violation list is non-empty.
        """

        return bool(self.violations)

    def has_failures(self) -> bool:
        """Return whether any batch failed or timed out.

        Returns:
            bool: ``True`` when at least one outcome is unsuccessful.
        """

        return any(not outcome.success for outcome in self.outcomes)


__all__ = [
    "AggregatedResult",
    "BatchOutcome",
    "EngineReport",
    "EngineSummary",
    "FailureClassification",
    "FailureKind",
    "FileResult",
    "JsonValue",
    "PerformanceMetrics",
    "RunSummary",
    "Severity",
    "Violation",
]
