# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Workload shaping: file filtering, adaptive timeouts, and rule batching.

Every function here is pure with respect to its inputs; the file filter only
reads file sizes from disk.
"""

from __future__ import annotations

import logging
import math
import re
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Final, TypeVar

from ..catalog.models import Rule
from ..config.models import PerformanceConfig
from ..core.models import FailureClassification, FailureKind, PerformanceMetrics
from ..errors import AnalysisCancelledError, BatchExecutionError, BatchTimeoutError

LOGGER = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

LARGE_PROJECT_FILE_COUNT: Final[int] = 100
LARGE_PROJECT_BATCH_SIZE: Final[int] = 5
DEFAULT_BATCH_SIZE: Final[int] = 10

_DOUBLE_STAR: Final[str] = "\0DOUBLE_STAR\0"
_RETRYABLE_ERRORS: Final[tuple[type[BaseException], ...]] = (
    BatchTimeoutError,
    AnalysisCancelledError,
    MemoryError,
    RecursionError,
)


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob-style exclusion pattern into a case-insensitive regex.

    ``**`` spans path separators, ``*`` and ``?`` stay within one segment.
    The result is padded with ``.*`` on both sides so it matches anywhere in
    the path.

    Args:
        pattern: Glob such as ``**/node_modules/**``.

    Returns:
        re.Pattern[str]: Compiled expression to use with :meth:`re.Pattern.match`.
    """

    translated = (
        pattern.replace(".", r"\.")
        .replace("**", _DOUBLE_STAR)
        .replace("*", "[^/]*")
        .replace(_DOUBLE_STAR, ".*")
        .replace("?", "[^/]")
    )
    if not translated.startswith(".*"):
        translated = ".*" + translated
    if not translated.endswith(".*"):
        translated += ".*"
    return re.compile(translated, re.IGNORECASE)


def _match_target(path: Path) -> str:
    posix = path.as_posix()
    return posix if posix.startswith("/") else f"/{posix}"


def is_excluded(path: Path, patterns: Iterable[str]) -> bool:
    """Return whether ``path`` matches any exclusion pattern.

    Relative paths are matched as if rooted so ``**/dir/**`` also excludes a
    top-level ``dir``.

    Args:
        path: Candidate file.
        patterns: Glob-style exclusion patterns.

    Returns:
        bool: ``True`` when at least one pattern matches.
    """

    target = _match_target(path)
    return any(glob_to_regex(pattern).match(target) for pattern in patterns)


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Files kept by the filter and the number dropped."""

    files: tuple[Path, ...]
    removed: int


def filter_files(files: Sequence[Path], config: PerformanceConfig) -> FilterResult:
    """Apply exclusion patterns and size/count caps to ``files``.

    Collection stops once the cumulative size cap or the file-count cap is
    reached; non-positive caps mean unlimited. Files whose size cannot be read
    are dropped.

    Args:
        files: Candidate files in caller order.
        config: Performance limits.

    Returns:
        FilterResult: Surviving files in input order and the removed count.
    """

    if not config.enable_file_filtering:
        return FilterResult(files=tuple(files), removed=0)
    kept: list[Path] = []
    total_size = 0
    for path in files:
        if is_excluded(path, config.exclude_patterns):
            continue
        try:
            size = path.stat().st_size
        except OSError as exc:
            LOGGER.debug("cannot stat %s: %s", path, exc)
            continue
        if config.max_file_size > 0 and size > config.max_file_size:
            LOGGER.debug("skipping large file %s (%d bytes)", path, size)
            continue
        if config.max_total_size > 0 and total_size + size > config.max_total_size:
            LOGGER.debug("total size limit reached after %d files", len(kept))
            break
        if config.max_files > 0 and len(kept) >= config.max_files:
            LOGGER.debug("file count limit reached: %d", config.max_files)
            break
        kept.append(path)
        total_size += size
    return FilterResult(files=tuple(kept), removed=len(files) - len(kept))


def adaptive_timeout(file_count: int, rule_count: int, config: PerformanceConfig) -> int:
    """Return the deadline for a batch of ``file_count`` files and ``rule_count`` rules.

    Args:
        file_count: Files analysed by the batch.
        rule_count: Rules in the batch.
        config: Timeout base, increments, and ceiling.

    Returns:
        int: Milliseconds, never above ``config.max_timeout_ms``.
    """

    raw = (
        config.base_timeout_ms
        + max(0, file_count) * config.timeout_per_file_ms
        + max(0, rule_count) * config.timeout_per_rule_ms
    )
    return min(raw, config.max_timeout_ms)


def resolve_batch_size(file_count: int, config: PerformanceConfig) -> int:
    """Return the rule batch size for a run over ``file_count`` files.

    Args:
        file_count: Number of files after filtering.
        config: Performance limits; an explicit ``rule_batch_size`` wins.

    Returns:
        int: Positive batch size.
    """

    if config.rule_batch_size:
        return config.rule_batch_size
    return LARGE_PROJECT_BATCH_SIZE if file_count > LARGE_PROJECT_FILE_COUNT else DEFAULT_BATCH_SIZE


def partition(items: Sequence[ItemT], size: int) -> list[tuple[ItemT, ...]]:
    """Split ``items`` into contiguous chunks of at most ``size`` elements.

    Args:
        items: Sequence to split.
        size: Maximum chunk length.

    Returns:
        list[tuple[ItemT, ...]]: ``ceil(len(items) / size)`` chunks; empty for empty input.

    Raises:
        ValueError: If ``size`` is not positive.
    """

    if size <= 0:
        raise ValueError("batch size must be positive")
    return [tuple(items[start : start + size]) for start in range(0, len(items), size)]


@dataclass(frozen=True, slots=True)
class RuleBatch:
    """Ordered slice of one engine's rule group."""

    engine: str
    number: int
    total: int
    rules: tuple[Rule, ...]

    @property
    def rule_ids(self) -> tuple[str, ...]:
        """Return the identifiers of the batched rules."""

        return tuple(rule.id for rule in self.rules)


def create_batches(engine_id: str, rules: Sequence[Rule], batch_size: int) -> list[RuleBatch]:
    """Split an engine's rule group into numbered batches.

    Args:
        engine_id: Engine that owns the group.
        rules: Rules routed to the engine, in routing order.
        batch_size: Maximum rules per batch.

    Returns:
        list[RuleBatch]: Batches numbered from 1 that partition ``rules``.
    """

    chunks = partition(rules, batch_size)
    return [
        RuleBatch(engine=engine_id, number=index, total=len(chunks), rules=chunk)
        for index, chunk in enumerate(chunks, start=1)
    ]


def classify_failure(error: BaseException, batch_size: int) -> FailureClassification:
    """Classify a batch failure by exception type.

    Timeouts, cancellations, memory exhaustion, and recursion overflow are
    retryable with half the batch size; anything else is fatal for the batch.

    Args:
        error: Exception raised while running the batch.
        batch_size: Number of rules in the failed batch.

    Returns:
        FailureClassification: Verdict with a reduced batch size hint.
    """

    cause = error.original if isinstance(error, BatchExecutionError) else error
    if isinstance(cause, _RETRYABLE_ERRORS):
        return FailureClassification(
            kind=FailureKind.RETRYABLE,
            reason=type(cause).__name__,
            suggested_batch_size=max(1, batch_size // 2),
        )
    return FailureClassification(kind=FailureKind.FATAL, reason=type(cause).__name__)


class PerformanceOptimizer:
    """Bind the workload helpers to one :class:`PerformanceConfig`."""

    def __init__(self, config: PerformanceConfig) -> None:
        self.config = config

    def filter_files(self, files: Sequence[Path]) -> FilterResult:
        """Filter ``files`` with the bound limits."""

        return filter_files(files, self.config)

    def timeout_for(self, file_count: int, rule_count: int) -> int:
        """Return the adaptive timeout for one batch."""

        return adaptive_timeout(file_count, rule_count, self.config)

    def batch_size(self, file_count: int) -> int:
        """Return the rule batch size for ``file_count`` files."""

        return resolve_batch_size(file_count, self.config)

    def batch_count(self, rule_count: int, file_count: int) -> int:
        """Return how many batches ``rule_count`` rules will be split into."""

        return math.ceil(rule_count / self.batch_size(file_count))

    def metrics(
        self,
        *,
        original_files: int,
        filtered: FilterResult,
        rule_count: int,
        started: float,
    ) -> PerformanceMetrics:
        """Build the immutable metrics record for the run.

        Args:
            original_files: Number of files supplied by the caller.
            filtered: Result of the file filter.
            rule_count: Number of rules requested.
            started: ``time.perf_counter`` value captured before filtering.

        Returns:
            PerformanceMetrics: Counters describing the shaped workload.
        """

        return PerformanceMetrics(
            original_files=original_files,
            optimized_files=len(filtered.files),
            filtered_files=filtered.removed,
            original_rules=rule_count,
            optimized_rules=rule_count,
            rule_batches=self.batch_count(rule_count, len(filtered.files)),
            optimization_time_ms=(time.perf_counter() - started) * 1000,
        )


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "FilterResult",
    "PerformanceOptimizer",
    "RuleBatch",
    "adaptive_timeout",
    "classify_failure",
    "create_batches",
    "filter_files",
    "glob_to_regex",
    "is_excluded",
    "partition",
    "resolve_batch_size",
]
