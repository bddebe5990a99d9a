# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Batch execution with per-batch deadlines and failure isolation.

Each batch races ``engine.analyze`` against its adaptive timeout. When the
deadline passes first the batch's cancellation token is cancelled, the engine
task is cancelled, and anything it produces afterwards is discarded. Every
failure is converted into a zero-violation :class:`BatchOutcome` so one batch
can never abort its siblings.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from ..catalog.models import Rule
from ..config.models import OutputConfig, PerformanceConfig
from ..core.logging import warn
from ..core.models import BatchOutcome, EngineReport, FailureClassification, Violation
from ..engines.base import AnalysisOptions, BatchInfo, CancellationToken, Engine
from ..engines.registry import EngineRegistry
from ..errors import BatchContext, BatchExecutionError, BatchTimeoutError
from .hooks import OrchestratorHooks
from .optimizer import PerformanceOptimizer, RuleBatch, classify_failure, create_batches, partition

LOGGER = logging.getLogger(__name__)


def _discard_late_result(task: asyncio.Future[Any]) -> None:
    """Consume the outcome of an abandoned engine task."""

    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        LOGGER.debug("discarded late failure from abandoned batch: %s", exc)
    else:
        LOGGER.debug("discarded late result from abandoned batch")


def _coerce_report(raw: EngineReport | Mapping[str, Any], engine_id: str) -> EngineReport:
    """Return a copy of ``raw`` whose violations all name their engine.

    The engine's own report and violation objects are left untouched.
    """

    report = raw if isinstance(raw, EngineReport) else EngineReport.model_validate(raw)

    def _stamp(violation: Violation) -> Violation:
        if violation.engine is not None:
            return violation
        return violation.model_copy(update={"engine": engine_id})

    results = [
        file_result.model_copy(update={"violations": [_stamp(item) for item in file_result.violations]})
        for file_result in report.results
    ]
    return report.model_copy(
        update={"results": results, "violations": [_stamp(item) for item in report.violations]},
    )


class BatchExecutor:
    """Run engine groups batch by batch and collect their outcomes."""

    def __init__(
        self,
        registry: EngineRegistry,
        optimizer: PerformanceOptimizer,
        *,
        engine_settings: Mapping[str, Mapping[str, Any]] | None = None,
        output: OutputConfig | None = None,
        hooks: OrchestratorHooks | None = None,
        debug_logger: Callable[[str], None] | None = None,
    ) -> None:
        """Bind the executor to its collaborators.

        Args:
            registry: Registry resolving engine ids to engines.
            optimizer: Optimizer providing batch sizes and timeouts.
            engine_settings: Per-engine settings forwarded as ``options.extras``.
            output: Console preferences for batch failure warnings.
            hooks: Optional lifecycle callbacks.
            debug_logger: Optional sink receiving one line per batch.
        """

        self._registry = registry
        self._optimizer = optimizer
        self._settings = engine_settings or {}
        self._output = output or OutputConfig()
        self._hooks = hooks or OrchestratorHooks()
        self._debug = debug_logger

    @property
    def performance(self) -> PerformanceConfig:
        """Return the performance limits driving batching and retries."""

        return self._optimizer.config

    async def execute(
        self,
        groups: Mapping[str, Sequence[Rule]],
        files: Sequence[Path],
    ) -> list[BatchOutcome]:
        """Run every engine group over ``files``.

        With ``max_concurrent_batches`` above one, groups run concurrently
        under a semaphore; batches of the same engine stay serialised unless
        the engine declares ``concurrency_safe``. Outcomes are returned in
        group order, then batch order, regardless of completion order.

        Args:
            groups: Engine id to routed rules, in routing order.
            files: Filtered files shared by every batch.

        Returns:
            list[BatchOutcome]: One outcome per executed batch or retry slice.
        """

        batch_size = self._optimizer.batch_size(len(files))
        lanes: list[list[RuleBatch]] = []
        for engine_id, rules in groups.items():
            batches = create_batches(engine_id, rules, batch_size)
            engine = self._registry.try_get(engine_id)
            if engine is not None and engine.concurrency_safe and self.performance.max_concurrent_batches > 1:
                lanes.extend([batch] for batch in batches)
            else:
                lanes.append(batches)

        limit = self.performance.max_concurrent_batches
        if limit <= 1:
            outcomes: list[BatchOutcome] = []
            for lane in lanes:
                outcomes.extend(await self._run_lane(lane, files, None))
            return outcomes

        semaphore = asyncio.Semaphore(limit)
        lane_results = await asyncio.gather(*(self._run_lane(lane, files, semaphore) for lane in lanes))
        return [outcome for lane_outcomes in lane_results for outcome in lane_outcomes]

    async def _run_lane(
        self,
        batches: Sequence[RuleBatch],
        files: Sequence[Path],
        semaphore: asyncio.Semaphore | None,
    ) -> list[BatchOutcome]:
        outcomes: list[BatchOutcome] = []
        for batch in batches:
            if semaphore is None:
                outcomes.extend(await self.run_with_retry(batch, files))
                continue
            async with semaphore:
                outcomes.extend(await self.run_with_retry(batch, files))
        return outcomes

    async def run_with_retry(
        self,
        batch: RuleBatch,
        files: Sequence[Path],
        *,
        depth: int = 0,
        sub_batch: int | None = None,
    ) -> list[BatchOutcome]:
        """Run ``batch`` and, when enabled, retry retryable failures in smaller slices.

        The failed outcome is kept alongside the outcomes of its retry slices.

        Args:
            batch: Batch to execute.
            files: Files shared by the batch.
            depth: Retry depth of ``batch``; zero for a first attempt.
            sub_batch: Slice index when ``batch`` is itself a retry slice.

        Returns:
            list[BatchOutcome]: The batch outcome followed by any retry outcomes.
        """

        outcome = await self.run_batch(batch, files, attempt=depth, sub_batch=sub_batch)
        outcomes = [outcome]
        if not self._should_retry(outcome, batch, depth):
            return outcomes
        classification = outcome.classification
        size = classification.suggested_batch_size if classification and classification.suggested_batch_size else 1
        slices = partition(batch.rules, size)
        self._trace(
            f"retry {batch.engine} batch {batch.number} as {len(slices)} slices of <= {size} rules (depth {depth + 1})",
        )
        for index, rules in enumerate(slices, start=1):
            child = RuleBatch(engine=batch.engine, number=batch.number, total=batch.total, rules=rules)
            outcomes.extend(await self.run_with_retry(child, files, depth=depth + 1, sub_batch=index))
        return outcomes

    def _should_retry(self, outcome: BatchOutcome, batch: RuleBatch, depth: int) -> bool:
        config = self.performance
        return (
            config.retry_failed_batches
            and outcome.retry_recommended
            and depth < config.max_retries
            and len(batch.rules) > 1
        )

    async def run_batch(
        self,
        batch: RuleBatch,
        files: Sequence[Path],
        *,
        attempt: int = 0,
        sub_batch: int | None = None,
    ) -> BatchOutcome:
        """Execute one batch against its engine under the adaptive deadline.

        Args:
            batch: Batch to execute.
            files: Files shared by the batch.
            attempt: Retry depth recorded on the outcome.
            sub_batch: Retry slice index recorded on the outcome.

        Returns:
            BatchOutcome: Successful outcome with the engine's findings, or a
            failed zero-violation outcome carrying the failure classification.
        """

        timeout_ms = self._optimizer.timeout_for(len(files), len(batch.rules))
        context = BatchContext(
            engine=batch.engine,
            batch_number=batch.number,
            total_batches=batch.total,
            file_count=len(files),
            rule_count=len(batch.rules),
            timeout_ms=timeout_ms,
        )
        if self._hooks.before_batch is not None:
            self._hooks.before_batch(batch)
        self._trace(
            f"run {batch.engine} batch {batch.number}/{batch.total} "
            f"rules={','.join(batch.rule_ids)} files={len(files)} timeout={timeout_ms}ms",
        )
        started = time.perf_counter()
        try:
            engine = self._registry[batch.engine]
            report = await self._race(engine, batch, files, timeout_ms, context)
        except (BatchTimeoutError, BatchExecutionError) as exc:
            outcome = self._failure(batch, len(files), timeout_ms, started, exc, attempt, sub_batch)
        except Exception as exc:  # noqa: BLE001
            wrapped = BatchExecutionError(exc, context)
            outcome = self._failure(batch, len(files), timeout_ms, started, wrapped, attempt, sub_batch)
        else:
            outcome = BatchOutcome(
                engine=batch.engine,
                batch_number=batch.number,
                total_batches=batch.total,
                rules=batch.rule_ids,
                file_count=len(files),
                success=True,
                results=tuple(report.results),
                violations=tuple(report.violations),
                timeout_ms=timeout_ms,
                duration_ms=(time.perf_counter() - started) * 1000,
                attempt=attempt,
                sub_batch=sub_batch,
            )
            self._trace(
                f"done {batch.engine} batch {batch.number}/{batch.total}: "
                f"{outcome.violation_count} violations in {outcome.duration_ms:.0f}ms",
            )
        if self._hooks.after_batch is not None:
            self._hooks.after_batch(outcome)
        return outcome

    async def _race(
        self,
        engine: Engine,
        batch: RuleBatch,
        files: Sequence[Path],
        timeout_ms: int,
        context: BatchContext,
    ) -> EngineReport:
        token = CancellationToken(timeout_ms)
        options = AnalysisOptions(
            timeout_ms=timeout_ms,
            cancellation=token,
            batch=BatchInfo(number=batch.number, total=batch.total),
            verbose=self._output.verbose,
            extras=self._settings.get(batch.engine, {}),
        )
        task = asyncio.ensure_future(engine.analyze(list(files), list(batch.rules), options))
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        if task not in done:
            token.cancel(f"deadline of {timeout_ms}ms exceeded")
            task.cancel()
            task.add_done_callback(_discard_late_result)
            raise BatchTimeoutError(context)
        if task.cancelled():
            raise BatchExecutionError(asyncio.CancelledError("engine cancelled its own batch"), context)
        return _coerce_report(task.result(), engine.engine_id)

    def _failure(
        self,
        batch: RuleBatch,
        file_count: int,
        timeout_ms: int,
        started: float,
        error: BatchTimeoutError | BatchExecutionError,
        attempt: int,
        sub_batch: int | None,
    ) -> BatchOutcome:
        classification: FailureClassification = classify_failure(error, len(batch.rules))
        LOGGER.debug("batch failure (%s): %s", classification.kind.value, error, exc_info=error)
        if not self._output.quiet:
            hint = ""
            if classification.retryable:
                hint = f"; consider a batch size of {classification.suggested_batch_size}"
            warn(
                f"{error}{hint}",
                use_emoji=self._output.emoji,
                use_color=self._output.color,
            )
        return BatchOutcome(
            engine=batch.engine,
            batch_number=batch.number,
            total_batches=batch.total,
            rules=batch.rule_ids,
            file_count=file_count,
            success=False,
            timeout_ms=timeout_ms,
            duration_ms=(time.perf_counter() - started) * 1000,
            error=str(error),
            classification=classification,
            attempt=attempt,
            sub_batch=sub_batch,
        )

    def _trace(self, message: str) -> None:
        LOGGER.debug(message)
        if self._debug is not None:
            self._debug(message)


__all__ = ["BatchExecutor"]
