# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for batch execution, deadlines, failure isolation, and retries."""

from __future__ import annotations

import asyncio

from helpers.engines import FakeEngine, Script, make_rules

from lintweave.config import OutputConfig, PerformanceConfig
from lintweave.core.models import EngineReport, FailureKind, FileResult, Violation
from lintweave.engines import EngineRegistry
from lintweave.orchestration import BatchExecutor, OrchestratorHooks, PerformanceOptimizer

QUIET = OutputConfig(quiet=True, emoji=False, color=False)


def _executor(registry: EngineRegistry, config: PerformanceConfig, **kwargs) -> BatchExecutor:
    return BatchExecutor(registry, PerformanceOptimizer(config), output=QUIET, **kwargs)


def test_batches_run_in_order_with_per_batch_timeouts(make_files) -> None:
    engine = FakeEngine("x", {f"R{index}" for index in range(5)})
    config = PerformanceConfig(
        rule_batch_size=2,
        base_timeout_ms=1_000,
        timeout_per_file_ms=10,
        timeout_per_rule_ms=100,
        max_timeout_ms=60_000,
    )
    files = make_files(3)

    outcomes = asyncio.run(
        _executor(EngineRegistry([engine]), config).execute({"x": make_rules(*(f"R{i}" for i in range(5)))}, files),
    )

    assert [outcome.batch_number for outcome in outcomes] == [1, 2, 3]
    assert [call.rules for call in engine.calls] == [("R0", "R1"), ("R2", "R3"), ("R4",)]
    assert [outcome.timeout_ms for outcome in outcomes] == [1_230, 1_230, 1_130]
    assert all(outcome.success for outcome in outcomes)
    assert sum(outcome.violation_count for outcome in outcomes) == 15


def test_timeout_is_isolated_and_late_results_discarded(make_files, fast_timeouts: PerformanceConfig) -> None:
    slow = FakeEngine("x", {"A", "B", "C"}, script=Script(delay={1: 5.0}, ignore_cancellation=True))
    config = fast_timeouts.model_copy(update={"rule_batch_size": 1})
    files = make_files(2)

    outcomes = asyncio.run(_executor(EngineRegistry([slow]), config).execute({"x": make_rules("A", "B", "C")}, files))

    first, second, third = outcomes
    assert not first.success
    assert first.violation_count == 0
    assert first.classification is not None
    assert first.classification.kind is FailureKind.RETRYABLE
    assert "timed out after 50ms" in (first.error or "")
    assert second.success and third.success
    assert second.violation_count == 2
    assert third.violation_count == 2
    assert len(slow.late_results) == 1
    assert {violation.rule_id for violation in slow.late_results[0].iter_violations()} == {"A"}
    reported = [violation.rule_id for outcome in outcomes for result in outcome.results for violation in result.violations]
    assert "A" not in reported


def test_engine_error_is_wrapped_with_context(make_files) -> None:
    engine = FakeEngine("x", {"A", "B"}, script=Script(fail={1: ValueError("boom")}))
    config = PerformanceConfig(rule_batch_size=1)

    outcomes = asyncio.run(
        _executor(EngineRegistry([engine]), config).execute({"x": make_rules("A", "B")}, make_files(1)),
    )

    failed, succeeded = outcomes
    assert not failed.success
    assert failed.classification is not None
    assert failed.classification.kind is FailureKind.FATAL
    assert "boom" in (failed.error or "")
    assert "engine=x" in (failed.error or "")
    assert "batch_number=1" in (failed.error or "")
    assert succeeded.success


def test_failure_in_one_engine_does_not_stop_another(make_files) -> None:
    broken = FakeEngine("broken", {"A"}, script=Script(fail={1: RuntimeError("crash")}))
    healthy = FakeEngine("healthy", {"B"})
    registry = EngineRegistry([broken, healthy])

    outcomes = asyncio.run(
        _executor(registry, PerformanceConfig()).execute(
            {"broken": make_rules("A"), "healthy": make_rules("B")},
            make_files(2),
        ),
    )

    assert [(outcome.engine, outcome.success) for outcome in outcomes] == [("broken", False), ("healthy", True)]
    assert outcomes[1].violation_count == 2


def test_retry_is_recorded_but_not_run_by_default(make_files) -> None:
    engine = FakeEngine("x", {"A", "B", "C", "D"}, script=Script(fail={1: MemoryError()}))

    outcomes = asyncio.run(
        _executor(EngineRegistry([engine]), PerformanceConfig(rule_batch_size=4)).execute(
            {"x": make_rules("A", "B", "C", "D")},
            make_files(1),
        ),
    )

    assert len(outcomes) == 1
    assert outcomes[0].retry_recommended
    assert outcomes[0].classification is not None
    assert outcomes[0].classification.suggested_batch_size == 2


def test_opt_in_retry_splits_failed_batch(make_files) -> None:
    class FailsOnWideBatches(FakeEngine):
        async def analyze(self, files, rules, options):
            if len(rules) > 2:
                self.calls.append(None)
                raise MemoryError
            return await super().analyze(files, rules, options)

    engine = FailsOnWideBatches("x", {"A", "B", "C", "D"})
    config = PerformanceConfig(rule_batch_size=4, retry_failed_batches=True, max_retries=2)

    outcomes = asyncio.run(
        _executor(EngineRegistry([engine]), config).execute({"x": make_rules("A", "B", "C", "D")}, make_files(1)),
    )

    assert [outcome.success for outcome in outcomes] == [False, True, True]
    assert [outcome.sub_batch for outcome in outcomes] == [None, 1, 2]
    assert [outcome.attempt for outcome in outcomes] == [0, 1, 1]
    assert [outcome.rules for outcome in outcomes[1:]] == [("A", "B"), ("C", "D")]
    assert sum(outcome.violation_count for outcome in outcomes) == 4


def test_retry_depth_is_bounded(make_files) -> None:
    engine = FakeEngine("x", {"A", "B", "C", "D"}, script=Script(fail={1: RecursionError()}))
    config = PerformanceConfig(rule_batch_size=4, retry_failed_batches=True, max_retries=1)

    outcomes = asyncio.run(
        _executor(EngineRegistry([engine]), config).execute({"x": make_rules("A", "B", "C", "D")}, make_files(1)),
    )

    assert max(outcome.attempt for outcome in outcomes) == 1
    assert not any(outcome.success for outcome in outcomes)
    assert len(outcomes) == 3


def test_concurrent_groups_keep_same_engine_serialised(make_files) -> None:
    first = FakeEngine("first", {"A", "B", "C"}, script=Script(delay={1: 0.02, 2: 0.02, 3: 0.02}))
    second = FakeEngine("second", {"D", "E"}, script=Script(delay={1: 0.02, 2: 0.02}))
    registry = EngineRegistry([first, second])
    config = PerformanceConfig(rule_batch_size=1, max_concurrent_batches=4)

    outcomes = asyncio.run(
        _executor(registry, config).execute(
            {"first": make_rules("A", "B", "C"), "second": make_rules("D", "E")},
            make_files(1),
        ),
    )

    assert first.peak_active == 1
    assert second.peak_active == 1
    assert [(outcome.engine, outcome.batch_number) for outcome in outcomes] == [
        ("first", 1),
        ("first", 2),
        ("first", 3),
        ("second", 1),
        ("second", 2),
    ]


def test_concurrency_safe_engine_runs_batches_in_parallel(make_files) -> None:
    engine = FakeEngine(
        "x",
        {"A", "B", "C"},
        script=Script(delay={1: 0.05, 2: 0.05, 3: 0.05}),
        concurrency_safe=True,
    )
    config = PerformanceConfig(rule_batch_size=1, max_concurrent_batches=3)

    outcomes = asyncio.run(
        _executor(EngineRegistry([engine]), config).execute({"x": make_rules("A", "B", "C")}, make_files(1)),
    )

    assert engine.peak_active == 3
    assert [outcome.batch_number for outcome in outcomes] == [1, 2, 3]


def test_batch_hooks_fire_for_every_batch(make_files) -> None:
    seen_before: list[int] = []
    seen_after: list[bool] = []
    hooks = OrchestratorHooks(
        before_batch=lambda batch: seen_before.append(batch.number),
        after_batch=lambda outcome: seen_after.append(outcome.success),
    )
    engine = FakeEngine("x", {"A", "B"})

    asyncio.run(
        _executor(EngineRegistry([engine]), PerformanceConfig(rule_batch_size=1), hooks=hooks).execute(
            {"x": make_rules("A", "B")},
            make_files(1),
        ),
    )

    assert seen_before == [1, 2]
    assert seen_after == [True, True]


def test_dict_reports_are_accepted(make_files) -> None:
    class DictEngine(FakeEngine):
        async def analyze(self, files, rules, options):
            return {"results": [{"file": str(files[0]), "violations": [{"rule_id": "A", "message": "m"}]}]}

    outcomes = asyncio.run(
        _executor(EngineRegistry([DictEngine("x", {"A"})]), PerformanceConfig()).execute(
            {"x": make_rules("A")},
            make_files(1),
        ),
    )

    assert outcomes[0].success
    assert outcomes[0].results[0].violations[0].engine == "x"


def test_engine_cancelling_its_own_batch_is_a_fatal_failure(make_files) -> None:
    engine = FakeEngine("x", {"A", "B"}, script=Script(fail={1: asyncio.CancelledError()}))
    config = PerformanceConfig(rule_batch_size=1)

    outcomes = asyncio.run(
        _executor(EngineRegistry([engine]), config).execute({"x": make_rules("A", "B")}, make_files(1)),
    )

    cancelled, succeeded = outcomes
    assert not cancelled.success
    assert cancelled.classification is not None
    assert cancelled.classification.kind is FailureKind.FATAL
    assert "cancelled its own batch" in (cancelled.error or "")
    assert succeeded.success
    assert succeeded.violation_count == 1


def test_engine_violations_are_stamped_on_copies(make_files) -> None:
    files = make_files(1)
    report = EngineReport(
        results=[FileResult(file=files[0], violations=[Violation(rule_id="A", file=files[0], message="m")])],
        violations=[Violation(rule_id="A", message="project-wide")],
    )

    class CachedEngine(FakeEngine):
        async def analyze(self, files, rules, options):
            return report

    outcomes = asyncio.run(
        _executor(EngineRegistry([CachedEngine("x", {"A"})]), PerformanceConfig()).execute(
            {"x": make_rules("A")},
            files,
        ),
    )

    assert [violation.engine for violation in report.iter_violations()] == [None, None]
    assert outcomes[0].results[0].violations[0].engine == "x"
    assert outcomes[0].violations[0].engine == "x"
