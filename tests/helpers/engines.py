"""Scripted engines implementing the Engine contract for orchestration tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lintweave.catalog import Rule
from lintweave.core.models import EngineReport, FileResult, Violation
from lintweave.engines import AnalysisOptions, BaseEngine


@dataclass(frozen=True)
class AnalyzeCall:
    rules: tuple[str, ...]
    file_count: int
    batch_number: int
    timeout_ms: int


@dataclass
class Script:
    """Per-batch behaviour keyed by batch number (1-based)."""

    fail: dict[int, BaseException] = field(default_factory=dict)
    delay: dict[int, float] = field(default_factory=dict)
    ignore_cancellation: bool = False


class FakeEngine(BaseEngine):
    """Engine reporting one violation per (rule, file) pair it is asked to run."""

    def __init__(
        self,
        engine_id: str,
        supported: Iterable[str] = (),
        *,
        script: Script | None = None,
        init_error: BaseException | None = None,
        concurrency_safe: bool = False,
    ) -> None:
        super().__init__(engine_id, "0.0.1", ("javascript", "typescript"))
        self._initial_rules = [rule_id.upper() for rule_id in supported]
        for rule_id in self._initial_rules:
            self.register_rule(rule_id)
        self.script = script or Script()
        self.init_error = init_error
        self.concurrency_safe = concurrency_safe
        self.calls: list[AnalyzeCall] = []
        self.cleaned = False
        self.active = 0
        self.peak_active = 0
        self.late_results: list[EngineReport] = []

    async def initialize(self, settings: Mapping[str, Any]) -> None:
        if self.init_error is not None:
            raise self.init_error
        await super().initialize(settings)
        for rule_id in self._initial_rules:
            self.register_rule(rule_id)

    async def analyze(
        self,
        files: Sequence[Path],
        rules: Sequence[Rule],
        options: AnalysisOptions,
    ) -> EngineReport:
        number = options.batch.number
        self.calls.append(AnalyzeCall(tuple(rule.id for rule in rules), len(files), number, options.timeout_ms))
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            delay = self.script.delay.get(number)
            if delay:
                await self._sleep(delay, options)
            error = self.script.fail.get(number)
            if error is not None:
                raise error
            report = EngineReport(
                results=[
                    FileResult(
                        file=path,
                        violations=[
                            Violation(
                                rule_id=rule.id,
                                file=path,
                                line=1,
                                message=f"{rule.id} found",
                                severity=rule.severity,
                                engine=self.engine_id,
                                category=rule.category,
                            )
                            for rule in rules
                        ],
                    )
                    for path in files
                ],
            )
            if options.cancellation.cancelled:
                self.late_results.append(report)
            return report
        finally:
            self.active -= 1

    async def _sleep(self, seconds: float, options: AnalysisOptions) -> None:
        if self.script.ignore_cancellation:
            try:
                await asyncio.sleep(seconds)
            except asyncio.CancelledError:
                return
            return
        await asyncio.sleep(seconds)

    async def cleanup(self) -> None:
        self.cleaned = True
        await super().cleanup()


class BrokenCleanupEngine(FakeEngine):
    async def cleanup(self) -> None:
        raise RuntimeError("cleanup exploded")


def make_rules(*ids: str, category: str = "quality") -> list[Rule]:
    return [Rule(id=rule_id, name=f"Rule {rule_id}", category=category) for rule_id in ids]
