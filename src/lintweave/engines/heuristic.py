# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pattern-based engine applying rule-declared regular expressions line by line."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final

from ..catalog.adapter import RuleCatalog
from ..catalog.models import Rule
from ..config.models import HEURISTIC_ENGINE
from ..core.models import EngineReport, FileResult, Violation
from .base import AnalysisOptions, BaseEngine, detect_language

LOGGER = logging.getLogger(__name__)

HEURISTIC_VERSION: Final[str] = "1.0.0"
HEURISTIC_LANGUAGES: Final[tuple[str, ...]] = (
    "javascript",
    "typescript",
    "java",
    "kotlin",
    "dart",
    "swift",
    "python",
)


class HeuristicEngine(BaseEngine):
    """Run each rule's ``patterns`` against the text of matching files.

    Any catalog rule that declares at least one pattern is supported, which
    makes this the most flexible engine and the routing fallback of last resort.
    """

    def __init__(self, catalog: RuleCatalog | None = None) -> None:
        """Create the engine bound to ``catalog``.

        Args:
            catalog: Catalog whose pattern rules become supported at initialisation.
        """

        super().__init__(HEURISTIC_ENGINE, HEURISTIC_VERSION, HEURISTIC_LANGUAGES)
        self._catalog = catalog
        self._compiled: dict[str, tuple[re.Pattern[str], ...]] = {}

    async def initialize(self, settings: Mapping[str, Any]) -> None:
        """Register every pattern-carrying catalog rule.

        Args:
            settings: Engine settings; ``rules`` restricts support to the listed ids.

        Raises:
            re.error: If a catalog pattern does not compile.
        """

        await super().initialize(settings)
        if self._catalog is None:
            return
        restrict = {str(rule_id).upper() for rule_id in settings.get("rules", ())}
        for rule in self._catalog.get_all_rules():
            if not rule.patterns or (restrict and rule.id not in restrict):
                continue
            self._compile(rule)
            self.register_rule(rule.id)
        LOGGER.debug("heuristic engine loaded %d pattern rules", len(self._compiled))

    def _compile(self, rule: Rule) -> tuple[re.Pattern[str], ...]:
        compiled = self._compiled.get(rule.id)
        if compiled is None:
            compiled = tuple(re.compile(pattern, re.IGNORECASE) for pattern in rule.patterns)
            self._compiled[rule.id] = compiled
        return compiled

    async def analyze(
        self,
        files: Sequence[Path],
        rules: Sequence[Rule],
        options: AnalysisOptions,
    ) -> EngineReport:
        """Scan ``files`` for the patterns of ``rules``.

        The cancellation token is checked before each file and control is
        yielded to the event loop between files so deadlines can fire.

        Args:
            files: Files to scan.
            rules: Rules assigned to this engine for the batch.
            options: Batch options carrying the cancellation token.

        Returns:
            EngineReport: One file result per file with at least one match.

        Raises:
            AnalysisCancelledError: If the batch deadline passes mid-scan.
        """

        active = [rule for rule in rules if rule.patterns and self.is_rule_supported(rule.id)]
        report = EngineReport(metadata={"engine": self.engine_id, "rules": [rule.id for rule in active]})
        if not active:
            return report
        for path in files:
            options.cancellation.raise_if_cancelled()
            await asyncio.sleep(0)
            language = detect_language(path)
            applicable = [rule for rule in active if rule.supports_language(language)]
            if not applicable:
                continue
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                LOGGER.warning("Cannot read %s: %s", path, exc)
                continue
            violations = self._scan_text(path, text, applicable)
            if violations:
                report.results.append(FileResult(file=path, violations=violations))
        return report

    def _scan_text(self, path: Path, text: str, rules: Sequence[Rule]) -> list[Violation]:
        violations: list[Violation] = []
        lines = text.splitlines()
        for rule in rules:
            patterns = self._compile(rule)
            message = rule.message or rule.name
            for line_number, line in enumerate(lines, start=1):
                for pattern in patterns:
                    match = pattern.search(line)
                    if match is None:
                        continue
                    violations.append(
                        Violation(
                            rule_id=rule.id,
                            file=path,
                            line=line_number,
                            column=match.start() + 1,
                            message=message,
                            severity=rule.severity,
                            engine=self.engine_id,
                            category=rule.category,
                        ),
                    )
                    break
        return violations

    async def cleanup(self) -> None:
        self._compiled.clear()
        await super().cleanup()


__all__ = ["HEURISTIC_LANGUAGES", "HeuristicEngine"]
