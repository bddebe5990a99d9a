# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule-to-engine routing."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from ..catalog.models import Rule
from ..config.models import AI_ENGINE, HEURISTIC_ENGINE, SYNTAX_ENGINE, Config
from ..engines.registry import EngineRegistry

LOGGER = logging.getLogger(__name__)

DEFAULT_PREFERENCE: Final[tuple[str, ...]] = (HEURISTIC_ENGINE, AI_ENGINE, SYNTAX_ENGINE)
SYNTAX_FIRST_PREFERENCE: Final[tuple[str, ...]] = (SYNTAX_ENGINE, HEURISTIC_ENGINE, AI_ENGINE)
ANALYZER_PREFERENCES: Final[Mapping[str, tuple[str, ...]]] = {
    "eslint": (SYNTAX_ENGINE, HEURISTIC_ENGINE),
    "typescript": (SYNTAX_ENGINE, HEURISTIC_ENGINE),
    "syntax": (SYNTAX_ENGINE, HEURISTIC_ENGINE),
    "heuristic": (HEURISTIC_ENGINE, AI_ENGINE),
    "semantic": (HEURISTIC_ENGINE, AI_ENGINE),
    "ai": (AI_ENGINE, HEURISTIC_ENGINE),
}


class PreferenceSource(str, Enum):
    """Which routing policy produced a rule's candidate list."""

    REQUESTED = "requested"
    RULE_OVERRIDE = "rule-override"
    CONFIG = "config"
    INTEGRATION = "integration"
    ANALYZER = "analyzer"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class RoutingDecision:
    """Outcome of routing one rule.

    ``engine`` is ``None`` only when the rule was skipped because the single
    requested engine does not support it.
    """

    rule_id: str
    engine: str | None
    candidates: tuple[str, ...]
    source: PreferenceSource
    fallback: bool = False

    @property
    def skipped(self) -> bool:
        """Return ``True`` when the rule will not run."""

        return self.engine is None


@dataclass(slots=True)
class RoutingPlan:
    """Rules grouped by selected engine plus the skipped rules."""

    groups: dict[str, list[Rule]] = field(default_factory=dict)
    skipped: list[Rule] = field(default_factory=list)
    decisions: list[RoutingDecision] = field(default_factory=list)

    @property
    def skipped_ids(self) -> tuple[str, ...]:
        """Return skipped rule ids in input order."""

        return tuple(rule.id for rule in self.skipped)

    def engines(self) -> list[str]:
        """Return the engines that received at least one rule, in first-use order."""

        return list(self.groups)


class RuleRouter:
    """Select one engine per rule following the configured preference policy."""

    def __init__(
        self,
        registry: EngineRegistry,
        config: Config,
        *,
        debug_logger: Callable[[str], None] | None = None,
    ) -> None:
        """Bind the router to ``registry`` and ``config``.

        Args:
            registry: Initialised engines available for routing.
            config: Run configuration providing the requested engine,
                per-rule overrides, and the integration flag.
            debug_logger: Optional sink receiving one line per decision.
        """

        self._registry = registry
        self._config = config
        self._debug = debug_logger

    def engine_preference(self, rule: Rule) -> tuple[tuple[str, ...], PreferenceSource]:
        """Return the ordered candidate engines for ``rule`` and their source.

        Args:
            rule: Rule being routed.

        Returns:
            tuple[tuple[str, ...], PreferenceSource]: Candidate engine ids in
            preference order and the policy step that produced them.
        """

        engines = self._config.engines
        requested = engines.specific_engine
        if requested is not None:
            return (requested,), PreferenceSource.REQUESTED
        if rule.engines:
            return tuple(rule.engines), PreferenceSource.RULE_OVERRIDE
        configured = self._config.rule_engines(rule.id)
        if configured:
            return tuple(configured), PreferenceSource.CONFIG
        if engines.syntax_integration:
            return SYNTAX_FIRST_PREFERENCE, PreferenceSource.INTEGRATION
        hinted = self._analyzer_preference(rule.analyzer)
        if hinted:
            return hinted, PreferenceSource.ANALYZER
        return DEFAULT_PREFERENCE, PreferenceSource.DEFAULT

    @staticmethod
    def _analyzer_preference(analyzer: str | None) -> tuple[str, ...]:
        if not analyzer:
            return ()
        hint = analyzer.strip().lower()
        if hint in ANALYZER_PREFERENCES:
            return ANALYZER_PREFERENCES[hint]
        for key, preference in ANALYZER_PREFERENCES.items():
            if key in hint:
                return preference
        return ()

    def select_engine(self, rule: Rule) -> RoutingDecision:
        """Route ``rule`` to exactly one registered engine, or skip it.

        Args:
            rule: Rule being routed.

        Returns:
            RoutingDecision: Selected engine, or a skip when the single
            requested engine cannot run the rule.
        """

        candidates, source = self.engine_preference(rule)
        for engine_id in candidates:
            if self._registry.is_rule_supported(engine_id, rule.id):
                return RoutingDecision(rule.id, engine_id, candidates, source)
        if source is PreferenceSource.REQUESTED:
            return RoutingDecision(rule.id, None, candidates, source)
        for engine_id in self._registry.list_engines():
            if self._registry.is_rule_supported(engine_id, rule.id):
                return RoutingDecision(rule.id, engine_id, candidates, source, fallback=True)
        return RoutingDecision(rule.id, self._last_resort_engine(), candidates, source, fallback=True)

    def _last_resort_engine(self) -> str:
        fallback = self._config.engines.fallback_engine
        if fallback in self._registry:
            return fallback
        return self._registry.list_engines()[0]

    def route(self, rules: Sequence[Rule]) -> RoutingPlan:
        """Group ``rules`` by selected engine.

        Args:
            rules: Rules to route, in run order.

        Returns:
            RoutingPlan: Engine groups preserving rule order and skipped rules.

        Raises:
            IndexError: If the registry is empty and a rule needs the
                fallback of last resort.
        """

        plan = RoutingPlan()
        for rule in rules:
            decision = self.select_engine(rule)
            plan.decisions.append(decision)
            if decision.engine is None:
                plan.skipped.append(rule)
                self._trace(f"skip {rule.id}: not supported by requested engine {decision.candidates[0]}")
                continue
            plan.groups.setdefault(decision.engine, []).append(rule)
            via = "fallback" if decision.fallback else decision.source.value
            self._trace(f"route {rule.id} -> {decision.engine} ({via})")
        return plan

    def _trace(self, message: str) -> None:
        LOGGER.debug(message)
        if self._debug is not None:
            self._debug(message)


__all__ = [
    "ANALYZER_PREFERENCES",
    "DEFAULT_PREFERENCE",
    "PreferenceSource",
    "RoutingDecision",
    "RoutingPlan",
    "RuleRouter",
    "SYNTAX_FIRST_PREFERENCE",
]
