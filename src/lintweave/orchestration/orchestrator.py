# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""High level orchestration for running rules across registered engines."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, TypeAlias

from ..catalog.adapter import RuleCatalog
from ..catalog.errors import CatalogError
from ..catalog.models import Rule
from ..config.models import Config, normalise_engine_request
from ..core.logging import warn
from ..core.models import AggregatedResult, JsonValue
from ..engines.factory import EngineFactories, load_configured_engines
from ..engines.registry import EngineRegistry
from ..errors import NoEnginesAvailableError
from .executor import BatchExecutor
from .hooks import OrchestratorHooks
from .merger import ResultMerger
from .optimizer import PerformanceOptimizer
from .routing import RoutingPlan, RuleRouter

LOGGER = logging.getLogger(__name__)

RuleInput: TypeAlias = Rule | str


class OrchestratorState(str, Enum):
    """Lifecycle states of an :class:`Orchestrator`."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    RUNNING = "running"
    DONE = "done"


@dataclass(frozen=True)
class OrchestratorDeps:
    """Collaborators injected into an :class:`Orchestrator`."""

    registry: EngineRegistry | None = None
    catalog: RuleCatalog | None = None
    factories: EngineFactories | None = None
    hooks: OrchestratorHooks | None = None
    debug_logger: Callable[[str], None] | None = None


class Orchestrator:
    """Coordinates engine setup, routing, batch execution, and merging."""

    def __init__(self, config: Config | None = None, deps: OrchestratorDeps | None = None) -> None:
        """Create an orchestrator owning its registry and catalog.

        Args:
            config: Run configuration; defaults to :class:`Config` defaults.
            deps: Injected collaborators. Missing ones are created fresh so
                independent orchestrators never share state.
        """

        deps = deps or OrchestratorDeps()
        self.config = config or Config()
        self.registry = deps.registry if deps.registry is not None else EngineRegistry()
        self.catalog = deps.catalog if deps.catalog is not None else RuleCatalog()
        self._factories = deps.factories
        self._hooks = deps.hooks or OrchestratorHooks()
        self._debug = deps.debug_logger
        self._merger = ResultMerger()
        self._state = OrchestratorState.UNINITIALIZED
        self._initialized = False

    @property
    def state(self) -> OrchestratorState:
        """Return the current lifecycle state."""

        return self._state

    @property
    def initialized(self) -> bool:
        """Return ``True`` once engines have been initialised."""

        return self._initialized

    async def initialize(self) -> None:
        """Load the catalog and initialise engines once.

        Engines are built from the configured factories when none were
        registered explicitly. Engines that fail to initialise are removed and
        reported.

        Raises:
            NoEnginesAvailableError: If no engine initialised successfully.
        """

        if self._initialized:
            return
        self._state = OrchestratorState.INITIALIZING
        try:
            self.catalog.initialize()
        except CatalogError as exc:
            self._warn(f"Rule catalog unavailable: {exc}")

        if not self.registry:
            factories = self._factories or EngineFactories.with_defaults()
            loaded = load_configured_engines(self.registry, factories, self.config.engines.enabled, self.catalog)
            self._trace(f"loaded engines: {', '.join(loaded) or 'none'}")

        attempted = tuple(self.registry.list_engines()) or tuple(self.config.engines.enabled)
        failures = await self.registry.initialize_all(self.registry.list_engines(), self._engine_settings())
        for failure in failures:
            self._warn(str(failure))
        if not self.registry:
            self._state = OrchestratorState.UNINITIALIZED
            raise NoEnginesAvailableError(attempted)

        self._initialized = True
        self._state = OrchestratorState.READY
        self._trace(f"ready with engines: {', '.join(self.registry.list_engines())}")

    def _engine_settings(self) -> dict[str, dict[str, Any]]:
        verbose = self.config.output.verbose
        return {
            engine_id: {"verbose": verbose, **self.config.engines.settings.get(engine_id, {})}
            for engine_id in self.registry.list_engines()
        }

    async def run_async(
        self,
        files: Sequence[Path | str],
        rules: Sequence[RuleInput],
        *,
        engine: str | None = None,
    ) -> AggregatedResult:
        """Analyse ``files`` with ``rules`` and return the aggregated result.

        Args:
            files: Candidate files; filtered once for the whole run.
            rules: Rules or rule ids. Ids are resolved through the catalog,
                duplicates are dropped, and unknown or disabled ids are
                reported as skipped.
            engine: Engine requested for this run only; overrides
                ``config.engines.requested_engine``.

        Returns:
            AggregatedResult: Merged violations, statistics, and metrics.

        Raises:
            NoEnginesAvailableError: If no engine initialised successfully.
        """

        await self.initialize()
        self._state = OrchestratorState.RUNNING
        output = self.config.output
        config = self._config_for(engine)
        optimizer = PerformanceOptimizer(config.performance)

        started = time.perf_counter()
        paths = [Path(item) for item in files]
        resolved, unknown, disabled = self._resolve_rules(rules, config)
        filtered = optimizer.filter_files(paths)
        metrics = optimizer.metrics(
            original_files=len(paths),
            filtered=filtered,
            rule_count=len(resolved),
            started=started,
        )
        self._trace(f"files: {len(filtered.files)}/{len(paths)} kept, rules: {len(resolved)}")

        plan = RuleRouter(self.registry, config, debug_logger=self._debug).route(resolved)
        skipped = [*unknown, *disabled, *plan.skipped_ids]
        self._report_skipped(plan, unknown, disabled, config.engines.specific_engine)
        if self._hooks.after_routing is not None:
            self._hooks.after_routing(plan)

        executor = BatchExecutor(
            self.registry,
            optimizer,
            engine_settings=config.engines.settings,
            output=output,
            hooks=self._hooks,
            debug_logger=self._debug,
        )
        outcomes = await executor.execute(plan.groups, filtered.files)

        result = self._merger.merge(
            outcomes,
            file_count=len(filtered.files),
            performance=metrics,
            skipped_rules=skipped,
            rule_categories={rule.id: rule.category for rule in resolved},
            metadata=self._metadata(config),
        )
        self._state = OrchestratorState.DONE
        if self._hooks.after_run is not None:
            self._hooks.after_run(result)
        return result

    def run(
        self,
        files: Sequence[Path | str],
        rules: Sequence[RuleInput],
        *,
        engine: str | None = None,
    ) -> AggregatedResult:
        """Run :meth:`run_async` to completion on a fresh event loop."""

        return asyncio.run(self.run_async(files, rules, engine=engine))

    def analyze(
        self,
        files: Sequence[Path | str],
        rules: Sequence[RuleInput] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> AggregatedResult:
        """Convenience entry point mirroring ``analyze(files, rules, options)``.

        Args:
            files: Candidate files.
            rules: Rules or ids; ``None`` runs every catalog rule.
            options: Optional ``engine`` override.

        Returns:
            AggregatedResult: Aggregated run result.
        """

        options = options or {}
        selected: Sequence[RuleInput] = rules if rules is not None else self.catalog.get_all_rules()
        return self.run(files, selected, engine=options.get("engine"))

    def _resolve_rules(
        self,
        rules: Sequence[RuleInput],
        config: Config,
    ) -> tuple[list[Rule], list[str], list[str]]:
        """Resolve ``rules`` to unique catalog rules in first-seen order.

        Returns:
            tuple[list[Rule], list[str], list[str]]: Rules to run, unknown ids,
            and ids disabled by configuration.
        """

        resolved: list[Rule] = []
        unknown: list[str] = []
        disabled: list[str] = []
        seen: set[str] = set()
        for item in rules:
            key = item.id if isinstance(item, Rule) else item.strip().upper()
            if not key or key in seen:
                continue
            seen.add(key)
            if isinstance(item, Rule):
                rule: Rule | None = item
            else:
                rule = self.catalog.get_rule_by_id(key) if self.catalog.initialized else None
            if rule is None:
                unknown.append(key)
            elif not config.rule_enabled(rule.id):
                disabled.append(rule.id)
            else:
                resolved.append(rule)
        return resolved, unknown, disabled

    def _config_for(self, engine: str | None) -> Config:
        if engine is None:
            return self.config
        requested = normalise_engine_request(engine)
        engines = self.config.engines.model_copy(update={"requested_engine": requested})
        return self.config.model_copy(update={"engines": engines})

    def _report_skipped(
        self,
        plan: RoutingPlan,
        unknown: Sequence[str],
        disabled: Sequence[str],
        requested: str | None,
    ) -> None:
        if plan.skipped:
            self._warn(
                f"Skipped {len(plan.skipped)} rules not supported by engine {requested}: "
                f"{', '.join(plan.skipped_ids)}",
            )
        if unknown:
            self._warn(f"Skipped {len(unknown)} unknown rules: {', '.join(unknown)}")
        if disabled:
            self._warn(f"Skipped {len(disabled)} rules disabled by configuration: {', '.join(disabled)}")

    def _warn(self, message: str) -> None:
        output = self.config.output
        LOGGER.debug(message)
        if not output.quiet:
            warn(message, use_emoji=output.emoji, use_color=output.color)

    def _metadata(self, config: Config) -> dict[str, JsonValue]:
        return {
            "requested_engine": config.engines.requested_engine,
            "engines": list(self.registry.list_engines()),
            "batch_size": config.performance.rule_batch_size,
            "max_concurrent_batches": config.performance.max_concurrent_batches,
        }

    async def cleanup(self) -> None:
        """Release engine resources and return to the uninitialised state.

        Engine cleanup failures are reported and never raised.
        """

        for engine_id, exc in await self.registry.cleanup_all():
            self._warn(f"Engine {engine_id} cleanup failed: {exc}")
        self._initialized = False
        self._state = OrchestratorState.UNINITIALIZED

    def engine_info(self) -> dict[str, dict[str, JsonValue]]:
        """Return display metadata for each registered engine."""

        return {engine_id: engine.describe() for engine_id, engine in self.registry.items()}

    def available_engines(self) -> list[str]:
        """Return registered engine ids in registration order."""

        return self.registry.list_engines()

    def _trace(self, message: str) -> None:
        LOGGER.debug(message)
        if self._debug is not None:
            self._debug(message)


__all__ = ["Orchestrator", "OrchestratorDeps", "OrchestratorState", "RuleInput"]
