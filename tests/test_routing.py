# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Behavioural tests for rule-to-engine routing."""

from __future__ import annotations

from helpers.engines import FakeEngine, make_rules

from lintweave.catalog import Rule
from lintweave.config import Config, EngineConfig, RuleOverride
from lintweave.engines import EngineRegistry
from lintweave.orchestration.routing import PreferenceSource, RuleRouter


def _registry(*engines: FakeEngine) -> EngineRegistry:
    return EngineRegistry(engines)


def test_requested_engine_routes_supported_rules_and_skips_the_rest() -> None:
    registry = _registry(FakeEngine("x", {"A", "C"}), FakeEngine("heuristic", {"A", "B", "C"}))
    config = Config(engines=EngineConfig(requested_engine="x"))

    plan = RuleRouter(registry, config).route(make_rules("A", "B", "C"))

    assert {engine: [rule.id for rule in rules] for engine, rules in plan.groups.items()} == {"x": ["A", "C"]}
    assert plan.skipped_ids == ("B",)
    assert all(decision.engine in {"x", None} for decision in plan.decisions)


def test_requested_engine_missing_from_registry_skips_everything() -> None:
    registry = _registry(FakeEngine("heuristic", {"A"}))
    config = Config(engines=EngineConfig(requested_engine="syntax"))

    plan = RuleRouter(registry, config).route(make_rules("A"))

    assert plan.groups == {}
    assert plan.skipped_ids == ("A",)


def test_auto_assigns_every_rule_to_a_registered_engine() -> None:
    registry = _registry(FakeEngine("syntax", {"A"}), FakeEngine("custom", {"B"}), FakeEngine("heuristic", set()))
    config = Config()

    plan = RuleRouter(registry, config).route(make_rules("A", "B", "Z"))

    assigned = {decision.rule_id: decision.engine for decision in plan.decisions}
    assert assigned == {"A": "syntax", "B": "custom", "Z": "heuristic"}
    assert plan.skipped == []
    assert all(engine in registry for engine in assigned.values())


def test_fallback_scan_uses_registration_order() -> None:
    registry = _registry(FakeEngine("beta", {"A"}), FakeEngine("alpha", {"A"}))

    decision = RuleRouter(registry, Config()).select_engine(make_rules("A")[0])

    assert decision.engine == "beta"
    assert decision.fallback


def test_last_resort_uses_first_engine_when_fallback_not_registered() -> None:
    registry = _registry(FakeEngine("beta", set()), FakeEngine("alpha", set()))

    decision = RuleRouter(registry, Config()).select_engine(make_rules("Q")[0])

    assert decision.engine == "beta"


def test_rule_declared_engines_take_precedence_over_config() -> None:
    registry = _registry(FakeEngine("heuristic", {"C047"}), FakeEngine("ai", {"C047"}))
    rule = Rule(id="C047", engines=("ai", "heuristic"))
    config = Config(rules={"c047": RuleOverride(engines=["heuristic"])})

    decision = RuleRouter(registry, config).select_engine(rule)

    assert decision.engine == "ai"
    assert decision.source is PreferenceSource.RULE_OVERRIDE


def test_config_rule_engines_are_used() -> None:
    registry = _registry(FakeEngine("heuristic", {"A"}), FakeEngine("syntax", {"A"}))
    config = Config(rules={"A": RuleOverride(engines=["syntax"])})

    decision = RuleRouter(registry, config).select_engine(make_rules("A")[0])

    assert decision.engine == "syntax"
    assert decision.source is PreferenceSource.CONFIG


def test_syntax_integration_prefers_syntax_engine() -> None:
    registry = _registry(FakeEngine("heuristic", {"A"}), FakeEngine("syntax", {"A"}))
    config = Config(engines=EngineConfig(syntax_integration=True))

    decision = RuleRouter(registry, config).select_engine(make_rules("A")[0])

    assert decision.engine == "syntax"
    assert decision.source is PreferenceSource.INTEGRATION


def test_analyzer_hint_maps_to_engine_family() -> None:
    registry = _registry(FakeEngine("heuristic", {"A"}), FakeEngine("syntax", {"A"}))
    rule = Rule(id="A", analyzer="eslint")

    router = RuleRouter(registry, Config())
    candidates, source = router.engine_preference(rule)

    assert candidates[0] == "syntax"
    assert source is PreferenceSource.ANALYZER
    assert router.select_engine(rule).engine == "syntax"


def test_default_preference_prefers_heuristic() -> None:
    registry = _registry(FakeEngine("syntax", {"A"}), FakeEngine("heuristic", {"A"}))

    decision = RuleRouter(registry, Config()).select_engine(make_rules("A")[0])

    assert decision.engine == "heuristic"
    assert decision.source is PreferenceSource.DEFAULT


def test_route_emits_one_trace_line_per_rule() -> None:
    registry = _registry(FakeEngine("heuristic", {"A", "B"}))
    lines: list[str] = []

    RuleRouter(registry, Config(), debug_logger=lines.append).route(make_rules("A", "B"))

    assert lines == ["route A -> heuristic (default)", "route B -> heuristic (default)"]
