# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Analysis orchestration: routing, batching, execution, and merging."""

from __future__ import annotations

from .executor import BatchExecutor
from .hooks import OrchestratorHooks
from .merger import ResultMerger
from .optimizer import (
    FilterResult,
    PerformanceOptimizer,
    RuleBatch,
    adaptive_timeout,
    classify_failure,
    create_batches,
    filter_files,
    glob_to_regex,
    resolve_batch_size,
)
from .orchestrator import Orchestrator, OrchestratorDeps, OrchestratorState
from .routing import PreferenceSource, RoutingDecision, RoutingPlan, RuleRouter

__all__ = [
    "BatchExecutor",
    "FilterResult",
    "Orchestrator",
    "OrchestratorDeps",
    "OrchestratorHooks",
    "OrchestratorState",
    "PerformanceOptimizer",
    "PreferenceSource",
    "ResultMerger",
    "RoutingDecision",
    "RoutingPlan",
    "RuleBatch",
    "RuleRouter",
    "adaptive_timeout",
    "classify_failure",
    "create_batches",
    "filter_files",
    "glob_to_regex",
    "resolve_batch_size",
]
