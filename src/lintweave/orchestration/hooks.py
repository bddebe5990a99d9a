# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Lifecycle callbacks invoked around orchestration phases."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.models import AggregatedResult, BatchOutcome

if TYPE_CHECKING:
    from .optimizer import RuleBatch
    from .routing import RoutingPlan


@dataclass(slots=True)
class OrchestratorHooks:
    """Provide lifecycle callbacks invoked around orchestration phases."""

    after_routing: Callable[[RoutingPlan], None] | None = None
    before_batch: Callable[[RuleBatch], None] | None = None
    after_batch: Callable[[BatchOutcome], None] | None = None
    after_run: Callable[[AggregatedResult], None] | None = None


__all__ = ["OrchestratorHooks"]
