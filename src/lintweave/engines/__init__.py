# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Analysis engines, their registry, and factories."""

from __future__ import annotations

from .base import (
    AnalysisOptions,
    BaseEngine,
    BatchInfo,
    CancellationToken,
    Engine,
    detect_language,
)
from .factory import ENGINE_ENTRY_POINT_GROUP, EngineFactories, EngineFactory, load_configured_engines
from .heuristic import HeuristicEngine
from .registry import EngineRegistry

__all__ = [
    "AnalysisOptions",
    "BaseEngine",
    "BatchInfo",
    "CancellationToken",
    "ENGINE_ENTRY_POINT_GROUP",
    "Engine",
    "EngineFactories",
    "EngineFactory",
    "EngineRegistry",
    "HeuristicEngine",
    "detect_language",
    "load_configured_engines",
]
