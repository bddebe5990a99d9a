# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and loaders."""

from __future__ import annotations

from .loader import load_config
from .models import (
    AI_ENGINE,
    AUTO_ENGINE,
    HEURISTIC_ENGINE,
    PERFORMANCE_PROFILES,
    SYNTAX_ENGINE,
    Config,
    ConfigError,
    EngineConfig,
    OutputConfig,
    PerformanceConfig,
    PerformanceProfile,
    RuleOverride,
    normalise_engine_request,
    select_performance_profile,
)

__all__ = [
    "AI_ENGINE",
    "AUTO_ENGINE",
    "Config",
    "ConfigError",
    "EngineConfig",
    "HEURISTIC_ENGINE",
    "OutputConfig",
    "PERFORMANCE_PROFILES",
    "PerformanceConfig",
    "PerformanceProfile",
    "RuleOverride",
    "SYNTAX_ENGINE",
    "load_config",
    "normalise_engine_request",
    "select_performance_profile",
]
