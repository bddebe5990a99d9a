# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models consumed by the analysis orchestrator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

AUTO_ENGINE: Final[str] = "auto"
HEURISTIC_ENGINE: Final[str] = "heuristic"
SYNTAX_ENGINE: Final[str] = "syntax"
AI_ENGINE: Final[str] = "ai"

DEFAULT_EXCLUDE_PATTERNS: Final[tuple[str, ...]] = (
    "**/node_modules/**",
    "**/.next/**",
    "**/dist/**",
    "**/build/**",
    "**/coverage/**",
    "**/.git/**",
    "**/target/**",
    "**/out/**",
    "**/*.min.js",
    "**/*.bundle.js",
    "**/vendor/**",
    "**/.venv/**",
    "**/__pycache__/**",
    "**/.vscode/**",
    "**/.idea/**",
)


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


def normalise_engine_request(value: object) -> str:
    """Return ``value`` stripped, or ``"auto"`` when blank or any casing of ``auto``.

    Engine ids keep their case so they match registry keys exactly.
    """

    text = "" if value is None else str(value).strip()
    if not text or text.lower() == AUTO_ENGINE:
        return AUTO_ENGINE
    return text


class EngineConfig(BaseModel):
    """Engine selection and initialisation settings."""

    model_config = ConfigDict(validate_assignment=True)

    requested_engine: str = AUTO_ENGINE
    enabled: list[str] = Field(default_factory=lambda: [HEURISTIC_ENGINE])
    settings: dict[str, dict[str, Any]] = Field(default_factory=dict)
    syntax_integration: bool = False
    fallback_engine: str = HEURISTIC_ENGINE

    @field_validator("requested_engine", mode="before")
    @classmethod
    def _normalise_requested(cls, value: str | None) -> str:
        """Treat empty engine requests as automatic selection.

        Args:
            value: Raw engine request supplied by the caller.

        Returns:
            str: Stripped engine identifier or ``"auto"``.
        """

        return normalise_engine_request(value)

    @property
    def specific_engine(self) -> str | None:
        """Return the explicitly requested engine id, or ``None`` for ``auto``."""

        return None if self.requested_engine == AUTO_ENGINE else self.requested_engine


class RuleOverride(BaseModel):
    """Per-rule configuration: allowed engines and whether the rule runs at all."""

    model_config = ConfigDict(validate_assignment=True)

    engines: list[str] = Field(default_factory=list)
    enabled: bool = True


class PerformanceConfig(BaseModel):
    """Limits applied to file filtering, batching, and timeouts."""

    model_config = ConfigDict(validate_assignment=True)

    enable_file_filtering: bool = True
    exclude_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    max_file_size: int = 2 * 1024 * 1024
    max_total_size: int = 0
    max_files: int = 1000
    rule_batch_size: int | None = None
    base_timeout_ms: int = 30_000
    timeout_per_file_ms: int = 100
    timeout_per_rule_ms: int = 1_000
    max_timeout_ms: int = 120_000
    max_concurrent_batches: int = Field(default=1, ge=1)
    retry_failed_batches: bool = False
    max_retries: int = Field(default=2, ge=0)

    @field_validator("rule_batch_size")
    @classmethod
    def _positive_batch_size(cls, value: int | None) -> int | None:
        """Reject non-positive batch sizes.

        Args:
            value: Candidate batch size.

        Returns:
            int | None: Validated batch size.

        Raises:
            ValueError: If ``value`` is zero or negative.
        """

        if value is not None and value <= 0:
            raise ValueError("rule_batch_size must be positive")
        return value


class OutputConfig(BaseModel):
    """Console output preferences."""

    model_config = ConfigDict(validate_assignment=True)

    verbose: bool = False
    quiet: bool = False
    emoji: bool = True
    color: bool = True


@dataclass(frozen=True, slots=True)
class PerformanceProfile:
    """Named bundle of performance limits chosen from the project size."""

    name: str
    base_timeout_ms: int
    rule_batch_size: int
    max_files: int
    description: str


PERFORMANCE_PROFILES: Final[Mapping[str, PerformanceProfile]] = {
    "fast": PerformanceProfile("fast", 30_000, 20, 500, "Quick analysis for small projects"),
    "balanced": PerformanceProfile("balanced", 60_000, 15, 600, "Balanced analysis for medium projects"),
    "careful": PerformanceProfile("careful", 120_000, 10, 1_500, "Thorough analysis for large projects"),
    "enterprise": PerformanceProfile("enterprise", 300_000, 5, 1_500, "Conservative analysis for very large projects"),
}


def select_performance_profile(file_count: int) -> PerformanceProfile:
    """Return the profile suited to a project containing ``file_count`` files.

    Args:
        file_count: Number of candidate files discovered for the run.

    Returns:
        PerformanceProfile: Profile whose limits match the project size.
    """

    if file_count <= 100:
        return PERFORMANCE_PROFILES["fast"]
    if file_count <= 500:
        return PERFORMANCE_PROFILES["balanced"]
    if file_count <= 1000:
        return PERFORMANCE_PROFILES["careful"]
    return PERFORMANCE_PROFILES["enterprise"]


class Config(BaseModel):
    """Top-level configuration for an analysis run."""

    model_config = ConfigDict(validate_assignment=True)

    engines: EngineConfig = Field(default_factory=EngineConfig)
    rules: dict[str, RuleOverride] = Field(default_factory=dict)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("rules", mode="before")
    @classmethod
    def _normalise_rule_keys(cls, value: Mapping[str, Any] | None) -> dict[str, Any]:
        """Upper-case rule identifiers so lookups match the catalog.

        Args:
            value: Raw mapping of rule ids to override payloads.

        Returns:
            dict[str, Any]: Mapping keyed by normalised rule ids.
        """

        if not value:
            return {}
        return {str(key).upper(): payload for key, payload in value.items()}

    def rule_engines(self, rule_id: str) -> list[str]:
        """Return the engines configured for ``rule_id``, if any.

        Args:
            rule_id: Identifier of the rule being routed.

        Returns:
            list[str]: Engine ids configured for the rule; empty when unset.
        """

        override = self.rules.get(rule_id.upper())
        if override is None:
            return []
        return list(override.engines)

    def rule_enabled(self, rule_id: str) -> bool:
        """Return ``False`` when configuration disables ``rule_id``."""

        override = self.rules.get(rule_id.upper())
        return override is None or override.enabled

    def apply_profile(self, profile: PerformanceProfile) -> None:
        """Apply ``profile`` limits without clobbering explicit settings.

        The profile timeout becomes the adaptive base; the ceiling is left alone.

        Args:
            profile: Performance profile to apply.
        """

        explicit = self.performance.model_fields_set
        updates: dict[str, Any] = {}
        if "base_timeout_ms" not in explicit:
            updates["base_timeout_ms"] = profile.base_timeout_ms
        if "rule_batch_size" not in explicit:
            updates["rule_batch_size"] = profile.rule_batch_size
        if "max_files" not in explicit:
            updates["max_files"] = profile.max_files
        if updates:
            self.performance = self.performance.model_copy(update=updates)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible snapshot of the configuration.

        Returns:
            dict[str, Any]: Serialised configuration mapping.
        """

        return self.model_dump(mode="json")


__all__ = [
    "AI_ENGINE",
    "AUTO_ENGINE",
    "Config",
    "ConfigError",
    "DEFAULT_EXCLUDE_PATTERNS",
    "EngineConfig",
    "HEURISTIC_ENGINE",
    "OutputConfig",
    "PERFORMANCE_PROFILES",
    "PerformanceConfig",
    "PerformanceProfile",
    "RuleOverride",
    "SYNTAX_ENGINE",
    "normalise_engine_request",
    "select_performance_profile",
]
