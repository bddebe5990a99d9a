# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Engine contract consumed by the orchestrator and a reusable base class."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from ..catalog.models import Rule
from ..core.models import EngineReport, JsonValue
from ..errors import AnalysisCancelledError

LOGGER = logging.getLogger(__name__)

LANGUAGE_EXTENSIONS: Final[Mapping[str, str]] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".dart": "dart",
    ".swift": "swift",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".java": "java",
    ".py": "python",
    ".go": "go",
    ".rs": "rust",
    ".php": "php",
    ".rb": "ruby",
}
UNKNOWN_LANGUAGE: Final[str] = "unknown"


def detect_language(path: Path | str) -> str:
    """Return the language identifier implied by ``path``'s extension.

    Args:
        path: File path to inspect.

    Returns:
        str: Language name, or ``"unknown"`` for unrecognised extensions.
    """

    return LANGUAGE_EXTENSIONS.get(Path(path).suffix.lower(), UNKNOWN_LANGUAGE)


class CancellationToken:
    """Cooperative cancellation signal handed to engines with each batch.

    The orchestrator cancels the token when a batch deadline passes. Engines
    are expected to poll :attr:`cancelled` (or call :meth:`raise_if_cancelled`)
    between units of work; results produced after cancellation are discarded.
    """

    __slots__ = ("_cancelled", "_deadline", "_reason")

    def __init__(self, timeout_ms: int | None = None) -> None:
        """Create a token with an optional deadline measured from now.

        Args:
            timeout_ms: Milliseconds until the deadline; ``None`` for no deadline.
        """

        self._cancelled = False
        self._reason: str | None = None
        self._deadline = None if timeout_ms is None else time.monotonic() + timeout_ms / 1000

    @property
    def cancelled(self) -> bool:
        """Return ``True`` once the token has been cancelled."""

        return self._cancelled

    @property
    def reason(self) -> str | None:
        """Return the reason recorded when the token was cancelled."""

        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Cancel the token; repeated calls keep the first reason.

        Args:
            reason: Human readable cause of the cancellation.
        """

        if not self._cancelled:
            self._cancelled = True
            self._reason = reason

    def remaining_ms(self) -> float | None:
        """Return milliseconds left before the deadline, never negative.

        Returns:
            float | None: Remaining time, or ``None`` when no deadline was set.
        """

        if self._deadline is None:
            return None
        return max(0.0, (self._deadline - time.monotonic()) * 1000)

    def raise_if_cancelled(self) -> None:
        """Raise :class:`AnalysisCancelledError` when the token is cancelled.

        Raises:
            AnalysisCancelledError: If :meth:`cancel` has been called.
        """

        if self._cancelled:
            raise AnalysisCancelledError(self._reason or "cancelled")


@dataclass(frozen=True, slots=True)
class BatchInfo:
    """Position of a batch within its engine group."""

    number: int = 1
    total: int = 1


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    """Options passed to :meth:`Engine.analyze` for one batch."""

    timeout_ms: int
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    batch: BatchInfo = field(default_factory=BatchInfo)
    verbose: bool = False
    extras: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class Engine(Protocol):
    """Pluggable analyzer able to run a subset of rules over a set of files."""

    engine_id: str
    version: str
    supported_languages: tuple[str, ...]
    concurrency_safe: bool

    async def initialize(self, settings: Mapping[str, Any]) -> None:
        """Prepare the engine; failures remove it from the registry."""
        ...

    async def analyze(
        self,
        files: Sequence[Path],
        rules: Sequence[Rule],
        options: AnalysisOptions,
    ) -> EngineReport:
        """Run ``rules`` over ``files`` and return the violations found."""
        ...

    def is_rule_supported(self, rule_id: str) -> bool:
        """Return whether the engine can execute ``rule_id``."""
        ...

    def get_supported_rules(self) -> list[str]:
        """Return the rule ids the engine can execute."""
        ...

    async def cleanup(self) -> None:
        """Release engine resources."""
        ...

    def describe(self) -> dict[str, JsonValue]:
        """Return engine metadata for display."""
        ...


class BaseEngine(ABC):
    """Shared bookkeeping for engines: identity, rule support, and lifecycle flags."""

    concurrency_safe: bool = False

    def __init__(
        self,
        engine_id: str,
        version: str,
        supported_languages: Iterable[str] = (),
    ) -> None:
        """Initialise identity and an empty rule registry.

        Args:
            engine_id: Identifier the registry keys the engine by.
            version: Engine version string.
            supported_languages: Languages the engine understands.
        """

        self.engine_id = engine_id
        self.version = version
        self.supported_languages = tuple(supported_languages)
        self.initialized = False
        self.verbose = False
        self._rule_ids: set[str] = set()

    async def initialize(self, settings: Mapping[str, Any]) -> None:
        """Mark the engine ready and register any ``rules`` listed in ``settings``.

        Args:
            settings: Engine-specific settings from the configuration.
        """

        self.verbose = bool(settings.get("verbose", False))
        for rule_id in settings.get("rules", ()):
            self.register_rule(str(rule_id))
        self.initialized = True

    @abstractmethod
    async def analyze(
        self,
        files: Sequence[Path],
        rules: Sequence[Rule],
        options: AnalysisOptions,
    ) -> EngineReport:
        """Run ``rules`` over ``files``.

        Args:
            files: Files to analyse.
            rules: Rules assigned to this engine for the batch.
            options: Batch options including the cancellation token.

        Returns:
            EngineReport: Violations found by the engine.
        """

    def register_rule(self, rule_id: str) -> None:
        """Declare support for ``rule_id``.

        Args:
            rule_id: Rule identifier, normalised to upper case.
        """

        self._rule_ids.add(rule_id.upper())

    def unregister_rule(self, rule_id: str) -> bool:
        """Drop support for ``rule_id``.

        Args:
            rule_id: Rule identifier to remove.

        Returns:
            bool: ``True`` when the rule was previously registered.
        """

        key = rule_id.upper()
        if key not in self._rule_ids:
            return False
        self._rule_ids.discard(key)
        return True

    def is_rule_supported(self, rule_id: str) -> bool:
        """Return whether ``rule_id`` is registered with the engine.

        Args:
            rule_id: Rule identifier to check.

        Returns:
            bool: ``True`` when the engine can execute the rule.
        """

        return rule_id.upper() in self._rule_ids

    def get_supported_rules(self) -> list[str]:
        """Return registered rule ids in sorted order."""

        return sorted(self._rule_ids)

    def is_language_supported(self, language: str) -> bool:
        """Return whether ``language`` is handled by the engine.

        Args:
            language: Language identifier.

        Returns:
            bool: ``True`` when listed explicitly or the engine handles ``"all"``.
        """

        return language in self.supported_languages or "all" in self.supported_languages

    def group_files_by_language(self, files: Iterable[Path]) -> dict[str, list[Path]]:
        """Group ``files`` by detected language preserving input order.

        Args:
            files: Files to group.

        Returns:
            dict[str, list[Path]]: Mapping of language to files.
        """

        groups: dict[str, list[Path]] = {}
        for path in files:
            groups.setdefault(detect_language(path), []).append(path)
        return groups

    async def cleanup(self) -> None:
        """Forget registered rules and mark the engine uninitialised."""

        self._rule_ids.clear()
        self.initialized = False
        LOGGER.debug("engine %s cleaned up", self.engine_id)

    def describe(self) -> dict[str, JsonValue]:
        """Return engine metadata for display.

        Returns:
            dict[str, JsonValue]: Identity, languages, and rule count.
        """

        return {
            "id": self.engine_id,
            "version": self.version,
            "languages": list(self.supported_languages),
            "initialized": self.initialized,
            "rules": len(self._rule_ids),
            "concurrency_safe": self.concurrency_safe,
        }


__all__ = [
    "AnalysisOptions",
    "BaseEngine",
    "BatchInfo",
    "CancellationToken",
    "Engine",
    "LANGUAGE_EXTENSIONS",
    "UNKNOWN_LANGUAGE",
    "detect_language",
]
