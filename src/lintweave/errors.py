# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Exception hierarchy shared by the engine registry and the orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass


class LintweaveError(RuntimeError):
    """Base class for errors raised by lintweave."""


@dataclass(frozen=True, slots=True)
class BatchContext:
    """Execution context attached to batch failures."""

    engine: str
    batch_number: int
    total_batches: int
    file_count: int
    rule_count: int
    timeout_ms: int

    def describe(self) -> str:
        """Return a compact ``key=value`` rendering of the context.

        Returns:
            str: Space separated context pairs.
        """

        return " ".join(f"{key}={value}" for key, value in asdict(self).items())


class EngineInitializationError(LintweaveError):
    """Raised when an engine fails to initialise and is removed from the registry."""

    def __init__(self, engine_id: str, cause: BaseException | str) -> None:
        """Record the failing engine and the underlying cause.

        Args:
            engine_id: Identifier of the engine that failed.
            cause: Exception or message describing the failure.
        """

        self.engine_id = engine_id
        self.cause = cause
        super().__init__(f"Failed to initialize engine '{engine_id}': {cause}")


class NoEnginesAvailableError(LintweaveError):
    """Raised when no engine initialised successfully; the run cannot proceed."""

    def __init__(self, attempted: tuple[str, ...] = ()) -> None:
        """Build an actionable message naming the engines that were attempted.

        Args:
            attempted: Engine ids that were registered or configured for the run.
        """

        self.attempted = attempted
        hint = f" (attempted: {', '.join(attempted)})" if attempted else ""
        super().__init__(
            "No analysis engines successfully initialized"
            f"{hint}; check the enabled engine list and engine settings",
        )


class AnalysisCancelledError(LintweaveError):
    """Raised by engines that observe a cancelled token mid-analysis."""


class BatchTimeoutError(LintweaveError):
    """Raised when a batch exceeds its adaptive deadline."""

    def __init__(self, context: BatchContext) -> None:
        """Describe the batch that timed out.

        Args:
            context: Execution context for the timed-out batch.
        """

        self.context = context
        super().__init__(
            f"Engine {context.engine} batch {context.batch_number} timed out after {context.timeout_ms}ms",
        )


class BatchExecutionError(LintweaveError):
    """Wrap an engine failure with the batch context it happened in."""

    def __init__(self, original: BaseException, context: BatchContext) -> None:
        """Wrap ``original`` with ``context``.

        Args:
            original: Exception raised by the engine.
            context: Execution context for the failing batch.
        """

        self.original = original
        self.context = context
        super().__init__(f"{original} ({context.describe()})")


__all__ = [
    "AnalysisCancelledError",
    "BatchContext",
    "BatchExecutionError",
    "BatchTimeoutError",
    "EngineInitializationError",
    "LintweaveError",
    "NoEnginesAvailableError",
]
