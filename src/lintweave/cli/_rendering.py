# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rich tables summarising runs, engines, and rules."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from ..catalog import Rule
from ..core.models import AggregatedResult, JsonValue


def _table(title: str, *, color: bool) -> Table:
    return Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold" if color else None,
    )


def render_run_summary(console: Console, result: AggregatedResult, *, color: bool) -> None:
    """Print per-engine statistics and the run totals.

    Args:
        console: Console receiving the output.
        result: Aggregated run result.
        color: Whether column styles are applied.
    """

    table = _table("Analysis Summary", color=color)
    table.add_column("Engine", style="cyan" if color else None)
    table.add_column("Rules", justify="right")
    table.add_column("Batches", justify="right")
    table.add_column("Failed", justify="right", style="red" if color else None)
    table.add_column("Files", justify="right")
    table.add_column("Violations", justify="right", style="magenta" if color else None)
    for engine_id, stats in result.summary.engines.items():
        table.add_row(
            engine_id,
            str(len(stats.rules)),
            str(stats.batches),
            str(stats.failed_batches),
            str(stats.files),
            str(stats.violations),
        )
    console.print(table)
    metrics = result.performance
    console.print(
        f"files {metrics.optimized_files}/{metrics.original_files} analysed, "
        f"{result.summary.total_violations} violations, "
        f"{result.summary.failed_batches} failed batches",
    )


def render_violations(console: Console, result: AggregatedResult, *, limit: int = 50) -> None:
    """Print up to ``limit`` violations as ``file:line rule message`` lines.

    Args:
        console: Console receiving the output.
        result: Aggregated run result.
        limit: Maximum number of violations to print.
    """

    for violation in result.violations[:limit]:
        location = violation.file or "<project>"
        if violation.line is not None:
            location = f"{location}:{violation.line}"
        console.print(f"{location} {violation.rule_id} [{violation.severity.value}] {violation.message}", markup=False)
    remaining = len(result.violations) - limit
    if remaining > 0:
        console.print(f"... {remaining} more")


def render_engines(console: Console, engines: Mapping[str, Mapping[str, JsonValue]], *, color: bool) -> None:
    """Print a table describing registered engines.

    Args:
        console: Console receiving the output.
        engines: Engine id to :meth:`Engine.describe` payload.
        color: Whether column styles are applied.
    """

    table = _table("Engines", color=color)
    table.add_column("Engine", style="cyan" if color else None)
    table.add_column("Version")
    table.add_column("Rules", justify="right")
    table.add_column("Languages")
    for engine_id, info in engines.items():
        languages = info.get("languages") or []
        table.add_row(
            engine_id,
            str(info.get("version", "")),
            str(info.get("rules", "")),
            ", ".join(str(item) for item in languages) if isinstance(languages, list) else str(languages),
        )
    console.print(table)


def render_rules(console: Console, rules: Sequence[Rule], *, color: bool) -> None:
    """Print a table of catalog rules.

    Args:
        console: Console receiving the output.
        rules: Rules to list.
        color: Whether column styles are applied.
    """

    table = _table("Rules", color=color)
    table.add_column("Id", style="cyan" if color else None)
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Analyzer")
    table.add_column("Name")
    for rule in rules:
        table.add_row(rule.id, rule.category, rule.severity.value, rule.analyzer or "-", rule.name)
    console.print(table)


__all__ = ["render_engines", "render_rules", "render_run_summary", "render_violations"]
