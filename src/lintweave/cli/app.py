# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring the analyze, engines, and rules commands."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from ..catalog import CatalogError, RuleCatalog
from ..config import Config, ConfigError, load_config
from ..core.logging import configure_debug_logging
from ..errors import NoEnginesAvailableError
from ..orchestration import Orchestrator, OrchestratorDeps
from ._inputs import apply_performance_profile, collect_files, select_rules, split_ids
from ._rendering import render_engines, render_rules, render_run_summary, render_violations
from .shared import CLIError, CLILogger, build_cli_logger, create_typer

app = create_typer(help="Multi-engine rule analysis orchestrator.")

RootOption = Annotated[
    Path,
    typer.Option("--root", "-r", help="Project root used to locate configuration.", file_okay=False),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Explicit lintweave TOML configuration file.", dir_okay=False),
]
RegistryOption = Annotated[
    Path | None,
    typer.Option("--registry", help="Rule registry JSON replacing the bundled catalog.", dir_okay=False),
]
NoEmojiOption = Annotated[bool, typer.Option("--no-emoji", help="Disable emoji output.")]
NoColorOption = Annotated[bool, typer.Option("--no-color", help="Disable coloured output.")]


def _load_config(root: Path, config_path: Path | None) -> Config:
    try:
        return load_config(root, path=config_path)
    except ConfigError as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _build_catalog(registry: Path | None) -> RuleCatalog:
    catalog = RuleCatalog(registry)
    try:
        catalog.initialize()
    except CatalogError as exc:
        raise CLIError(str(exc), exit_code=2) from exc
    return catalog


def _exit_with(logger: CLILogger, error: CLIError) -> typer.Exit:
    logger.fail(str(error))
    return typer.Exit(code=error.exit_code)


@app.command("analyze")
def analyze_command(
    paths: Annotated[list[Path], typer.Argument(help="Files or directories to analyse.")],
    rules: Annotated[
        list[str] | None,
        typer.Option("--rules", help="Rule ids to run (repeatable or comma separated)."),
    ] = None,
    categories: Annotated[
        list[str] | None,
        typer.Option("--category", help="Run every rule of this category (repeatable)."),
    ] = None,
    engine: Annotated[
        str | None,
        typer.Option("--engine", "-e", help="Use only this engine, or 'auto'."),
    ] = None,
    performance: Annotated[
        str,
        typer.Option("--performance", help="Performance profile: auto, none, fast, balanced, careful, enterprise."),
    ] = "auto",
    json_output: Annotated[bool, typer.Option("--json", help="Print the aggregated result as JSON.")] = False,
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    registry: RegistryOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show routing and batch traces.")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress warnings.")] = False,
    no_emoji: NoEmojiOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Analyse PATHS with the selected rules and print a summary."""

    logger = build_cli_logger(emoji=not no_emoji, debug=verbose, no_color=no_color)
    try:
        config = _load_config(root, config_path)
        config.output = config.output.model_copy(
            update={
                "verbose": verbose or config.output.verbose,
                "quiet": quiet or json_output or config.output.quiet,
                "emoji": config.output.emoji and not no_emoji,
                "color": config.output.color and not no_color,
            },
        )
        configure_debug_logging(verbose=config.output.verbose)
        files = collect_files(paths)
        profile = apply_performance_profile(config, performance, len(files))
        catalog = _build_catalog(registry)
        selected = select_rules(catalog, split_ids(rules), [item.lower() for item in categories or ()])
        orchestrator = Orchestrator(
            config,
            OrchestratorDeps(catalog=catalog, debug_logger=logger.debug if verbose else None),
        )
        try:
            result = orchestrator.run(files, selected, engine=engine)
        except NoEnginesAvailableError as exc:
            raise CLIError(str(exc), exit_code=2) from exc
        finally:
            asyncio.run(orchestrator.cleanup())
    except CLIError as exc:
        raise _exit_with(logger, exc) from exc

    if json_output:
        logger.echo(result.model_dump_json(indent=2))
    else:
        if profile is not None:
            logger.debug(f"performance profile={profile}")
        render_violations(logger.console, result)
        render_run_summary(logger.console, result, color=config.output.color)
        if result.has_violations():
            logger.warn(f"Found {result.summary.total_violations} violations")
        else:
            logger.ok("No violations found")
    raise typer.Exit(code=1 if result.has_violations() else 0)


@app.command("engines")
def engines_command(
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    registry: RegistryOption = None,
    no_emoji: NoEmojiOption = False,
    no_color: NoColorOption = False,
) -> None:
    """List the engines that initialise with the current configuration."""

    logger = build_cli_logger(emoji=not no_emoji, no_color=no_color)
    try:
        config = _load_config(root, config_path)
        orchestrator = Orchestrator(config, OrchestratorDeps(catalog=_build_catalog(registry)))
        try:
            asyncio.run(orchestrator.initialize())
        except NoEnginesAvailableError as exc:
            raise CLIError(str(exc), exit_code=2) from exc
    except CLIError as exc:
        raise _exit_with(logger, exc) from exc
    info = orchestrator.engine_info()
    render_engines(logger.console, info, color=not no_color)
    logger.info(f"{len(info)} engines ready")
    asyncio.run(orchestrator.cleanup())


@app.command("rules")
def rules_command(
    categories: Annotated[
        list[str] | None,
        typer.Option("--category", help="Only list rules of this category (repeatable)."),
    ] = None,
    registry: RegistryOption = None,
    no_emoji: NoEmojiOption = False,
    no_color: NoColorOption = False,
) -> None:
    """List catalog rules."""

    logger = build_cli_logger(emoji=not no_emoji, no_color=no_color)
    try:
        catalog = _build_catalog(registry)
    except CLIError as exc:
        raise _exit_with(logger, exc) from exc
    if categories:
        rules = [rule for category in categories for rule in catalog.rules_for_category(category)]
    else:
        rules = catalog.get_all_rules()
    render_rules(logger.console, rules, color=not no_color)
    logger.ok(f"{len(rules)} rules")


__all__ = ["app"]
