# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Input helpers turning CLI arguments into files, rules, and configuration."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Final

from ..catalog import Rule, RuleCatalog
from ..config import PERFORMANCE_PROFILES, Config, select_performance_profile
from ..engines.base import LANGUAGE_EXTENSIONS
from .shared import CLIError

AUTO_PROFILE: Final[str] = "auto"
NO_PROFILE: Final[str] = "none"


def collect_files(paths: Sequence[Path]) -> list[Path]:
    """Expand ``paths`` into a sorted list of analysable files.

    Directories are walked recursively and only files with a known source
    extension are kept; explicit file arguments are always kept.

    Args:
        paths: Files or directories supplied on the command line.

    Returns:
        list[Path]: De-duplicated files in a stable order.

    Raises:
        CLIError: If a path does not exist.
    """

    collected: dict[Path, None] = {}
    for path in paths:
        if not path.exists():
            raise CLIError(f"Path does not exist: {path}", exit_code=2)
        if path.is_file():
            collected[path] = None
            continue
        for candidate in sorted(path.rglob("*")):
            if candidate.is_file() and candidate.suffix.lower() in LANGUAGE_EXTENSIONS:
                collected[candidate] = None
    return list(collected)


def split_ids(values: Iterable[str] | None) -> list[str]:
    """Split repeated and comma separated option values into ids.

    Args:
        values: Raw option values such as ``["C006,C010", "S027"]``.

    Returns:
        list[str]: Upper-cased, non-empty ids in order.
    """

    ids: list[str] = []
    for value in values or ():
        ids.extend(part.strip().upper() for part in value.split(",") if part.strip())
    return ids


def select_rules(
    catalog: RuleCatalog,
    rule_ids: Sequence[str],
    categories: Sequence[str],
) -> list[Rule | str]:
    """Return the rules requested on the command line.

    Unknown rule ids are passed through so the orchestrator reports them as
    skipped.

    Args:
        catalog: Rule catalog used for category lookups.
        rule_ids: Explicit rule ids.
        categories: Category filters.

    Returns:
        list[Rule | str]: Rules and ids; every catalog rule when both filters are empty.
    """

    if not rule_ids and not categories:
        return list(catalog.get_all_rules())
    selected: list[Rule | str] = list(rule_ids)
    seen = set(rule_ids)
    for category in categories:
        for rule in catalog.rules_for_category(category):
            if rule.id not in seen:
                seen.add(rule.id)
                selected.append(rule)
    return selected


def apply_performance_profile(config: Config, profile: str, file_count: int) -> str | None:
    """Apply the named performance profile to ``config``.

    Args:
        config: Configuration to update in place.
        profile: ``auto``, ``none``, or a profile name.
        file_count: Discovered file count used by ``auto``.

    Returns:
        str | None: Name of the applied profile, or ``None`` for ``none``.

    Raises:
        CLIError: If ``profile`` is not recognised.
    """

    key = profile.strip().lower()
    if key == NO_PROFILE:
        return None
    if key == AUTO_PROFILE:
        selected = select_performance_profile(file_count)
    elif key in PERFORMANCE_PROFILES:
        selected = PERFORMANCE_PROFILES[key]
    else:
        choices = ", ".join([AUTO_PROFILE, NO_PROFILE, *PERFORMANCE_PROFILES])
        raise CLIError(f"Unknown performance profile '{profile}' (choose from {choices})", exit_code=2)
    config.apply_profile(selected)
    return selected.name


__all__ = ["apply_performance_profile", "collect_files", "select_rules", "split_ids"]
