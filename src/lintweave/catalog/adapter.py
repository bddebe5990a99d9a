# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Read-only rule catalog backed by a JSON rule registry."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from .errors import CatalogError, CatalogIntegrityError
from .models import Rule

LOGGER = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH: Final[Path] = Path(__file__).resolve().parent / "data" / "rules.json"
_RULES_KEY: Final[str] = "rules"


def _iter_rule_payloads(document: Any, *, source: Path) -> Iterable[dict[str, Any]]:
    """Yield rule payloads from a registry document.

    The registry may be a ``{"rules": {...}}`` wrapper, a bare mapping keyed by
    rule id, or a list of rule objects carrying their own ``id``.

    Args:
        document: Parsed JSON document.
        source: Path the document was read from, used in error messages.

    Yields:
        dict[str, Any]: Rule payload including an ``id`` key.

    Raises:
        CatalogIntegrityError: If the document shape is not recognised.
    """

    rules = document.get(_RULES_KEY, document) if isinstance(document, Mapping) else document
    if isinstance(rules, Mapping):
        for rule_id, payload in rules.items():
            if not isinstance(payload, Mapping):
                raise CatalogIntegrityError(f"{source}: rule {rule_id!r} must be an object")
            yield {"id": rule_id, **payload}
        return
    if isinstance(rules, list):
        for payload in rules:
            if not isinstance(payload, Mapping) or "id" not in payload:
                raise CatalogIntegrityError(f"{source}: rule entries must be objects with an 'id'")
            yield dict(payload)
        return
    raise CatalogIntegrityError(f"{source}: unsupported rule registry layout")


class RuleCatalog:
    """Resolve rule identifiers to :class:`Rule` metadata.

    The catalog loads its registry once; lookups before :meth:`initialize`
    trigger the load lazily. Identifiers are matched case-insensitively.
    """

    def __init__(self, registry_path: Path | None = None, *, rules: Sequence[Rule] | None = None) -> None:
        """Create a catalog reading ``registry_path`` or seeded with ``rules``.

        Args:
            registry_path: JSON registry to load; defaults to the packaged registry.
            rules: Optional pre-built rules, used instead of reading a registry.
        """

        self._registry_path = registry_path or DEFAULT_REGISTRY_PATH
        self._rules: dict[str, Rule] = {}
        self._initialized = False
        if rules is not None:
            self._rules = {rule.id: rule for rule in rules}
            self._initialized = True

    @property
    def initialized(self) -> bool:
        """Return ``True`` once the registry has been loaded."""

        return self._initialized

    @property
    def registry_path(self) -> Path:
        """Return the registry path backing the catalog."""

        return self._registry_path

    def initialize(self) -> None:
        """Load the rule registry when it has not been loaded yet.

        Raises:
            CatalogError: If the registry is missing or is not valid JSON.
            CatalogIntegrityError: If an entry fails rule validation.
        """

        if self._initialized:
            return
        path = self._registry_path
        try:
            with path.open("r", encoding="utf-8") as stream:
                document = json.load(stream)
        except FileNotFoundError as exc:
            raise CatalogError(f"Rule registry {path} does not exist") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(f"{path}: failed to parse rule registry: {exc}") from exc

        loaded: dict[str, Rule] = {}
        for payload in _iter_rule_payloads(document, source=path):
            try:
                rule = Rule.model_validate(payload)
            except ValidationError as exc:
                raise CatalogIntegrityError(f"{path}: invalid rule {payload.get('id')!r}: {exc}") from exc
            loaded[rule.id] = rule
        self._rules = loaded
        self._initialized = True
        LOGGER.debug("loaded %d rules from %s", len(loaded), path)

    def get_rule_by_id(self, rule_id: str) -> Rule | None:
        """Return the rule registered under ``rule_id``.

        Args:
            rule_id: Identifier to resolve, matched case-insensitively.

        Returns:
            Rule | None: Rule metadata or ``None`` when unknown.
        """

        self.initialize()
        return self._rules.get(rule_id.strip().upper())

    def get_all_rules(self) -> list[Rule]:
        """Return every rule in registry order.

        Returns:
            list[Rule]: Rules known to the catalog.
        """

        self.initialize()
        return list(self._rules.values())

    def rule_ids(self) -> list[str]:
        """Return every known rule identifier."""

        self.initialize()
        return list(self._rules)

    def rules_for_category(self, category: str) -> list[Rule]:
        """Return rules whose category matches ``category``.

        Args:
            category: Category name, compared case-insensitively.

        Returns:
            list[Rule]: Matching rules in registry order.
        """

        wanted = category.lower()
        return [rule for rule in self.get_all_rules() if rule.category == wanted]

    def resolve(self, rule_ids: Iterable[str]) -> tuple[list[Rule], list[str]]:
        """Resolve ``rule_ids`` preserving order and dropping duplicates.

        Args:
            rule_ids: Identifiers requested by the caller.

        Returns:
            tuple[list[Rule], list[str]]: Resolved rules and the ids that were unknown.
        """

        resolved: list[Rule] = []
        unknown: list[str] = []
        seen: set[str] = set()
        for raw in rule_ids:
            key = raw.strip().upper()
            if not key or key in seen:
                continue
            seen.add(key)
            rule = self.get_rule_by_id(key)
            if rule is None:
                unknown.append(key)
            else:
                resolved.append(rule)
        return resolved, unknown

    def __len__(self) -> int:
        self.initialize()
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        if not isinstance(rule_id, str):
            return False
        return self.get_rule_by_id(rule_id) is not None


__all__ = ["DEFAULT_REGISTRY_PATH", "RuleCatalog"]
