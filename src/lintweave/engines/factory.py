# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Engine factories keyed by engine id.

Built-in engines are always available. Third-party packages contribute
additional engines through the ``lintweave.engines`` entry-point group; each
entry point must resolve to a callable accepting a :class:`RuleCatalog` and
returning an object satisfying the :class:`Engine` contract.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from importlib import metadata
from typing import Final, TypeAlias

from ..catalog.adapter import RuleCatalog
from ..config.models import HEURISTIC_ENGINE
from .base import Engine
from .heuristic import HeuristicEngine
from .registry import EngineRegistry

LOGGER = logging.getLogger(__name__)

ENGINE_ENTRY_POINT_GROUP: Final[str] = "lintweave.engines"

EngineFactory: TypeAlias = Callable[[RuleCatalog], Engine]


def _entry_point_factories(group: str) -> dict[str, EngineFactory]:
    """Return engine factories advertised under ``group``.

    Args:
        group: Entry-point group to inspect.

    Returns:
        dict[str, EngineFactory]: Factories keyed by entry-point name. Entry
        points that fail to load are logged and skipped.
    """

    factories: dict[str, EngineFactory] = {}
    for entry_point in metadata.entry_points(group=group):
        try:
            loaded = entry_point.load()
        except (ImportError, AttributeError) as exc:
            LOGGER.warning("Failed to load engine entry point %s: %s", entry_point.name, exc)
            continue
        if not callable(loaded):
            LOGGER.warning("Engine entry point %s is not callable", entry_point.name)
            continue
        factories[entry_point.name] = loaded
    return factories


class EngineFactories(Mapping[str, EngineFactory]):
    """Mapping from engine id to the factory that builds it."""

    def __init__(self, factories: Mapping[str, EngineFactory] | None = None) -> None:
        """Seed the mapping with ``factories``.

        Args:
            factories: Initial id-to-factory mapping.
        """

        self._factories: dict[str, EngineFactory] = dict(factories or {})

    @classmethod
    def with_defaults(cls, *, include_entry_points: bool = True) -> EngineFactories:
        """Return factories for the built-in engines plus installed plugins.

        Args:
            include_entry_points: ``False`` to ignore the entry-point group.

        Returns:
            EngineFactories: Populated factory mapping.
        """

        factories: dict[str, EngineFactory] = {HEURISTIC_ENGINE: HeuristicEngine}
        if include_entry_points:
            for name, factory in _entry_point_factories(ENGINE_ENTRY_POINT_GROUP).items():
                factories.setdefault(name, factory)
        return cls(factories)

    def register(self, engine_id: str, factory: EngineFactory) -> None:
        """Register ``factory`` under ``engine_id``, replacing any previous factory.

        Args:
            engine_id: Identifier the produced engine will be registered under.
            factory: Callable creating the engine from a rule catalog.
        """

        self._factories[engine_id] = factory

    def create(self, engine_id: str, catalog: RuleCatalog) -> Engine:
        """Build the engine registered under ``engine_id``.

        Args:
            engine_id: Engine to build.
            catalog: Rule catalog handed to the factory.

        Returns:
            Engine: Newly built engine.

        Raises:
            KeyError: If no factory is registered for ``engine_id``.
        """

        return self._factories[engine_id](catalog)

    def __len__(self) -> int:
        return len(self._factories)

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __getitem__(self, engine_id: str) -> EngineFactory:
        return self._factories[engine_id]


def load_configured_engines(
    registry: EngineRegistry,
    factories: Mapping[str, EngineFactory],
    engine_ids: Iterable[str],
    catalog: RuleCatalog,
) -> list[str]:
    """Build and register every engine named in ``engine_ids``.

    Unknown ids and factories that raise are logged and skipped so the
    remaining engines still load.

    Args:
        registry: Registry receiving the engines.
        factories: Factories keyed by engine id.
        engine_ids: Engines enabled by configuration, in order.
        catalog: Rule catalog handed to each factory.

    Returns:
        list[str]: Ids of the engines that were registered.
    """

    loaded: list[str] = []
    for engine_id in engine_ids:
        factory = factories.get(engine_id)
        if factory is None:
            LOGGER.warning("No factory registered for engine %s", engine_id)
            continue
        try:
            engine = factory(catalog)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Failed to load engine %s: %s", engine_id, exc)
            continue
        registry.register(engine)
        loaded.append(engine.engine_id)
    return loaded


__all__ = [
    "ENGINE_ENTRY_POINT_GROUP",
    "EngineFactories",
    "EngineFactory",
    "load_configured_engines",
]
