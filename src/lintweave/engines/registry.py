# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Engine registry keyed by engine id."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from ..errors import EngineInitializationError
from .base import Engine

LOGGER = logging.getLogger(__name__)


class EngineRegistry(Mapping[str, Engine]):
    """Central registry for analysis engines.

    ``EngineRegistry`` behaves like a read-only mapping from engine id to
    :class:`Engine` in registration order. Engines that fail to initialise are
    removed so later lookups report them as unavailable.
    """

    def __init__(self, engines: Iterable[Engine] = ()) -> None:
        """Initialise the registry, registering ``engines`` in order.

        Args:
            engines: Engines to register up front.
        """

        self._engines: dict[str, Engine] = {}
        for engine in engines:
            self.register(engine)

    def register(self, engine: Engine) -> None:
        """Register ``engine``, replacing any engine with the same id.

        Args:
            engine: Engine to insert into the registry.

        Raises:
            TypeError: If ``engine`` does not satisfy the :class:`Engine` contract.
        """

        if not isinstance(engine, Engine):
            raise TypeError(f"{engine!r} does not implement the Engine contract")
        if engine.engine_id in self._engines:
            LOGGER.warning("Engine %s already registered, replacing", engine.engine_id)
        self._engines[engine.engine_id] = engine
        LOGGER.debug(
            "registered engine %s v%s languages=%s",
            engine.engine_id,
            engine.version,
            ",".join(engine.supported_languages),
        )

    def deregister(self, engine_id: str) -> Engine | None:
        """Remove and return the engine registered under ``engine_id``.

        Args:
            engine_id: Identifier of the engine to remove.

        Returns:
            Engine | None: Removed engine, or ``None`` when it was not registered.
        """

        return self._engines.pop(engine_id, None)

    def reset(self) -> None:
        """Remove all engines from the registry."""
        self._engines.clear()

    def try_get(self, engine_id: str) -> Engine | None:
        """Return the engine registered under ``engine_id`` when present.

        Args:
            engine_id: Engine identifier to retrieve.

        Returns:
            Engine | None: Registered engine or ``None`` when not found.
        """

        return self._engines.get(engine_id)

    def list_engines(self) -> list[str]:
        """Return registered engine ids in registration order."""

        return list(self._engines)

    def is_rule_supported(self, engine_id: str, rule_id: str) -> bool:
        """Return whether ``engine_id`` is registered and supports ``rule_id``.

        Args:
            engine_id: Engine to query.
            rule_id: Rule identifier to check.

        Returns:
            bool: ``False`` for unknown engines, otherwise the engine's answer.
        """

        engine = self._engines.get(engine_id)
        return engine is not None and engine.is_rule_supported(rule_id)

    async def initialize_engine(self, engine_id: str, settings: Mapping[str, Any]) -> None:
        """Initialise ``engine_id``; deregister it when initialisation fails.

        Args:
            engine_id: Engine to initialise.
            settings: Engine-specific settings forwarded to ``initialize``.

        Raises:
            EngineInitializationError: If the engine is unknown or its
                ``initialize`` call raised.
        """

        engine = self._engines.get(engine_id)
        if engine is None:
            raise EngineInitializationError(engine_id, "engine not registered")
        try:
            await engine.initialize(settings)
        except Exception as exc:
            self._engines.pop(engine_id, None)
            raise EngineInitializationError(engine_id, exc) from exc

    async def initialize_all(
        self,
        engine_ids: Iterable[str],
        settings: Mapping[str, Mapping[str, Any]],
    ) -> list[EngineInitializationError]:
        """Initialise each engine in ``engine_ids`` collecting failures.

        Args:
            engine_ids: Engines to initialise, in order.
            settings: Per-engine settings keyed by engine id.

        Returns:
            list[EngineInitializationError]: Failures, one per engine that was removed
            or could not be found.
        """

        failures: list[EngineInitializationError] = []
        for engine_id in engine_ids:
            try:
                await self.initialize_engine(engine_id, settings.get(engine_id, {}))
            except EngineInitializationError as exc:
                failures.append(exc)
        return failures

    async def cleanup_all(self) -> list[tuple[str, Exception]]:
        """Call ``cleanup`` on every engine, collecting failures instead of raising.

        Returns:
            list[tuple[str, Exception]]: Engine ids paired with the error they raised.
        """

        failures: list[tuple[str, Exception]] = []
        for engine_id, engine in list(self._engines.items()):
            try:
                await engine.cleanup()
            except Exception as exc:  # noqa: BLE001
                failures.append((engine_id, exc))
        return failures

    def __len__(self) -> int:
        return len(self._engines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._engines)

    def __getitem__(self, engine_id: str) -> Engine:
        return self._engines[engine_id]


__all__ = ["EngineRegistry"]
