# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule metadata model loaded from the rule registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.models import Severity
from .categories import category_principles

DEFAULT_LANGUAGES: tuple[str, ...] = ("javascript", "typescript")


class Rule(BaseModel):
    """Immutable description of a single analysis rule.

    ``analyzer`` carries the rule's hint about the analyzer family that suits
    it best (``"heuristic"``, ``"syntax"``, ``"eslint"`` and so on), while
    ``engines`` pins the rule to an explicit engine preference list that
    overrides every configuration-driven routing choice.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    category: str = "quality"
    severity: Severity = Severity.WARNING
    languages: tuple[str, ...] = DEFAULT_LANGUAGES
    principles: tuple[str, ...] = ()
    analyzer: str | None = None
    engines: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    message: str | None = None
    version: str = "1.0.0"
    status: str = "activated"
    tags: tuple[str, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _normalise_id(cls, value: Any) -> str:
        """Upper-case rule identifiers.

        Args:
            value: Identifier supplied by the registry.

        Returns:
            str: Stripped, upper-cased identifier.
        """

        return str(value).strip().upper()

    @field_validator("category", mode="before")
    @classmethod
    def _normalise_category(cls, value: Any) -> str:
        return str(value or "quality").lower()

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise_severity(cls, value: Any) -> Any:
        if value is None:
            return Severity.WARNING
        if isinstance(value, str):
            lowered = value.lower()
            if lowered == "major":
                return Severity.ERROR
            if lowered == "minor":
                return Severity.WARNING
            return lowered
        return value

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        """Derive display names and principles when the registry omits them.

        Args:
            data: Raw rule payload.

        Returns:
            Any: Payload with ``name`` and ``principles`` populated.
        """

        if not isinstance(data, Mapping):
            return data
        payload = dict(data)
        rule_id = str(payload.get("id", "")).strip().upper()
        if not payload.get("name"):
            payload["name"] = payload.get("title") or f"{rule_id} Rule"
        if not payload.get("principles"):
            payload["principles"] = category_principles(payload.get("category") or "quality")
        return payload

    @property
    def title(self) -> str:
        """Return the human readable rule name."""

        return self.name

    def supports_language(self, language: str) -> bool:
        """Return whether the rule declares support for ``language``.

        Args:
            language: Language identifier detected for a file.

        Returns:
            bool: ``True`` when the rule lists the language or ``"all"``.
        """

        return language in self.languages or "all" in self.languages


__all__ = ["DEFAULT_LANGUAGES", "Rule"]
