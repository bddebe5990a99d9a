# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule categories and the principles each category maps to."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Final


class Principle(str, Enum):
    """Quality principles rules are tagged with."""

    CODE_QUALITY = "CODE_QUALITY"
    DESIGN_PATTERNS = "DESIGN_PATTERNS"
    INTEGRATION = "INTEGRATION"
    MAINTAINABILITY = "MAINTAINABILITY"
    PERFORMANCE = "PERFORMANCE"
    RELIABILITY = "RELIABILITY"
    SECURITY = "SECURITY"
    TESTABILITY = "TESTABILITY"
    USABILITY = "USABILITY"


CATEGORY_PRINCIPLES: Final[Mapping[str, tuple[Principle, ...]]] = {
    "security": (Principle.SECURITY,),
    "quality": (Principle.CODE_QUALITY,),
    "performance": (Principle.PERFORMANCE,),
    "maintainability": (Principle.MAINTAINABILITY,),
    "testability": (Principle.TESTABILITY,),
    "reliability": (Principle.RELIABILITY,),
    "design": (Principle.DESIGN_PATTERNS,),
    "integration": (Principle.INTEGRATION,),
    "usability": (Principle.USABILITY,),
}


def category_principles(category: str | None) -> tuple[str, ...]:
    """Return the principle names associated with ``category``.

    Args:
        category: Category name, compared case-insensitively.

    Returns:
        tuple[str, ...]: Principle names; empty for unknown categories.
    """

    if not category:
        return ()
    return tuple(principle.value for principle in CATEGORY_PRINCIPLES.get(category.lower(), ()))


def valid_categories() -> tuple[str, ...]:
    """Return every category known to the catalog."""

    return tuple(CATEGORY_PRINCIPLES)


__all__ = ["CATEGORY_PRINCIPLES", "Principle", "category_principles", "valid_categories"]
