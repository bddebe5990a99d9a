# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule catalog: rule metadata and registry access."""

from __future__ import annotations

from .adapter import DEFAULT_REGISTRY_PATH, RuleCatalog
from .categories import CATEGORY_PRINCIPLES, Principle, category_principles, valid_categories
from .errors import CatalogError, CatalogIntegrityError
from .models import Rule

__all__ = [
    "CATEGORY_PRINCIPLES",
    "CatalogError",
    "CatalogIntegrityError",
    "DEFAULT_REGISTRY_PATH",
    "Principle",
    "Rule",
    "RuleCatalog",
    "category_principles",
    "valid_categories",
]
