# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Custom exceptions raised by rule catalog operations."""

from __future__ import annotations


class CatalogError(RuntimeError):
    """Raised when a rule registry document cannot be read or parsed."""


class CatalogIntegrityError(CatalogError):
    """Raised when a rule registry parses but contains invalid rule entries."""


__all__ = ["CatalogError", "CatalogIntegrityError"]
