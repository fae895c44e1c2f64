"""
Core domain package.

This package contains the indexing engine: the SQLite catalog, the identity
resolver, tag extraction, the directory scanner and the art cache. It is
independent of any UI layer (web, CLI, terminal UI).

Consumers should usually import from the specific module they need
(e.g. `tunedex.core.library`).
"""

from __future__ import annotations

__all__: list[str] = [
    "CoreError",
    "CatalogNotOpenError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class CatalogNotOpenError(CoreError, RuntimeError):
    """Raised when the catalog is used before it has been opened."""
