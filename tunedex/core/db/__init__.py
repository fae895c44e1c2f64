"""
Internal DB subpackage for tunedex.

Splits the catalog storage into focused units (models, schema, and query
groups) while keeping `CatalogDb` as the single public interface that the rest
of the codebase imports.

External code should import `CatalogDb` from `tunedex.core.catalog_db`.
"""

from __future__ import annotations

# Models / DTOs
from .models import (
    AlbumId,
    AlbumRow,
    ArtistId,
    ArtistRow,
    MusicDirId,
    MusicDirRow,
    TrackId,
    TrackMetadataRow,
    TrackRow,
)

# Schema
from .schema import SCHEMA_VERSION, SchemaVersionError, ensure_schema

__all__ = [
    # models
    "AlbumId",
    "AlbumRow",
    "ArtistId",
    "ArtistRow",
    "MusicDirId",
    "MusicDirRow",
    "TrackId",
    "TrackMetadataRow",
    "TrackRow",
    # schema
    "SCHEMA_VERSION",
    "SchemaVersionError",
    "ensure_schema",
]
