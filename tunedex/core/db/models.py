"""
Catalog row models (DTOs).

This module is intentionally lightweight:
- No DB connection knowledge
- No SQL
- Pure dataclasses + id aliases
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

MusicDirId = NewType("MusicDirId", int)
ArtistId = NewType("ArtistId", int)
AlbumId = NewType("AlbumId", int)
TrackId = NewType("TrackId", int)


@dataclass(frozen=True, slots=True)
class MusicDirRow:
    """A registered music root. `path` is canonical (absolute, symlinks resolved)."""

    id: MusicDirId
    path: str


@dataclass(frozen=True, slots=True)
class ArtistRow:
    id: ArtistId
    name: str


@dataclass(frozen=True, slots=True)
class AlbumRow:
    """
    Album record.

    Identity is the (name, artist_id) pair: the same name with a different
    artist, or with no artist, is a different album.
    """

    id: AlbumId
    name: str
    artist_id: ArtistId | None = None


@dataclass(frozen=True, slots=True)
class TrackMetadataRow:
    """Per-track tag data. `title` is always set once a tag block was read."""

    track_id: TrackId
    title: str
    track_number: int | None = None
    artist_id: ArtistId | None = None
    album_id: AlbumId | None = None


@dataclass(frozen=True, slots=True)
class TrackRow:
    """
    A track joined with its (optional) metadata row.

    Tracks whose tags could not be read have `metadata` set to None.
    """

    id: TrackId
    path: str
    music_dir_id: MusicDirId
    metadata: TrackMetadataRow | None = None

    @property
    def title(self) -> str | None:
        return self.metadata.title if self.metadata is not None else None
