"""
Catalog schema for tunedex.

Design notes:
- Every statement is `CREATE ... IF NOT EXISTS`, so `ensure_schema` is safe to
  call on every start.
- We use SQLite `PRAGMA user_version` as the schema version.
- Foreign-key enforcement is a per-connection pragma and is enabled by
  `CatalogDb.open()`, not here.
"""

from __future__ import annotations

from typing import Final

import aiosqlite

# Bump when you change the schema.
SCHEMA_VERSION: Final[int] = 1


class SchemaVersionError(RuntimeError):
    """The catalog file was written by a newer tunedex."""


_TABLES: Final[tuple[str, ...]] = (
    """
    CREATE TABLE IF NOT EXISTS music_dirs (
        id   INTEGER PRIMARY KEY AUTOINCREMENT,
        path TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS artists (
        id   INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS albums (
        id        INTEGER PRIMARY KEY AUTOINCREMENT,
        name      TEXT NOT NULL,
        artist_id INTEGER REFERENCES artists(id),
        UNIQUE(name, artist_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tracks (
        id           INTEGER PRIMARY KEY AUTOINCREMENT,
        path         TEXT NOT NULL UNIQUE,
        music_dir_id INTEGER NOT NULL REFERENCES music_dirs(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS track_metadata (
        track_id     INTEGER PRIMARY KEY REFERENCES tracks(id),
        title        TEXT NOT NULL,
        track_number INTEGER,
        artist_id    INTEGER REFERENCES artists(id),
        album_id     INTEGER REFERENCES albums(id)
    )
    """,
)

_INDEXES: Final[tuple[str, ...]] = (
    # UNIQUE(name, artist_id) does not cover artist-less albums (NULLs are distinct).
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_albums_name_no_artist "
    "ON albums(name) WHERE artist_id IS NULL;",
    "CREATE INDEX IF NOT EXISTS idx_albums_artist_id ON albums(artist_id);",
    "CREATE INDEX IF NOT EXISTS idx_tracks_music_dir_id ON tracks(music_dir_id);",
    "CREATE INDEX IF NOT EXISTS idx_track_metadata_artist_id ON track_metadata(artist_id);",
    "CREATE INDEX IF NOT EXISTS idx_track_metadata_album_id ON track_metadata(album_id);",
)


async def ensure_schema(conn: aiosqlite.Connection) -> None:
    """
    Create the catalog tables if they do not exist yet.

    Raises:
        SchemaVersionError: the file carries a newer schema version.
        aiosqlite.Error: on any SQLite failure.
    """
    cursor = await conn.execute("PRAGMA user_version;")
    row = await cursor.fetchone()
    current = int(row[0]) if row is not None else 0

    if current > SCHEMA_VERSION:
        raise SchemaVersionError(
            f"Catalog schema version {current} is newer than supported {SCHEMA_VERSION}."
        )

    for statement in _TABLES:
        await conn.execute(statement)
    for statement in _INDEXES:
        await conn.execute(statement)

    if current != SCHEMA_VERSION:
        await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()
