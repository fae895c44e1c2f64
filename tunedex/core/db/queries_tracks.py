"""
Track and track-metadata DB queries.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return ids or row dataclasses.
- Track listings LEFT JOIN `track_metadata`, so tracks without a metadata row
  are still returned (with `metadata=None`).
- These functions assume `conn.row_factory = aiosqlite.Row`.
"""

from __future__ import annotations

from typing import Any

import aiosqlite

from tunedex.core.db.models import (
    AlbumId,
    ArtistId,
    MusicDirId,
    TrackId,
    TrackMetadataRow,
    TrackRow,
)

_TRACK_SELECT = """
    SELECT
        t.id, t.path, t.music_dir_id,
        tm.track_id, tm.title, tm.track_number, tm.artist_id, tm.album_id
    FROM tracks t
    LEFT JOIN track_metadata tm ON tm.track_id = t.id
"""


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def _row_to_metadata(row: aiosqlite.Row) -> TrackMetadataRow:
    artist_id = _optional_int(row["artist_id"])
    album_id = _optional_int(row["album_id"])
    return TrackMetadataRow(
        track_id=TrackId(int(row["track_id"])),
        title=row["title"],
        track_number=_optional_int(row["track_number"]),
        artist_id=ArtistId(artist_id) if artist_id is not None else None,
        album_id=AlbumId(album_id) if album_id is not None else None,
    )


def _row_to_track(row: aiosqlite.Row) -> TrackRow:
    # track_id is NULL when the LEFT JOIN found no metadata row
    metadata = _row_to_metadata(row) if row["track_id"] is not None else None
    return TrackRow(
        id=TrackId(int(row["id"])),
        path=str(row["path"]),
        music_dir_id=MusicDirId(int(row["music_dir_id"])),
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Tracks
# ---------------------------------------------------------------------------


async def get_track_id(conn: aiosqlite.Connection, path: str) -> TrackId | None:
    cursor = await conn.execute("SELECT id FROM tracks WHERE path = ?;", (path,))
    row = await cursor.fetchone()
    return TrackId(int(row["id"])) if row is not None else None


async def get_track(conn: aiosqlite.Connection, track_id: int) -> TrackRow | None:
    cursor = await conn.execute(f"{_TRACK_SELECT} WHERE t.id = ?;", (int(track_id),))
    row = await cursor.fetchone()
    return _row_to_track(row) if row is not None else None


async def list_tracks(conn: aiosqlite.Connection) -> list[TrackRow]:
    cursor = await conn.execute(f"{_TRACK_SELECT} ORDER BY t.id ASC;")
    rows = await cursor.fetchall()
    return [_row_to_track(r) for r in rows]


async def list_track_ids_for_music_dir(
    conn: aiosqlite.Connection, music_dir_id: int
) -> list[TrackId]:
    cursor = await conn.execute(
        "SELECT id FROM tracks WHERE music_dir_id = ? ORDER BY id ASC;",
        (int(music_dir_id),),
    )
    rows = await cursor.fetchall()
    return [TrackId(int(r["id"])) for r in rows]


async def track_exists(conn: aiosqlite.Connection, track_id: int) -> bool:
    cursor = await conn.execute(
        "SELECT EXISTS(SELECT 1 FROM tracks WHERE id = ?) AS e;",
        (int(track_id),),
    )
    row = await cursor.fetchone()
    return bool(row is not None and row["e"])


async def count_tracks(conn: aiosqlite.Connection) -> int:
    cursor = await conn.execute("SELECT COUNT(*) AS c FROM tracks;")
    row = await cursor.fetchone()
    return int(row["c"]) if row is not None else 0


async def insert_track_or_ignore(
    conn: aiosqlite.Connection, path: str, music_dir_id: int
) -> bool:
    cursor = await conn.execute(
        "INSERT OR IGNORE INTO tracks (path, music_dir_id) VALUES (?, ?);",
        (path, int(music_dir_id)),
    )
    return cursor.rowcount > 0


async def delete_track(conn: aiosqlite.Connection, track_id: int) -> bool:
    """Delete a track and its metadata row. Returns False if the track did not exist."""
    await conn.execute("DELETE FROM track_metadata WHERE track_id = ?;", (int(track_id),))
    cursor = await conn.execute("DELETE FROM tracks WHERE id = ?;", (int(track_id),))
    return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Track metadata
# ---------------------------------------------------------------------------


async def get_track_metadata(
    conn: aiosqlite.Connection, track_id: int
) -> TrackMetadataRow | None:
    cursor = await conn.execute(
        """
        SELECT track_id, title, track_number, artist_id, album_id
        FROM track_metadata
        WHERE track_id = ?
        """,
        (int(track_id),),
    )
    row = await cursor.fetchone()
    return _row_to_metadata(row) if row is not None else None


async def count_track_metadata(conn: aiosqlite.Connection) -> int:
    cursor = await conn.execute("SELECT COUNT(*) AS c FROM track_metadata;")
    row = await cursor.fetchone()
    return int(row["c"]) if row is not None else 0


async def upsert_track_metadata(conn: aiosqlite.Connection, metadata: TrackMetadataRow) -> None:
    await conn.execute(
        """
        INSERT INTO track_metadata (track_id, title, track_number, artist_id, album_id)
        VALUES (:track_id, :title, :track_number, :artist_id, :album_id)
        ON CONFLICT(track_id) DO UPDATE SET
            title        = excluded.title,
            track_number = excluded.track_number,
            artist_id    = excluded.artist_id,
            album_id     = excluded.album_id
        """,
        {
            "track_id": int(metadata.track_id),
            "title": metadata.title,
            "track_number": metadata.track_number,
            "artist_id": metadata.artist_id,
            "album_id": metadata.album_id,
        },
    )
