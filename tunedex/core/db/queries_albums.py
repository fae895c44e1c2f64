"""
Album-related DB queries.

Album identity is the (name, artist_id) pair. Lookups use `artist_id IS ?`
so that an artist-less album (NULL artist_id) matches itself; a plain `=`
comparison never matches NULL in SQL.

These functions assume `conn.row_factory = aiosqlite.Row`.
"""

from __future__ import annotations

import aiosqlite

from tunedex.core.db.models import AlbumId, AlbumRow, ArtistId


def _row_to_album(row: aiosqlite.Row) -> AlbumRow:
    artist_id = row["artist_id"]
    return AlbumRow(
        id=AlbumId(int(row["id"])),
        name=row["name"],
        artist_id=ArtistId(int(artist_id)) if artist_id is not None else None,
    )


async def get_album_id(
    conn: aiosqlite.Connection, name: str, artist_id: int | None
) -> AlbumId | None:
    cursor = await conn.execute(
        "SELECT id FROM albums WHERE name = ? AND artist_id IS ?;",
        (name, artist_id),
    )
    row = await cursor.fetchone()
    return AlbumId(int(row["id"])) if row is not None else None


async def get_album(conn: aiosqlite.Connection, album_id: int) -> AlbumRow | None:
    cursor = await conn.execute(
        "SELECT id, name, artist_id FROM albums WHERE id = ?;",
        (int(album_id),),
    )
    row = await cursor.fetchone()
    return _row_to_album(row) if row is not None else None


async def list_albums(conn: aiosqlite.Connection) -> list[AlbumRow]:
    cursor = await conn.execute("SELECT id, name, artist_id FROM albums ORDER BY id ASC;")
    rows = await cursor.fetchall()
    return [_row_to_album(r) for r in rows]


async def album_exists(conn: aiosqlite.Connection, album_id: int) -> bool:
    cursor = await conn.execute(
        "SELECT EXISTS(SELECT 1 FROM albums WHERE id = ?) AS e;",
        (int(album_id),),
    )
    row = await cursor.fetchone()
    return bool(row is not None and row["e"])


async def count_albums(conn: aiosqlite.Connection) -> int:
    cursor = await conn.execute("SELECT COUNT(*) AS c FROM albums;")
    row = await cursor.fetchone()
    return int(row["c"]) if row is not None else 0


async def insert_album_or_ignore(
    conn: aiosqlite.Connection, name: str, artist_id: int | None
) -> bool:
    cursor = await conn.execute(
        "INSERT OR IGNORE INTO albums (name, artist_id) VALUES (?, ?);",
        (name, artist_id),
    )
    return cursor.rowcount > 0
