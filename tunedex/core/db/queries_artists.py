"""
Artist-related DB queries.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return ids or row dataclasses.
- Names are matched exactly (no case folding, no trimming).
- These functions assume `conn.row_factory = aiosqlite.Row`.
"""

from __future__ import annotations

import aiosqlite

from tunedex.core.db.models import ArtistId, ArtistRow


async def get_artist_id(conn: aiosqlite.Connection, name: str) -> ArtistId | None:
    cursor = await conn.execute("SELECT id FROM artists WHERE name = ?;", (name,))
    row = await cursor.fetchone()
    return ArtistId(int(row["id"])) if row is not None else None


async def get_artist(conn: aiosqlite.Connection, artist_id: int) -> ArtistRow | None:
    cursor = await conn.execute(
        "SELECT id, name FROM artists WHERE id = ?;",
        (int(artist_id),),
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    return ArtistRow(id=ArtistId(int(row["id"])), name=row["name"])


async def list_artists(conn: aiosqlite.Connection) -> list[ArtistRow]:
    cursor = await conn.execute("SELECT id, name FROM artists ORDER BY id ASC;")
    rows = await cursor.fetchall()
    return [ArtistRow(id=ArtistId(int(r["id"])), name=r["name"]) for r in rows]


async def artist_exists(conn: aiosqlite.Connection, artist_id: int) -> bool:
    cursor = await conn.execute(
        "SELECT EXISTS(SELECT 1 FROM artists WHERE id = ?) AS e;",
        (int(artist_id),),
    )
    row = await cursor.fetchone()
    return bool(row is not None and row["e"])


async def count_artists(conn: aiosqlite.Connection) -> int:
    cursor = await conn.execute("SELECT COUNT(*) AS c FROM artists;")
    row = await cursor.fetchone()
    return int(row["c"]) if row is not None else 0


async def insert_artist_or_ignore(conn: aiosqlite.Connection, name: str) -> bool:
    cursor = await conn.execute("INSERT OR IGNORE INTO artists (name) VALUES (?);", (name,))
    return cursor.rowcount > 0
