"""
Music-directory DB queries.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return ids or row dataclasses.
- They never commit; transaction boundaries belong to `CatalogDb`.
- These functions assume `conn.row_factory = aiosqlite.Row`.
"""

from __future__ import annotations

import aiosqlite

from tunedex.core.db.models import MusicDirId, MusicDirRow


def _row_to_music_dir(row: aiosqlite.Row) -> MusicDirRow:
    return MusicDirRow(id=MusicDirId(int(row["id"])), path=str(row["path"]))


async def get_music_dir_id(conn: aiosqlite.Connection, path: str) -> MusicDirId | None:
    cursor = await conn.execute("SELECT id FROM music_dirs WHERE path = ?;", (path,))
    row = await cursor.fetchone()
    return MusicDirId(int(row["id"])) if row is not None else None


async def get_music_dir(conn: aiosqlite.Connection, music_dir_id: int) -> MusicDirRow | None:
    cursor = await conn.execute(
        "SELECT id, path FROM music_dirs WHERE id = ?;",
        (int(music_dir_id),),
    )
    row = await cursor.fetchone()
    return _row_to_music_dir(row) if row is not None else None


async def list_music_dirs(conn: aiosqlite.Connection) -> list[MusicDirRow]:
    """All registered roots, in registration (insertion) order."""
    cursor = await conn.execute("SELECT id, path FROM music_dirs ORDER BY id ASC;")
    rows = await cursor.fetchall()
    return [_row_to_music_dir(r) for r in rows]


async def music_dir_exists(conn: aiosqlite.Connection, music_dir_id: int) -> bool:
    cursor = await conn.execute(
        "SELECT EXISTS(SELECT 1 FROM music_dirs WHERE id = ?) AS e;",
        (int(music_dir_id),),
    )
    row = await cursor.fetchone()
    return bool(row is not None and row["e"])


async def count_music_dirs(conn: aiosqlite.Connection) -> int:
    cursor = await conn.execute("SELECT COUNT(*) AS c FROM music_dirs;")
    row = await cursor.fetchone()
    return int(row["c"]) if row is not None else 0


async def insert_music_dir_or_ignore(conn: aiosqlite.Connection, path: str) -> bool:
    """Insert a directory row; returns False if the path was already present."""
    cursor = await conn.execute("INSERT OR IGNORE INTO music_dirs (path) VALUES (?);", (path,))
    return cursor.rowcount > 0


async def delete_music_dir(conn: aiosqlite.Connection, music_dir_id: int) -> int:
    """
    Delete a directory together with its tracks and their metadata rows.

    Returns the number of track rows removed. Artists and albums are kept.
    """
    await conn.execute(
        """
        DELETE FROM track_metadata
        WHERE track_id IN (SELECT id FROM tracks WHERE music_dir_id = ?)
        """,
        (int(music_dir_id),),
    )
    cursor = await conn.execute(
        "DELETE FROM tracks WHERE music_dir_id = ?;",
        (int(music_dir_id),),
    )
    tracks_deleted = cursor.rowcount
    await conn.execute("DELETE FROM music_dirs WHERE id = ?;", (int(music_dir_id),))
    return tracks_deleted
