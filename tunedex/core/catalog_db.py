"""
Music catalog database: connection, schema bootstrap, identity resolution and
read access.

Goals:
- SQLite + aiosqlite, async/await friendly.
- One connection per `CatalogDb`. aiosqlite runs every statement on that
  connection's worker thread, so all writes are serialized through it.
- Every write is its own unit of work (committed immediately). A scan that is
  interrupted leaves a valid, partially populated catalog.

Failure policy:
- Opening the store or creating the schema failing is fatal (`SystemExit`).
- Everything else reports bad input by returning None / False.

Note:
- Models/DTOs live in `tunedex.core.db.models`
- Schema lives in `tunedex.core.db.schema`
- Query functions live in `tunedex.core.db.queries_*` modules
- `CatalogDb` is the public facade used by the rest of the codebase
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from tunedex.core import CatalogNotOpenError
from tunedex.core.db import queries_albums, queries_artists, queries_dirs, queries_tracks
from tunedex.core.db.models import (
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
from tunedex.core.db.schema import SchemaVersionError
from tunedex.core.db.schema import ensure_schema as ensure_schema_sql

logger = logging.getLogger(__name__)


def canonicalize(path: str | Path, *, strict: bool = True) -> Path | None:
    """
    Return the absolute, symlink-resolved form of `path`.

    With `strict=True` the path must exist; None is returned otherwise.
    """
    try:
        return Path(path).resolve(strict=strict)
    except (OSError, RuntimeError):
        # RuntimeError: symlink loop
        return None


def _canonical_dir(path: str | Path) -> str | None:
    resolved = canonicalize(path)
    if resolved is None or not resolved.is_dir():
        return None
    return str(resolved)


def _canonical_file(path: str | Path) -> str | None:
    resolved = canonicalize(path)
    if resolved is None or not resolved.is_file():
        return None
    return str(resolved)


class CatalogDb:
    """
    Async access layer for the catalog.

    Usage:
        db = CatalogDb("tunedex.db")
        await db.initialize()   # open + schema, exits the process on failure
        ... resolver / queries ...
        await db.close()

    Notes:
    - This class is designed to be injected into other components.
    - The handle is passed explicitly; there is no module-level connection.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        if self._conn is not None:
            return
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA foreign_keys = ON;")

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise CatalogNotOpenError("CatalogDb is not open. Call await db.open() first.")
        return self._conn

    async def ensure_schema(self) -> None:
        """Create the catalog tables (idempotent). Errors propagate."""
        await ensure_schema_sql(self._require_conn())

    async def initialize(self) -> None:
        """
        Open the store and make sure the schema exists.

        This is the one unrecoverable operation: without a valid catalog nothing
        else can work, so any failure is logged and the process exits.
        """
        try:
            await self.open()
            await self.ensure_schema()
        except (aiosqlite.Error, SchemaVersionError, OSError) as e:
            logger.critical("Error initialising the catalog at %s: %s", self._db_path, e)
            logger.critical(
                "Code: %s (%s)",
                getattr(e, "sqlite_errorcode", None),
                getattr(e, "sqlite_errorname", type(e).__name__),
            )
            await self._abandon_connection()
            raise SystemExit(1) from e
        logger.debug("Catalog ready at %s", self._db_path)

    async def _abandon_connection(self) -> None:
        """Close a half-opened connection so its worker thread does not outlive the exit."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.close()
        except aiosqlite.Error as e:
            logger.critical("Error closing the catalog at %s: %s", self._db_path, e)

    # ===========================================================================
    # Identity resolver: get-or-create
    # ===========================================================================
    #
    # All of these are read -> INSERT OR IGNORE -> read. If another writer wins
    # the insert, the unique constraint drops ours and the second read returns
    # the winner's id.

    async def get_or_create_music_dir(self, path: str | Path) -> MusicDirId | None:
        """Register a music root by canonical path. None if it is not a directory."""
        conn = self._require_conn()
        canonical = _canonical_dir(path)
        if canonical is None:
            logger.warning("Path doesn't exist or is not a directory: %s", path)
            return None

        existing = await queries_dirs.get_music_dir_id(conn, canonical)
        if existing is not None:
            return existing

        if await queries_dirs.insert_music_dir_or_ignore(conn, canonical):
            logger.info("Registered music directory: %s", canonical)
        await conn.commit()
        return await queries_dirs.get_music_dir_id(conn, canonical)

    async def get_or_create_artist(self, name: str) -> ArtistId | None:
        """Get or create an artist by exact name."""
        conn = self._require_conn()
        if not name:
            return None

        existing = await queries_artists.get_artist_id(conn, name)
        if existing is not None:
            return existing

        await queries_artists.insert_artist_or_ignore(conn, name)
        await conn.commit()
        return await queries_artists.get_artist_id(conn, name)

    async def get_or_create_album(
        self, name: str, artist_id: int | None = None
    ) -> AlbumId | None:
        """
        Get or create an album keyed by (name, artist_id).

        Returns None without creating anything when `artist_id` is given but
        does not reference an existing artist.
        """
        conn = self._require_conn()
        if not name:
            return None
        if artist_id is not None and not await queries_artists.artist_exists(conn, artist_id):
            logger.warning("Refusing album %r for unknown artist id %s", name, artist_id)
            return None

        existing = await queries_albums.get_album_id(conn, name, artist_id)
        if existing is not None:
            return existing

        await queries_albums.insert_album_or_ignore(conn, name, artist_id)
        await conn.commit()
        return await queries_albums.get_album_id(conn, name, artist_id)

    async def get_or_create_track(
        self, path: str | Path, music_dir_id: int | None
    ) -> tuple[TrackId, bool] | None:
        """
        Get or create a track row by canonical file path.

        Returns (track_id, created) or None if the directory id is unknown or
        the path is not an existing regular file. This only manages the row;
        tag extraction on first creation is driven by `MusicLibrary.add_track`.
        """
        conn = self._require_conn()
        if music_dir_id is None or not await queries_dirs.music_dir_exists(conn, music_dir_id):
            logger.warning("Unknown music directory id %s for %s", music_dir_id, path)
            return None

        canonical = _canonical_file(path)
        if canonical is None:
            logger.warning("Path doesn't exist or is not a regular file: %s", path)
            return None

        existing = await queries_tracks.get_track_id(conn, canonical)
        if existing is not None:
            return existing, False

        created = await queries_tracks.insert_track_or_ignore(conn, canonical, music_dir_id)
        await conn.commit()
        track_id = await queries_tracks.get_track_id(conn, canonical)
        if track_id is None:
            raise RuntimeError(f"Track row for {canonical} not found after insert.")
        return track_id, created

    async def upsert_track_metadata(self, metadata: TrackMetadataRow) -> TrackId:
        """Insert or replace the metadata row of an existing track."""
        conn = self._require_conn()
        await queries_tracks.upsert_track_metadata(conn, metadata)
        await conn.commit()
        return metadata.track_id

    # ===========================================================================
    # Identity resolver: lookups / existence checks
    # ===========================================================================

    async def get_music_dir_id(self, path: str | Path) -> MusicDirId | None:
        resolved = canonicalize(path, strict=False)
        if resolved is None:
            return None
        return await queries_dirs.get_music_dir_id(self._require_conn(), str(resolved))

    async def get_artist_id(self, name: str) -> ArtistId | None:
        return await queries_artists.get_artist_id(self._require_conn(), name)

    async def get_album_id(self, name: str, artist_id: int | None = None) -> AlbumId | None:
        return await queries_albums.get_album_id(self._require_conn(), name, artist_id)

    async def get_track_id(self, path: str | Path) -> TrackId | None:
        resolved = canonicalize(path, strict=False)
        if resolved is None:
            return None
        return await queries_tracks.get_track_id(self._require_conn(), str(resolved))

    async def is_valid_music_dir_id(self, music_dir_id: int) -> bool:
        return await queries_dirs.music_dir_exists(self._require_conn(), music_dir_id)

    async def is_valid_artist_id(self, artist_id: int) -> bool:
        return await queries_artists.artist_exists(self._require_conn(), artist_id)

    async def is_valid_album_id(self, album_id: int) -> bool:
        return await queries_albums.album_exists(self._require_conn(), album_id)

    async def is_valid_track_id(self, track_id: int) -> bool:
        return await queries_tracks.track_exists(self._require_conn(), track_id)

    # ===========================================================================
    # Read API (consumed by UI layers)
    # ===========================================================================

    async def list_music_dirs(self) -> list[MusicDirRow]:
        return await queries_dirs.list_music_dirs(self._require_conn())

    async def list_artists(self) -> list[ArtistRow]:
        return await queries_artists.list_artists(self._require_conn())

    async def list_albums(self) -> list[AlbumRow]:
        return await queries_albums.list_albums(self._require_conn())

    async def list_tracks(self) -> list[TrackRow]:
        """All tracks, including those without a metadata row."""
        return await queries_tracks.list_tracks(self._require_conn())

    async def list_track_ids_for_music_dir(self, music_dir_id: int) -> list[TrackId]:
        return await queries_tracks.list_track_ids_for_music_dir(
            self._require_conn(), music_dir_id
        )

    async def get_music_dir(self, music_dir_id: int) -> MusicDirRow | None:
        return await queries_dirs.get_music_dir(self._require_conn(), music_dir_id)

    async def get_artist(self, artist_id: int) -> ArtistRow | None:
        return await queries_artists.get_artist(self._require_conn(), artist_id)

    async def get_album(self, album_id: int) -> AlbumRow | None:
        return await queries_albums.get_album(self._require_conn(), album_id)

    async def get_track(self, track_id: int) -> TrackRow | None:
        return await queries_tracks.get_track(self._require_conn(), track_id)

    async def get_track_metadata(self, track_id: int) -> TrackMetadataRow | None:
        return await queries_tracks.get_track_metadata(self._require_conn(), track_id)

    async def count_music_dirs(self) -> int:
        return await queries_dirs.count_music_dirs(self._require_conn())

    async def count_artists(self) -> int:
        return await queries_artists.count_artists(self._require_conn())

    async def count_albums(self) -> int:
        return await queries_albums.count_albums(self._require_conn())

    async def count_tracks(self) -> int:
        return await queries_tracks.count_tracks(self._require_conn())

    async def count_track_metadata(self) -> int:
        return await queries_tracks.count_track_metadata(self._require_conn())

    # ===========================================================================
    # Removal
    # ===========================================================================
    #
    # Artists, albums and cached art are never cleaned up here; they outlive
    # the tracks that referenced them.

    async def remove_track(self, track_id: int) -> bool:
        conn = self._require_conn()
        removed = await queries_tracks.delete_track(conn, track_id)
        await conn.commit()
        if removed:
            logger.info("Removed track %d", track_id)
        return removed

    async def remove_music_dir_by_id(self, music_dir_id: int) -> bool:
        conn = self._require_conn()
        if not await queries_dirs.music_dir_exists(conn, music_dir_id):
            return False
        tracks_deleted = await queries_dirs.delete_music_dir(conn, music_dir_id)
        await conn.commit()
        logger.info("Removed music directory %d (%d tracks)", music_dir_id, tracks_deleted)
        return True

    async def remove_music_dir(self, path: str | Path) -> bool:
        """Remove a registered root, its tracks and their metadata."""
        music_dir_id = await self.get_music_dir_id(path)
        if music_dir_id is None:
            logger.warning("Trying to remove a path that isn't registered: %s", path)
            return False
        return await self.remove_music_dir_by_id(music_dir_id)
