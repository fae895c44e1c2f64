from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path

from tunedex.core import CoreError
from tunedex.core.artwork import ArtCache
from tunedex.core.catalog_db import CatalogDb, canonicalize
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
from tunedex.core.extractor import load_metadata
from tunedex.core.scanner import iter_audio_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanResult:
    files_seen: int = 0
    tracks_added: int = 0
    tracks_known: int = 0
    failures: int = 0

    def __add__(self, other: ScanResult) -> ScanResult:
        return ScanResult(
            files_seen=self.files_seen + other.files_seen,
            tracks_added=self.tracks_added + other.tracks_added,
            tracks_known=self.tracks_known + other.tracks_known,
            failures=self.failures + other.failures,
        )


@dataclass
class ScanStatus:
    """Status of a running or completed background rebuild."""

    is_running: bool = False
    cancelled: bool = False
    progress: float = 0.0  # 0.0 to 1.0
    current_dir: str = ""
    dirs_total: int = 0
    dirs_done: int = 0
    files_seen: int = 0
    tracks_added: int = 0
    failures: int = 0
    last_result: ScanResult | None = None


class MusicLibraryError(CoreError, RuntimeError):
    """Base error for MusicLibrary operations."""


class MusicLibraryNotReadyError(MusicLibraryError):
    """Raised when operations are attempted before the library is initialized."""


class MusicLibrary:
    """
    High-level facade for the indexer.

    Owns the flow scanner -> tag extraction -> identity resolution -> metadata
    row -> art cache, and exposes the read API that UI layers consume.

    Dependencies (injected, never global):
    - `CatalogDb` for persistence and identity resolution
    - `ArtCache` for cover images
    """

    def __init__(self, *, db: CatalogDb, art_cache: ArtCache) -> None:
        self._db = db
        self._art_cache = art_cache
        self._initialized = False
        self._scan_status = ScanStatus()
        self._scan_task: asyncio.Task[ScanResult] | None = None

    @property
    def db(self) -> CatalogDb:
        return self._db

    @property
    def art_cache(self) -> ArtCache:
        return self._art_cache

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def scan_status(self) -> ScanStatus:
        return self._scan_status

    @property
    def is_scanning(self) -> bool:
        return self._scan_task is not None and not self._scan_task.done()

    async def initialize(self) -> None:
        """
        Open the catalog and ensure its schema.

        Exits the process if the catalog cannot be opened or created.
        """
        await self._db.initialize()
        self._initialized = True

    # ---- Indexing ----

    async def add_music_dir(self, path: str | Path) -> MusicDirId | None:
        """Register a music root without scanning it."""
        self._require_initialized()
        return await self._db.get_or_create_music_dir(path)

    async def add_track(self, path: str | Path, music_dir_id: int | None) -> TrackId | None:
        """
        Get or create a track. New tracks get their tags extracted right away.

        Known tracks are returned as-is: their metadata is not re-read even if
        the file's tags changed on disk.
        """
        self._require_initialized()
        resolved = await self._add_track(path, music_dir_id)
        return resolved[0] if resolved is not None else None

    async def _add_track(
        self, path: str | Path, music_dir_id: int | None
    ) -> tuple[TrackId, bool] | None:
        resolved = await self._db.get_or_create_track(path, music_dir_id)
        if resolved is None:
            return None
        track_id, created = resolved
        if created:
            metadata = await load_metadata(self._db, self._art_cache, track_id, path)
            if metadata is not None:
                await self._db.upsert_track_metadata(metadata)
        return resolved

    async def scan_directory(self, path: str | Path) -> ScanResult | None:
        """
        Register `path` as a music root and index every supported file under it.

        Returns None if `path` is not an existing directory. A file that cannot
        be indexed is counted as a failure; the walk carries on.
        """
        self._require_initialized()
        music_dir_id = await self._db.get_or_create_music_dir(path)
        if music_dir_id is None:
            return None
        root = canonicalize(path)
        if root is None:
            return None

        files_seen = 0
        tracks_added = 0
        tracks_known = 0
        failures = 0

        async for file_path in iter_audio_files(root):
            files_seen += 1
            self._scan_status.files_seen += 1
            try:
                resolved = await self._add_track(file_path, music_dir_id)
            except Exception as e:  # noqa: BLE001 - one bad file must not stop the walk
                logger.warning("Failed to index %s: %s: %s", file_path, type(e).__name__, e)
                resolved = None

            if resolved is None:
                failures += 1
                self._scan_status.failures += 1
                continue

            _track_id, created = resolved
            if created:
                tracks_added += 1
                self._scan_status.tracks_added += 1
                logger.info("%d - indexed: %s", tracks_added, file_path)
            else:
                tracks_known += 1

        result = ScanResult(
            files_seen=files_seen,
            tracks_added=tracks_added,
            tracks_known=tracks_known,
            failures=failures,
        )
        logger.info(
            "Scanned %s: %d files, %d new tracks, %d failures",
            root,
            files_seen,
            tracks_added,
            failures,
        )
        return result

    async def rebuild(self) -> ScanResult:
        """Rescan every registered music root, one after another, in registration order."""
        self._require_initialized()
        music_dirs = await self._db.list_music_dirs()
        self._scan_status.dirs_total = len(music_dirs)

        total = ScanResult()
        for i, music_dir in enumerate(music_dirs):
            self._scan_status.current_dir = music_dir.path
            self._scan_status.dirs_done = i
            self._scan_status.progress = i / len(music_dirs)
            logger.info("Scanning folder %d/%d: %s", i + 1, len(music_dirs), music_dir.path)

            result = await self.scan_directory(music_dir.path)
            if result is None:
                logger.warning("Registered folder is no longer a directory: %s", music_dir.path)
                continue
            total = total + result

        self._scan_status.dirs_done = len(music_dirs)
        self._scan_status.progress = 1.0
        return total

    # ---- Background rebuild ----

    async def start_rebuild(self) -> bool:
        """
        Start a background rebuild of all registered folders.

        Returns:
            True if the rebuild started, False if one is already running.
        """
        self._require_initialized()
        if self.is_scanning:
            logger.warning("Scan already in progress")
            return False

        self._scan_status = ScanStatus(is_running=True)
        self._scan_task = asyncio.create_task(self._run_rebuild())
        return True

    async def _run_rebuild(self) -> ScanResult:
        try:
            result = await self.rebuild()
            self._scan_status.last_result = result
            logger.info(
                "Rebuild complete: %d files, %d new tracks, %d failures",
                result.files_seen,
                result.tracks_added,
                result.failures,
            )
            return result
        except asyncio.CancelledError:
            self._scan_status.cancelled = True
            logger.info("Rebuild cancelled")
            raise
        finally:
            self._scan_status.is_running = False
            self._scan_status.current_dir = ""

    async def wait_for_scan(self) -> ScanResult | None:
        """Wait for the background rebuild, if any. None if it was cancelled."""
        if self._scan_task is None:
            return None
        try:
            return await self._scan_task
        except asyncio.CancelledError:
            return None

    async def cancel_scan(self) -> bool:
        """
        Cancel a running background rebuild.

        Tracks already indexed stay in the catalog; the next rebuild skips them.
        """
        if self._scan_task is None or self._scan_task.done():
            return False
        self._scan_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._scan_task
        # A task cancelled before its first step never reaches _run_rebuild's handlers.
        if self._scan_task.cancelled():
            self._scan_status.cancelled = True
            self._scan_status.is_running = False
        return True

    # ---- Removal ----

    async def remove_track(self, track_id: int) -> bool:
        self._require_initialized()
        return await self._db.remove_track(track_id)

    async def remove_music_dir(self, path: str | Path) -> bool:
        self._require_initialized()
        return await self._db.remove_music_dir(path)

    # ---- Read API ----

    async def get_music_dirs(self) -> list[MusicDirRow]:
        self._require_initialized()
        return await self._db.list_music_dirs()

    async def get_artists(self) -> list[ArtistRow]:
        self._require_initialized()
        return await self._db.list_artists()

    async def get_albums(self) -> list[AlbumRow]:
        self._require_initialized()
        return await self._db.list_albums()

    async def get_tracks(self) -> list[TrackRow]:
        self._require_initialized()
        return await self._db.list_tracks()

    async def get_artist(self, artist_id: ArtistId) -> ArtistRow | None:
        self._require_initialized()
        return await self._db.get_artist(artist_id)

    async def get_album(self, album_id: AlbumId) -> AlbumRow | None:
        self._require_initialized()
        return await self._db.get_album(album_id)

    async def get_track_metadata(self, track_id: TrackId) -> TrackMetadataRow | None:
        self._require_initialized()
        return await self._db.get_track_metadata(track_id)

    async def get_album_art(self, album_id: AlbumId) -> bytes | None:
        return await self._art_cache.get_artwork(album_id)

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise MusicLibraryNotReadyError(
                "MusicLibrary is not initialized. Call await MusicLibrary.initialize() first."
            )
