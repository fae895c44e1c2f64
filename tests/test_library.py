"""
Tests for tunedex.core.library, tunedex.core.scanner and tunedex.core.artwork.

These tests verify:
- Directory scans end to end (files -> tracks -> metadata -> art cache)
- Rescans are idempotent and never rewrite cached art
- Rebuild, background rebuild and cancellation
- Removal keeps artists, albums and cached art
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import JPEG_BYTES, PNG_BYTES
from tunedex.core.artwork import ArtCache
from tunedex.core.catalog_db import CatalogDb
from tunedex.core.library import (
    MusicLibrary,
    MusicLibraryNotReadyError,
    ScanResult,
)
from tunedex.core.scanner import is_supported_file, iter_audio_files

# =============================================================================
# Scanner
# =============================================================================


class TestScanner:
    async def test_iter_audio_files_filters_by_suffix(self, music_dir: Path) -> None:
        for name in ("a.flac", "b.mp3", "c.wav", "d.FLAC", "sub/e.mp3", "notes.txt"):
            p = music_dir / name
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(b"")
        (music_dir / "folder.mp3").mkdir()

        found = [p.relative_to(music_dir).as_posix() async for p in iter_audio_files(music_dir)]
        assert sorted(found) == ["a.flac", "b.mp3", "sub/e.mp3"]

    async def test_iter_audio_files_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            async for _ in iter_audio_files(tmp_path / "missing"):
                pass

    async def test_iter_audio_files_file_root(self, tmp_path: Path) -> None:
        f = tmp_path / "a.mp3"
        f.write_bytes(b"")
        with pytest.raises(NotADirectoryError):
            async for _ in iter_audio_files(f):
                pass

    def test_is_supported_file(self) -> None:
        assert is_supported_file("x.mp3")
        assert not is_supported_file("x.MP3")


# =============================================================================
# ArtCache
# =============================================================================


class TestArtCache:
    def test_write_once(self, art_cache: ArtCache) -> None:
        assert art_cache.write_once(3, PNG_BYTES)
        assert not art_cache.write_once(3, JPEG_BYTES)
        assert art_cache.read(3) == PNG_BYTES
        assert art_cache.path_for(3).name == "3"

    def test_missing_entry(self, art_cache: ArtCache) -> None:
        assert not art_cache.has(1)
        assert art_cache.read(1) is None
        assert art_cache.compute_etag(1) is None

    def test_list_album_ids(self, art_cache: ArtCache) -> None:
        art_cache.write_once(10, b"a")
        art_cache.write_once(2, b"b")
        (art_cache.cache_dir / "stray.tmp").write_bytes(b"")
        assert art_cache.list_album_ids() == [2, 10]

    def test_detect_mime(self) -> None:
        assert ArtCache.detect_mime(PNG_BYTES) == "image/png"
        assert ArtCache.detect_mime(JPEG_BYTES) == "image/jpeg"
        assert ArtCache.detect_mime(b"GIF89a....") == "image/gif"
        assert ArtCache.detect_mime(b"unknown") == "image/jpeg"

    async def test_async_wrappers(self, art_cache: ArtCache) -> None:
        assert await art_cache.store(5, b"data")
        assert not await art_cache.store(5, b"other")
        assert await art_cache.get_artwork(5) == b"data"


# =============================================================================
# MusicLibrary
# =============================================================================


@pytest.fixture
def populated_dir(music_dir: Path, flac_file, mp3_file) -> Path:
    """One FLAC and one MP3 on different albums, each with a picture, plus noise."""
    flac_file(
        music_dir / "Bonobo" / "01 Kerala.flac",
        {"title": "Kerala", "artist": "Bonobo", "album": "Migration", "tracknumber": "1"},
        picture=PNG_BYTES,
    )
    mp3_file(
        music_dir / "Burial" / "02 Archangel.mp3",
        title="Archangel",
        artist="Burial",
        album="Untrue",
        track="2/13",
        picture=JPEG_BYTES,
    )
    (music_dir / "ignored.wav").write_bytes(b"RIFF")
    (music_dir / "IGNORED.MP3").write_bytes(b"")
    return music_dir


class TestMusicLibrary:
    async def test_not_initialized(self, db: CatalogDb, art_cache: ArtCache) -> None:
        lib = MusicLibrary(db=db, art_cache=art_cache)
        assert not lib.initialized
        with pytest.raises(MusicLibraryNotReadyError):
            await lib.get_tracks()

    async def test_scan_directory(
        self, library: MusicLibrary, art_cache: ArtCache, populated_dir: Path
    ) -> None:
        result = await library.scan_directory(populated_dir)

        assert result == ScanResult(files_seen=2, tracks_added=2, tracks_known=0, failures=0)
        tracks = await library.get_tracks()
        assert sorted(t.title for t in tracks) == ["Archangel", "Kerala"]
        assert all(t.metadata is not None for t in tracks)

        albums = await library.get_albums()
        assert sorted(a.name for a in albums) == ["Migration", "Untrue"]
        assert art_cache.list_album_ids() == sorted(a.id for a in albums)

        by_name = {a.name: a.id for a in albums}
        assert await library.get_album_art(by_name["Migration"]) == PNG_BYTES
        assert await library.get_album_art(by_name["Untrue"]) == JPEG_BYTES

    async def test_rescan_is_idempotent(
        self, library: MusicLibrary, art_cache: ArtCache, populated_dir: Path
    ) -> None:
        await library.scan_directory(populated_dir)
        tracks_before = await library.get_tracks()
        art_before = {
            album_id: (art_cache.path_for(album_id).stat().st_mtime_ns, art_cache.read(album_id))
            for album_id in art_cache.list_album_ids()
        }

        result = await library.scan_directory(populated_dir)

        assert result.tracks_added == 0
        assert result.tracks_known == 2
        assert await library.get_tracks() == tracks_before
        assert await library.db.count_music_dirs() == 1
        art_after = {
            album_id: (art_cache.path_for(album_id).stat().st_mtime_ns, art_cache.read(album_id))
            for album_id in art_cache.list_album_ids()
        }
        assert art_after == art_before

    async def test_one_art_file_per_album(
        self, library: MusicLibrary, art_cache: ArtCache, music_dir: Path, flac_file, mp3_file
    ) -> None:
        tags = {"artist": "Boards of Canada", "album": "Geogaddi"}
        flac_file(music_dir / "1.flac", {**tags, "title": "Ready Lets Go"}, picture=PNG_BYTES)
        mp3_file(music_dir / "2.mp3", title="Music Is Math", picture=JPEG_BYTES, **tags)

        await library.scan_directory(music_dir)

        albums = await library.get_albums()
        assert len(albums) == 1
        assert art_cache.list_album_ids() == [albums[0].id]
        assert art_cache.read(albums[0].id) in (PNG_BYTES, JPEG_BYTES)

    async def test_untagged_file_is_catalogued_without_metadata(
        self, library: MusicLibrary, music_dir: Path, mp3_file
    ) -> None:
        mp3_file(music_dir / "untagged.mp3", with_tag=False)
        result = await library.scan_directory(music_dir)

        assert result.tracks_added == 1
        [track] = await library.get_tracks()
        assert track.metadata is None

    async def test_scan_missing_directory(self, library: MusicLibrary, tmp_path: Path) -> None:
        assert await library.scan_directory(tmp_path / "missing") is None
        assert await library.get_music_dirs() == []

    async def test_add_track_does_not_reextract(
        self, library: MusicLibrary, music_dir: Path, mp3_file
    ) -> None:
        dir_id = await library.add_music_dir(music_dir)
        path = mp3_file(music_dir / "a.mp3", title="Before")
        track_id = await library.add_track(path, dir_id)

        mp3_file(path, title="After")
        assert await library.add_track(path, dir_id) == track_id

        meta = await library.get_track_metadata(track_id)
        assert meta.title == "Before"

    async def test_add_track_unknown_dir(
        self, library: MusicLibrary, music_dir: Path, mp3_file
    ) -> None:
        path = mp3_file(music_dir / "a.mp3", title="x")
        assert await library.add_track(path, 99) is None

    async def test_rebuild_scans_all_dirs(
        self, library: MusicLibrary, tmp_path: Path, mp3_file
    ) -> None:
        first = tmp_path / "first"
        second = tmp_path / "second"
        mp3_file(first / "a.mp3", title="A")
        mp3_file(second / "b.mp3", title="B")
        await library.add_music_dir(first)
        await library.add_music_dir(second)

        result = await library.rebuild()

        assert result.tracks_added == 2
        assert library.scan_status.dirs_done == 2
        assert library.scan_status.progress == 1.0
        assert {t.title for t in await library.get_tracks()} == {"A", "B"}

    async def test_rebuild_skips_vanished_dir(
        self, library: MusicLibrary, tmp_path: Path, mp3_file
    ) -> None:
        gone = tmp_path / "gone"
        gone.mkdir()
        kept = tmp_path / "kept"
        mp3_file(kept / "a.mp3", title="A")
        await library.add_music_dir(gone)
        await library.add_music_dir(kept)
        gone.rmdir()

        result = await library.rebuild()
        assert result.tracks_added == 1

    async def test_remove_music_dir_keeps_art(
        self, library: MusicLibrary, art_cache: ArtCache, populated_dir: Path
    ) -> None:
        await library.scan_directory(populated_dir)
        cached = art_cache.list_album_ids()

        assert await library.remove_music_dir(populated_dir)

        assert await library.get_tracks() == []
        assert len(await library.get_artists()) == 2
        assert len(await library.get_albums()) == 2
        assert art_cache.list_album_ids() == cached

    async def test_remove_track(self, library: MusicLibrary, populated_dir: Path) -> None:
        await library.scan_directory(populated_dir)
        [first, second] = await library.get_tracks()
        assert await library.remove_track(first.id)
        assert [t.id for t in await library.get_tracks()] == [second.id]


class TestBackgroundRebuild:
    async def test_start_and_wait(self, library: MusicLibrary, populated_dir: Path) -> None:
        await library.add_music_dir(populated_dir)

        assert await library.start_rebuild()
        result = await library.wait_for_scan()

        assert result is not None
        assert result.tracks_added == 2
        status = library.scan_status
        assert not status.is_running
        assert not status.cancelled
        assert status.last_result == result
        assert not library.is_scanning

    async def test_only_one_rebuild_at_a_time(
        self, library: MusicLibrary, populated_dir: Path
    ) -> None:
        await library.add_music_dir(populated_dir)
        assert await library.start_rebuild()
        assert not await library.start_rebuild()
        await library.wait_for_scan()

    async def test_cancel(self, library: MusicLibrary, populated_dir: Path) -> None:
        await library.add_music_dir(populated_dir)
        await library.start_rebuild()

        assert await library.cancel_scan()
        assert await library.wait_for_scan() is None
        assert library.scan_status.cancelled
        assert not library.scan_status.is_running

        # Whatever was indexed before the cancel is kept; a new rebuild finishes the job.
        await library.start_rebuild()
        await library.wait_for_scan()
        assert len(await library.get_tracks()) == 2

    async def test_cancel_when_idle(self, library: MusicLibrary) -> None:
        assert not await library.cancel_scan()
        assert await library.wait_for_scan() is None

    async def test_read_api_during_rebuild(
        self, library: MusicLibrary, populated_dir: Path
    ) -> None:
        await library.add_music_dir(populated_dir)
        await library.start_rebuild()
        # Reads interleave with the rebuild on the same connection.
        await asyncio.gather(library.get_tracks(), library.get_albums())
        await library.wait_for_scan()
