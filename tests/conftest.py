"""
Shared fixtures for the tunedex test suite.

Audio files are synthesized with mutagen:
- FLAC: a bare "fLaC" marker + STREAMINFO block, then Vorbis comments and
  pictures are added through mutagen and saved. There are no audio frames.
- MP3: an ID3v2 tag written into an otherwise empty file. The indexer reads
  the ID3 block directly, so no MPEG frames are needed.
"""

from __future__ import annotations

import struct
from collections.abc import Callable
from pathlib import Path

import pytest
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, ID3, TALB, TCON, TIT2, TPE1, TRCK

from tunedex.core.artwork import ArtCache
from tunedex.core.catalog_db import CatalogDb
from tunedex.core.library import MusicLibrary

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-png-payload"
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"fake-jpeg-payload"


def _streaminfo() -> bytes:
    """34-byte STREAMINFO: 44.1 kHz, stereo, 16 bit, 0 samples."""
    packed = (44100 << 44) | ((2 - 1) << 41) | ((16 - 1) << 36)
    return (
        struct.pack(">HH", 4096, 4096)
        + b"\x00" * 6  # min/max frame size
        + packed.to_bytes(8, "big")
        + b"\x00" * 16  # MD5
    )


def write_flac(
    path: Path,
    tags: dict[str, str] | None = None,
    picture: bytes | None = None,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # last-metadata-block flag set, block type 0 (STREAMINFO), length 34
    path.write_bytes(b"fLaC" + bytes([0x80, 0x00, 0x00, 0x22]) + _streaminfo())

    audio = FLAC(path)
    if tags is not None:
        audio.add_tags()
        for key, value in tags.items():
            audio[key] = value
    if picture is not None:
        pic = Picture()
        pic.type = 3
        pic.mime = "image/png"
        pic.desc = "Cover"
        pic.data = picture
        audio.add_picture(pic)
    audio.save()
    return path


def write_mp3(
    path: Path,
    *,
    title: str | None = None,
    artist: str | None = None,
    album: str | None = None,
    track: str | None = None,
    genre: str | None = None,
    picture: bytes | None = None,
    with_tag: bool = True,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    if not with_tag:
        path.write_bytes(b"\x00" * 128)
        return path

    tags = ID3()
    if title is not None:
        tags.add(TIT2(encoding=3, text=[title]))
    if artist is not None:
        tags.add(TPE1(encoding=3, text=[artist]))
    if album is not None:
        tags.add(TALB(encoding=3, text=[album]))
    if track is not None:
        tags.add(TRCK(encoding=3, text=[track]))
    if genre is not None:
        tags.add(TCON(encoding=3, text=[genre]))
    if picture is not None:
        tags.add(APIC(encoding=3, mime="image/jpeg", type=3, desc="Cover", data=picture))
    tags.save(path)
    return path


@pytest.fixture
def flac_file() -> Callable[..., Path]:
    return write_flac


@pytest.fixture
def mp3_file() -> Callable[..., Path]:
    return write_mp3


@pytest.fixture
async def db() -> CatalogDb:
    """An in-memory catalog with the schema in place."""
    db = CatalogDb(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def art_cache(tmp_path: Path) -> ArtCache:
    return ArtCache(tmp_path / "art")


@pytest.fixture
async def library(db: CatalogDb, art_cache: ArtCache) -> MusicLibrary:
    lib = MusicLibrary(db=db, art_cache=art_cache)
    await lib.initialize()
    return lib


@pytest.fixture
def music_dir(tmp_path: Path) -> Path:
    root = tmp_path / "music"
    root.mkdir()
    return root
