"""
Container-format tag and picture reading.

Each supported container is one `AudioContainer` variant that knows how to read
the four catalog fields (title, track number, artist, album) and the first
embedded picture from files of its format. The registry below is the single
place that decides which file suffixes the indexer accepts.

Everything here is synchronous (mutagen does blocking file I/O); async callers
run these functions through `asyncio.to_thread`. Files are only ever opened for
reading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mutagen import MutagenError
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RawTags:
    """
    Tag fields as read from the container, before identity resolution.

    Only title, artist, album and track number end up in the catalog. Genre,
    year and comment are read so that a tag block carrying nothing but those
    still counts as present.
    """

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    track_number: int | None = None
    genre: str | None = None
    year: int | None = None
    comment: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.title
            or self.artist
            or self.album
            or self.track_number
            or self.genre
            or self.year
            or self.comment
        )


def _clean_str(value: str | None) -> str | None:
    # Text is kept byte-for-byte; only an empty string counts as missing.
    if not value:
        return None
    return value


def _first_text(value: Any) -> str | None:
    """
    Mutagen returns different shapes depending on container/tag type:
    - ID3 frames (with a `.text` list)
    - Vorbis comment lists of strings
    - plain strings
    We reduce to a single string (first item if multiple), without trimming.
    """
    if value is None:
        return None

    if isinstance(value, (list, tuple)):
        if not value:
            return None
        return _first_text(value[0])

    text = getattr(value, "text", None)
    if text is not None:
        return _first_text(text)

    return _clean_str(str(value))


def _parse_int_maybe(value: Any) -> int | None:
    """
    Parse things like:
    - "3"
    - "3/12"
    - ["3/12"]
    - mutagen frame objects
    """
    s = _first_text(value)
    if not s:
        return None

    if "/" in s:
        s = s.split("/", 1)[0]

    try:
        return int(s)
    except ValueError:
        return None


def _parse_year_maybe(value: Any) -> int | None:
    """
    Accept "1999" or "1999-01-01" or "1999/.." formats.
    """
    s = _first_text(value)
    if not s:
        return None

    for i in range(0, max(0, len(s) - 3)):
        chunk = s[i : i + 4]
        if chunk.isdigit():
            year = int(chunk)
            if 1000 <= year <= 3000:
                return year
    return None


class AudioContainer:
    """One audio container format the indexer can read."""

    name: str = ""
    extensions: tuple[str, ...] = ()

    def read_tags(self, path: Path) -> RawTags | None:
        """Return the tag fields, or None if the file has no readable tag block."""
        raise NotImplementedError

    def read_picture(self, path: Path) -> bytes | None:
        """Return the raw bytes of the first embedded picture, if any."""
        raise NotImplementedError


class FlacContainer(AudioContainer):
    """FLAC: Vorbis comment block for tags, METADATA_BLOCK_PICTURE list for art."""

    name = "flac"
    extensions = (".flac",)

    @staticmethod
    def _open(path: Path) -> FLAC | None:
        try:
            return FLAC(path)
        except (MutagenError, OSError) as e:
            logger.debug("Unreadable FLAC file %s: %s", path, e)
            return None

    def read_tags(self, path: Path) -> RawTags | None:
        audio = self._open(path)
        if audio is None or audio.tags is None:
            return None
        tags = audio.tags
        return RawTags(
            title=_first_text(tags.get("title")),
            artist=_first_text(tags.get("artist")),
            album=_first_text(tags.get("album")),
            track_number=_parse_int_maybe(tags.get("tracknumber")),
            genre=_first_text(tags.get("genre")),
            year=_parse_year_maybe(tags.get("date")),
            comment=_first_text(tags.get("comment") or tags.get("description")),
        )

    def read_picture(self, path: Path) -> bytes | None:
        audio = self._open(path)
        if audio is None or not audio.pictures:
            return None
        return bytes(audio.pictures[0].data)


class Mp3Container(AudioContainer):
    """
    MP3: ID3v2 tag block.

    We read the ID3 tag directly rather than through `mutagen.mp3.MP3`, so the
    MPEG audio stream does not need to be parseable to index the tags.
    """

    name = "mp3"
    extensions = (".mp3",)

    @staticmethod
    def _open(path: Path) -> ID3 | None:
        try:
            return ID3(path)
        except ID3NoHeaderError:
            return None
        except (MutagenError, OSError) as e:
            logger.debug("Unreadable ID3 tag in %s: %s", path, e)
            return None

    def read_tags(self, path: Path) -> RawTags | None:
        tags = self._open(path)
        if tags is None:
            return None
        return RawTags(
            title=_first_text(tags.get("TIT2")),
            artist=_first_text(tags.get("TPE1")),
            album=_first_text(tags.get("TALB")),
            track_number=_parse_int_maybe(tags.get("TRCK")),
            genre=_first_text(tags.get("TCON")),
            year=_parse_year_maybe(tags.get("TDRC") or tags.get("TYER")),
            comment=_first_text(tags.getall("COMM")),
        )

    def read_picture(self, path: Path) -> bytes | None:
        tags = self._open(path)
        if tags is None:
            return None
        frames = tags.getall("APIC")
        if not frames:
            return None
        return bytes(frames[0].data)


CONTAINERS: tuple[AudioContainer, ...] = (FlacContainer(), Mp3Container())

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
    ext for container in CONTAINERS for ext in container.extensions
)


def container_for(path: str | Path) -> AudioContainer | None:
    """
    Pick the container variant for a file name.

    Matching is an exact, case-sensitive suffix match: "song.FLAC" is not
    indexed.
    """
    name = str(path)
    for container in CONTAINERS:
        if any(name.endswith(ext) for ext in container.extensions):
            return container
    return None
