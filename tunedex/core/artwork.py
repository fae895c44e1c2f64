import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ArtCache:
    """
    Directory-backed store of album cover images, keyed by album id.

    Layout:
    - one file per album, named by the decimal album id, no extension
    - contents are the embedded picture bytes, written verbatim

    The cache is write-once per key: the first track of an album that carries a
    picture fills it, later tracks see the file and skip extraction. There is
    no eviction, size bound or checksum, and removing tracks or directories
    from the catalog leaves cached files in place.
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, album_id: int) -> Path:
        return self.cache_dir / str(int(album_id))

    def has(self, album_id: int) -> bool:
        return self.path_for(album_id).is_file()

    def read(self, album_id: int) -> Optional[bytes]:
        path = self.path_for(album_id)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def write_once(self, album_id: int, data: bytes) -> bool:
        """
        Store `data` for `album_id` unless an entry already exists.

        Returns True if this call created the file.
        """
        path = self.path_for(album_id)
        try:
            with path.open("xb") as f:
                f.write(data)
        except FileExistsError:
            return False
        logger.debug("Cached album art for album %d (%d bytes)", album_id, len(data))
        return True

    async def get_artwork(self, album_id: int) -> Optional[bytes]:
        """Async read for UI/web callers."""
        return await asyncio.to_thread(self.read, album_id)

    async def store(self, album_id: int, data: bytes) -> bool:
        return await asyncio.to_thread(self.write_once, album_id, data)

    def list_album_ids(self) -> list[int]:
        """Album ids with a cached image, sorted."""
        return sorted(int(p.name) for p in self.cache_dir.iterdir() if p.name.isdigit())

    def compute_etag(self, album_id: int) -> Optional[str]:
        """
        Compute an ETag for HTTP caching.

        Based on album id + mtime_ns + size of the cache file.
        """
        try:
            stat = self.path_for(album_id).stat()
        except OSError:
            return None
        key_data = f"{int(album_id)}|{stat.st_mtime_ns}|{stat.st_size}"
        return hashlib.md5(key_data.encode()).hexdigest()

    @staticmethod
    def detect_mime(data: bytes) -> str:
        """MIME type via magic bytes (the cache stores no MIME sidecar)."""
        if data.startswith(b"\xff\xd8\xff"):
            return "image/jpeg"
        elif data.startswith(b"\x89PNG\r\n\x1a\n"):
            return "image/png"
        elif data.startswith(b"GIF87a") or data.startswith(b"GIF89a"):
            return "image/gif"
        elif data.startswith(b"RIFF") and data[8:12] == b"WEBP":
            return "image/webp"
        else:
            # Default to JPEG as it's most common for album art
            return "image/jpeg"
