from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path

from tunedex.core.tags import SUPPORTED_EXTENSIONS, container_for

logger = logging.getLogger(__name__)

__all__ = ["SUPPORTED_EXTENSIONS", "is_supported_file", "iter_audio_files"]


def is_supported_file(path: str | Path) -> bool:
    """True if the file name ends with a supported extension (case-sensitive)."""
    return container_for(path) is not None


async def iter_audio_files(root: Path) -> AsyncIterator[Path]:
    """
    Asynchronously yields supported audio files under `root`.

    Implementation notes:
    - We collect file paths in a thread to avoid blocking the event loop on large trees.
    - Order is whatever the filesystem walk produces; callers must not rely on it.
    - Only regular files are yielded; directories are walked, not followed through symlinks.
    """
    if not root.exists():
        raise FileNotFoundError(root)
    if not root.is_dir():
        raise NotADirectoryError(root)

    def _walk() -> list[Path]:
        paths: list[Path] = []
        for p in root.rglob("*"):
            try:
                if not p.is_file():
                    continue
            except OSError:
                # Ignore broken permissions/paths during walk.
                continue
            if is_supported_file(p):
                paths.append(p)
        return paths

    paths = await asyncio.to_thread(_walk)
    logger.debug("Found %d candidate files under %s", len(paths), root)
    for p in paths:
        yield p
