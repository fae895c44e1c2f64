"""
Tag extraction: turn a file's container tags into a catalog metadata row.

`load_metadata` resolves artist/album names to ids through the catalog (creating
rows as needed) and, as a side effect, fills the art cache for the album the
first time a picture for it is seen.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from tunedex.core.artwork import ArtCache
from tunedex.core.catalog_db import CatalogDb
from tunedex.core.db.models import TrackId, TrackMetadataRow
from tunedex.core.tags import container_for

logger = logging.getLogger(__name__)


async def load_metadata(
    db: CatalogDb,
    art_cache: ArtCache,
    track_id: TrackId,
    path: str | Path,
) -> TrackMetadataRow | None:
    """
    Build the metadata row for an already-catalogued track.

    Returns None if the track id is unknown, the format is unsupported, the
    file has no readable tag block, or every tag field is empty.

    Field rules:
    - title falls back to the file name without its extension
    - a track number of 0 (or anything unparsable) is stored as absent
    - artist/album are only resolved when non-empty; the album is keyed by the
      artist id resolved for this same file
    """
    if not await db.is_valid_track_id(track_id):
        return None

    path = Path(path)
    container = container_for(path)
    if container is None:
        return None

    raw = await asyncio.to_thread(container.read_tags, path)
    if raw is None or raw.is_empty:
        logger.debug("No usable tags in %s", path)
        return None

    title = raw.title or path.stem

    track_number = raw.track_number
    if track_number is not None and track_number <= 0:
        track_number = None

    artist_id = await db.get_or_create_artist(raw.artist) if raw.artist else None
    album_id = await db.get_or_create_album(raw.album, artist_id) if raw.album else None

    if album_id is not None and not art_cache.has(album_id):
        picture = await asyncio.to_thread(container.read_picture, path)
        if picture:
            await art_cache.store(album_id, picture)

    return TrackMetadataRow(
        track_id=track_id,
        title=title,
        track_number=track_number,
        artist_id=artist_id,
        album_id=album_id,
    )
