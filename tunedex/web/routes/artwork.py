"""
Artwork Routes for tunedex.

Provides endpoints for serving cached album artwork:
- /api/artwork/album/{album_id}: cover image bytes for an album
- /api/artwork: album ids that currently have a cached image

Images are only ever served from the art cache; this layer never extracts
pictures from audio files itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Request, Response

if TYPE_CHECKING:
    from tunedex.core.artwork import ArtCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["artwork"])

# Reference set during route registration
_art_cache: ArtCache | None = None


def register_artwork_routes(app, art_cache: ArtCache) -> None:
    """
    Register artwork routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        art_cache: ArtCache holding extracted cover images
    """
    global _art_cache
    _art_cache = art_cache
    app.include_router(router)


@router.get("/api/artwork")
async def list_artwork() -> dict[str, Any]:
    if _art_cache is None:
        raise HTTPException(status_code=503, detail="Artwork service not initialized")
    album_ids = _art_cache.list_album_ids()
    return {"count": len(album_ids), "album_ids": album_ids}


@router.get("/api/artwork/album/{album_id}")
async def get_album_artwork(album_id: int, request: Request) -> Response:
    """
    Serve the cached cover image for an album.

    Supports HTTP caching via ETag/If-None-Match headers.
    """
    if _art_cache is None:
        raise HTTPException(status_code=503, detail="Artwork service not initialized")

    data = await _art_cache.get_artwork(album_id)
    if data is None:
        raise HTTPException(status_code=404, detail="No artwork available")

    etag = _art_cache.compute_etag(album_id)

    if_none_match = request.headers.get("if-none-match")
    if etag and if_none_match and if_none_match.strip('"') == etag:
        return Response(status_code=304)

    headers = {"Cache-Control": "public, max-age=86400"}
    if etag:
        headers["ETag"] = f'"{etag}"'

    return Response(
        content=data,
        media_type=_art_cache.detect_mime(data),
        headers=headers,
    )
