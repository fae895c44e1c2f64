"""
Catalog Routes for tunedex.

Read endpoints:
- /api/status: catalog counters
- /api/dirs, /api/artists, /api/albums, /api/tracks: list-all
- /api/artists/{id}, /api/albums/{id}, /api/tracks/{id}/metadata: get-by-id

Settings endpoints (the only writes exposed to UI clients):
- POST /api/dirs: register a music root and index it
- DELETE /api/dirs/{id}, DELETE /api/tracks/{id}: explicit removal
- POST /api/rebuild, GET /api/scan/status, DELETE /api/scan: background rebuild
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException

from tunedex import __version__
from tunedex.web.helpers import to_dict

if TYPE_CHECKING:
    from tunedex.core.library import MusicLibrary

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])

# Reference set during route registration
_music_library: MusicLibrary | None = None


def register_catalog_routes(app, music_library: MusicLibrary) -> None:
    """
    Register catalog routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        music_library: MusicLibrary for browsing and indexing
    """
    global _music_library
    _music_library = music_library
    app.include_router(router)


def _library() -> MusicLibrary:
    if _music_library is None or not _music_library.initialized:
        raise HTTPException(status_code=503, detail="Library not initialized")
    return _music_library


# =============================================================================
# Status
# =============================================================================


@router.get("/api/status")
async def catalog_status() -> dict[str, Any]:
    """Catalog counters and scan state."""
    lib = _library()
    db = lib.db
    return {
        "server": "tunedex",
        "version": __version__,
        "music_dirs": await db.count_music_dirs(),
        "artists": await db.count_artists(),
        "albums": await db.count_albums(),
        "tracks": await db.count_tracks(),
        "scanning": lib.is_scanning,
    }


# =============================================================================
# Music directories
# =============================================================================


@router.get("/api/dirs")
async def list_music_dirs() -> dict[str, Any]:
    rows = await _library().get_music_dirs()
    return {"count": len(rows), "dirs": [to_dict(r) for r in rows]}


@router.post("/api/dirs")
async def add_music_dir(body: dict[str, Any]) -> dict[str, Any]:
    """Register a music root and scan it. Body: {"path": "/music"}."""
    lib = _library()
    if lib.is_scanning:
        raise HTTPException(status_code=409, detail="A rebuild is in progress")
    path = body.get("path")
    if not isinstance(path, str) or not path:
        raise HTTPException(status_code=400, detail="Missing 'path'")

    result = await lib.scan_directory(path)
    if result is None:
        raise HTTPException(status_code=400, detail="Path doesn't exist or is not a directory")

    music_dir_id = await lib.db.get_music_dir_id(path)
    return {"id": music_dir_id, "result": to_dict(result)}


@router.delete("/api/dirs/{music_dir_id}")
async def remove_music_dir(music_dir_id: int) -> dict[str, Any]:
    removed = await _library().db.remove_music_dir_by_id(music_dir_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Music directory not found")
    return {"removed": True}


# =============================================================================
# Rebuild
# =============================================================================


@router.post("/api/rebuild")
async def start_rebuild() -> dict[str, Any]:
    started = await _library().start_rebuild()
    return {"started": started}


@router.get("/api/scan/status")
async def scan_status() -> dict[str, Any]:
    return to_dict(_library().scan_status)


@router.delete("/api/scan")
async def cancel_scan() -> dict[str, Any]:
    cancelled = await _library().cancel_scan()
    return {"cancelled": cancelled}


# =============================================================================
# Artists / albums / tracks
# =============================================================================


@router.get("/api/artists")
async def list_artists() -> dict[str, Any]:
    rows = await _library().get_artists()
    return {"count": len(rows), "artists": [to_dict(r) for r in rows]}


@router.get("/api/artists/{artist_id}")
async def get_artist(artist_id: int) -> dict[str, Any]:
    row = await _library().get_artist(artist_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Artist not found")
    return to_dict(row)


@router.get("/api/albums")
async def list_albums() -> dict[str, Any]:
    rows = await _library().get_albums()
    return {"count": len(rows), "albums": [to_dict(r) for r in rows]}


@router.get("/api/albums/{album_id}")
async def get_album(album_id: int) -> dict[str, Any]:
    lib = _library()
    row = await lib.get_album(album_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Album not found")
    data = to_dict(row)
    data["has_artwork"] = lib.art_cache.has(album_id)
    return data


@router.get("/api/tracks")
async def list_tracks() -> dict[str, Any]:
    rows = await _library().get_tracks()
    return {"count": len(rows), "tracks": [to_dict(r) for r in rows]}


@router.get("/api/tracks/{track_id}/metadata")
async def get_track_metadata(track_id: int) -> dict[str, Any]:
    lib = _library()
    row = await lib.get_track_metadata(track_id)
    if row is None:
        if await lib.db.is_valid_track_id(track_id):
            raise HTTPException(status_code=404, detail="Track has no metadata")
        raise HTTPException(status_code=404, detail="Track not found")
    return to_dict(row)


@router.delete("/api/tracks/{track_id}")
async def remove_track(track_id: int) -> dict[str, Any]:
    removed = await _library().remove_track(track_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Track not found")
    return {"removed": True}
