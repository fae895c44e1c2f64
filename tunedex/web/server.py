"""
Web Server Module for tunedex.

This module provides the WebServer class that creates and manages the
FastAPI application and registers the catalog and artwork routes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI

from tunedex import __version__
from tunedex.web.routes.artwork import register_artwork_routes
from tunedex.web.routes.catalog import register_catalog_routes

if TYPE_CHECKING:
    from tunedex.core.library import MusicLibrary

logger = logging.getLogger(__name__)


class WebServer:
    """
    FastAPI-based HTTP surface for UI clients.

    Serves the catalog read API, the art cache and the music-root settings
    operations. The server holds no state of its own; everything goes through
    the injected MusicLibrary.
    """

    def __init__(self, music_library: MusicLibrary) -> None:
        self.music_library = music_library

        self.app = FastAPI(
            title="tunedex",
            description="Local music catalog indexer",
            version=__version__,
        )

        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "tunedex"}

        register_catalog_routes(self.app, music_library=self.music_library)
        register_artwork_routes(self.app, art_cache=self.music_library.art_cache)

    async def serve(self, host: str = "127.0.0.1", port: int = 9100) -> None:
        """Serve in the foreground until uvicorn exits (e.g. on Ctrl+C)."""
        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        server = uvicorn.Server(config)
        logger.info("Serving on http://%s:%d", host, port)
        await server.serve()
