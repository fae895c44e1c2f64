"""Route modules for the tunedex web server."""

from tunedex.web.routes.artwork import register_artwork_routes
from tunedex.web.routes.catalog import register_catalog_routes

__all__ = ["register_artwork_routes", "register_catalog_routes"]
