"""
HTTP surface for tunedex.

Exposes the catalog read API, the art cache, and the "settings" operations
(register a music root, rebuild the library) to UI clients over JSON/HTTP.
"""

from tunedex.web.server import WebServer

__all__ = ["WebServer"]
