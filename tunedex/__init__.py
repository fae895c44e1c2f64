"""
tunedex - a local music catalog indexer.

tunedex walks music folders, reads FLAC / MP3 tags, keeps a normalized SQLite
catalog of directories, artists, albums and tracks, and caches embedded cover
art per album for UI clients.
"""

__version__ = "0.1.0"
__author__ = "tunedex contributors"
__license__ = "GPL-2.0"

from tunedex.core.library import MusicLibrary

__all__ = ["MusicLibrary", "__version__"]
