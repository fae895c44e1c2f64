"""
Configuration management for tunedex.

The indexing core only needs two locations: the catalog database file and the
art cache directory. Both can come from a TOML file and be overridden on the
command line. The web surface adds a bind host and port.

Example `tunedex.toml`:

    [catalog]
    db_path = "~/.local/share/tunedex/catalog.db"
    art_cache_dir = "~/.cache/tunedex/art"

    [web]
    host = "127.0.0.1"
    port = 9100
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("tunedex.db")
DEFAULT_ART_CACHE_DIR = Path("art_cache")
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9100


@dataclass(frozen=True)
class CatalogConfig:
    """Locations and bind settings, resolved from file + CLI."""

    db_path: Path = DEFAULT_DB_PATH
    art_cache_dir: Path = DEFAULT_ART_CACHE_DIR
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def with_overrides(
        self,
        *,
        db_path: str | Path | None = None,
        art_cache_dir: str | Path | None = None,
        host: str | None = None,
        port: int | None = None,
    ) -> CatalogConfig:
        """Return a copy with every non-None argument applied."""
        changes: dict[str, Any] = {}
        if db_path is not None:
            changes["db_path"] = _expand(db_path)
        if art_cache_dir is not None:
            changes["art_cache_dir"] = _expand(art_cache_dir)
        if host is not None:
            changes["host"] = host
        if port is not None:
            changes["port"] = int(port)
        return replace(self, **changes)


def _expand(value: str | Path) -> Path:
    return Path(value).expanduser()


def load_config(config_path: Path | None = None) -> CatalogConfig:
    """
    Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML file. If None, defaults are returned.

    Returns:
        Loaded CatalogConfig instance. Keys missing from the file keep their
        defaults.
    """
    if config_path is None:
        return CatalogConfig()

    logger.debug("Loading config from %s", config_path)

    with Path(config_path).open("rb") as f:
        data = tomllib.load(f)

    catalog = data.get("catalog", {})
    web = data.get("web", {})

    return CatalogConfig().with_overrides(
        db_path=catalog.get("db_path"),
        art_cache_dir=catalog.get("art_cache_dir"),
        host=web.get("host"),
        port=web.get("port"),
    )
