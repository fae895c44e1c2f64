"""
tunedex - Entry Point

Run with: python -m tunedex [options] <command>
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from tunedex import __version__
from tunedex.config import CatalogConfig, load_config
from tunedex.core.artwork import ArtCache
from tunedex.core.catalog_db import CatalogDb
from tunedex.core.library import MusicLibrary

logger = logging.getLogger("tunedex")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("mutagen").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tunedex",
        description="tunedex - index local FLAC/MP3 files into a SQLite catalog",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML config file",
    )
    parser.add_argument("--db", type=str, default=None, help="Catalog database file")
    parser.add_argument("--art-cache", type=str, default=None, help="Album art cache directory")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Register a music folder and index it")
    add.add_argument("path", type=str)

    sub.add_parser("rebuild", help="Rescan every registered music folder")

    remove_dir = sub.add_parser("remove-dir", help="Remove a music folder and its tracks")
    remove_dir.add_argument("path", type=str)

    remove_track = sub.add_parser("remove-track", help="Remove a single track by id")
    remove_track.add_argument("track_id", type=int)

    list_cmd = sub.add_parser("list", help="List catalog entries")
    list_cmd.add_argument("what", choices=("dirs", "artists", "albums", "tracks"))

    serve = sub.add_parser("serve", help="Serve the catalog over HTTP")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("-p", "--port", type=int, default=None)

    return parser


def resolve_config(args: argparse.Namespace) -> CatalogConfig:
    config = load_config(args.config)
    return config.with_overrides(
        db_path=args.db,
        art_cache_dir=args.art_cache,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
    )


async def _list(library: MusicLibrary, what: str) -> None:
    if what == "dirs":
        for d in await library.get_music_dirs():
            print(f"{d.id}\t{d.path}")
    elif what == "artists":
        for a in await library.get_artists():
            print(f"{a.id}\t{a.name}")
    elif what == "albums":
        for al in await library.get_albums():
            artist = "" if al.artist_id is None else str(al.artist_id)
            print(f"{al.id}\t{al.name}\t{artist}")
    else:
        for t in await library.get_tracks():
            title = t.title if t.title is not None else "-"
            print(f"{t.id}\t{title}\t{t.path}")


async def run_command(args: argparse.Namespace, config: CatalogConfig) -> int:
    """Open the catalog, run one command, close the catalog."""
    db = CatalogDb(config.db_path)
    library = MusicLibrary(db=db, art_cache=ArtCache(config.art_cache_dir))
    await library.initialize()

    try:
        if args.command == "add":
            result = await library.scan_directory(args.path)
            if result is None:
                logger.error("Not a directory: %s", args.path)
                return 1
            print(
                f"{result.files_seen} files, {result.tracks_added} new tracks, "
                f"{result.failures} failures"
            )
        elif args.command == "rebuild":
            result = await library.rebuild()
            print(
                f"{result.files_seen} files, {result.tracks_added} new tracks, "
                f"{result.failures} failures"
            )
        elif args.command == "remove-dir":
            if not await library.remove_music_dir(args.path):
                return 1
        elif args.command == "remove-track":
            if not await library.remove_track(args.track_id):
                logger.error("No track with id %d", args.track_id)
                return 1
        elif args.command == "list":
            await _list(library, args.what)
        elif args.command == "serve":
            from tunedex.web.server import WebServer

            server = WebServer(music_library=library)
            await server.serve(host=config.host, port=config.port)
    finally:
        await library.cancel_scan()
        await db.close()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        config = resolve_config(args)
    except (OSError, ValueError) as e:
        logger.error("Could not load config: %s", e)
        return 1

    try:
        return asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
