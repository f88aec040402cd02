"""
TileMatch CLI - Command-line interface for the engine.

Usage:
    tilematch serve [--host H] [--port P]   Run the REST/WebSocket API
    tilematch catalog                       Fetch the item catalog and report its size
    tilematch difficulties                  List difficulty presets
"""

import argparse
import logging
import sys

from .config import TILEMATCH_LOG_LEVEL


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="TileMatch - Timed Tile-Matching Game Engine",
        prog="tilematch",
    )
    parser.add_argument("--log-level", default=TILEMATCH_LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Catalog command
    subparsers.add_parser("catalog", help="Fetch the item catalog")

    # Difficulties command
    subparsers.add_parser("difficulties", help="List difficulty presets")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "catalog":
        cmd_catalog(args)
    elif args.command == "difficulties":
        cmd_difficulties(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "tilematch.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


def cmd_catalog(args):
    """Fetch the catalog once and print what came back."""
    from .catalog import CatalogCache
    from .engine_core.errors import CatalogUnavailable

    cache = CatalogCache()
    try:
        items = cache.get()
    except CatalogUnavailable as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Catalog items: {len(items)}")
    for item in items[:5]:
        print(f"  #{item.item_id} {item.name}")


def cmd_difficulties(args):
    """Print the difficulty presets."""
    from .config import DIFFICULTIES, format_time, grid_columns

    for preset in DIFFICULTIES.values():
        print(
            f"{preset.name:<8} {preset.pairs:>2} pairs  "
            f"{format_time(preset.seconds)}  {grid_columns(preset.pairs)} columns"
        )


if __name__ == "__main__":
    main()
