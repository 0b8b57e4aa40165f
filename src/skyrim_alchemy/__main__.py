"""
Command line entry point for skyrim_alchemy.
Usage: python -m skyrim_alchemy [-v] COMMAND ...
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .alchemy import PotionsList, SharedEffectsCache, select_ingredients
from .errors import SkyrimAlchemyError
from .game_data import load_game_data, save_game_data
from .game_data.loaders import PluginLoader, read_load_order
from .settings import AppSettings, ConfigError
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skyrim-alchemy",
        description="Find the most valuable potions for a Skyrim installation.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Log debug output to the console",
    )
    parser.add_argument(
        "--settings-file", type=Path, default=None,
        help="Use an INI settings file instead of the default location",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser(
        "export-game-data",
        help="Read the active plugins and write a game data snapshot",
    )
    export.add_argument("--game-path", type=Path, default=None,
                        help="Skyrim installation directory (contains Data/)")
    export.add_argument("--local-path", type=Path, default=None,
                        help="Directory containing plugins.txt")
    export.add_argument("export_path", type=Path, metavar="EXPORT_PATH")

    suggest = subparsers.add_parser(
        "suggest-potions",
        help="Print the most valuable potions from a game data snapshot",
    )
    lists = suggest.add_mutually_exclusive_group()
    lists.add_argument("--ingredients-allowlist-path", type=Path, default=None,
                       help="Only use ingredients named in this file (one per line)")
    lists.add_argument("--ingredients-denylist-path", type=Path, default=None,
                       help="Never use ingredients named in this file (one per line)")
    suggest.add_argument("--limit", type=_positive_int, default=None,
                         help="Number of potions to print")
    suggest.add_argument("--workers", type=_positive_int, default=None,
                         help="Worker threads for the search")
    suggest.add_argument("--no-cache", action="store_true",
                         help="Do not memoize the shared effects check")
    suggest.add_argument("data_path", type=Path, metavar="DATA_PATH")

    return parser


def _read_names(path: Path) -> List[str]:
    with path.open("r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


def export_game_data(args: argparse.Namespace, settings: AppSettings) -> int:
    game_path = args.game_path or settings.paths.game_path
    if game_path is None:
        logger.error("No game path given and none configured; use --game-path")
        return 1
    local_path = args.local_path or settings.paths.local_path
    if local_path is None:
        logger.error("No local path given and no default available; use --local-path")
        return 1

    load_order = read_load_order(game_path, local_path)
    loader = PluginLoader(
        game_path / "Data",
        language=settings.search.language,
        workers=settings.search.workers,
    )
    game_data = loader.load(load_order)
    game_data.purge_invalid()

    written = save_game_data(game_data, args.export_path)
    settings.paths.game_path = game_path
    if args.local_path:
        settings.paths.local_path = args.local_path
    settings.paths.data_file = written.resolve()
    return 0


def suggest_potions(args: argparse.Namespace, settings: AppSettings) -> int:
    game_data = load_game_data(args.data_path)
    game_data.purge_invalid()

    allow = deny = None
    if args.ingredients_allowlist_path:
        allow = _read_names(args.ingredients_allowlist_path)
    if args.ingredients_denylist_path:
        deny = _read_names(args.ingredients_denylist_path)
    ingredients = select_ingredients(game_data, allow=allow, deny=deny)

    search = settings.search
    cache = None
    if search.use_shared_effects_cache and not args.no_cache:
        cache = SharedEffectsCache(search.cache_capacity)
    potions_list = PotionsList(
        game_data,
        cache=cache,
        workers=args.workers or search.workers,
        chunk_size=search.chunk_size,
    )

    def progress(size: int, processed: int, total: int) -> None:
        logger.debug(f"{size}-ingredient combos: {processed}/{total}")

    potions_list.build_potions(ingredients, progress=progress)

    limit = args.limit or search.default_limit
    for rank, potion in enumerate(potions_list.top(limit), start=1):
        print(f"#{rank}")
        print(potion)
        print()

    settings.paths.data_file = Path(args.data_path).resolve()
    return 0


COMMANDS = {
    "export-game-data": export_game_data,
    "suggest-potions": suggest_potions,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    settings = AppSettings(settings_file=args.settings_file)
    setup_logging(settings, verbosity=args.verbose)
    logger.debug(f"Configuration loaded from {settings.get_settings_file_path()}")

    validation = settings.validate()
    for warning in validation.warnings:
        logger.debug(f"Configuration warning: {warning}")
    for error in validation.errors:
        logger.warning(f"Configuration error: {error}")

    try:
        return COMMANDS[args.command](args, settings)
    except (SkyrimAlchemyError, ConfigError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        logger.debug("Traceback:", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
