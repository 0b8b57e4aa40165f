"""
Reading and writing game data snapshots.

A snapshot is a JSON document with exactly three fields: `load_order`,
`ingredients` and `magic_effects`. orjson does the (de)serialization.
"""

import logging
from pathlib import Path

import orjson

from ..errors import SnapshotError
from .service import GameData

logger = logging.getLogger(__name__)


def save_game_data(game_data: GameData, path: str | Path) -> Path:
    """Write `game_data` to `path` as indented JSON and return the path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("wb") as f:  # orjson works with bytes
        f.write(orjson.dumps(game_data.to_dict(), option=orjson.OPT_INDENT_2))
    logger.info(f"Wrote game data snapshot to {target}")
    return target


def load_game_data(path: str | Path) -> GameData:
    """Read a snapshot written by `save_game_data`.

    Raises:
        FileNotFoundError: if the file does not exist
        SnapshotError: if the file is not valid JSON or misses fields
    """
    source = Path(path)
    with source.open("rb") as f:
        raw = f.read()

    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise SnapshotError(f"snapshot {source} is not valid JSON: {e}") from e

    game_data = GameData.from_dict(data)
    logger.info(
        f"Loaded {len(game_data.ingredients)} ingredients and "
        f"{len(game_data.magic_effects)} magic effects from {source}"
    )
    return game_data
