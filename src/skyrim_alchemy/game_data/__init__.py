"""
Skyrim alchemy game data.

Provides the global form id addressing scheme, the ingredient and magic
effect models, the load order and the GameData container with snapshot
support. Loading from plugin files lives in `game_data.loaders`, which
is not imported here because it depends on the `plugins` package.
"""

from .load_order import LoadOrder
from .models import (
    FLAG_HOSTILE,
    FLAG_NO_DURATION,
    FLAG_NO_MAGNITUDE,
    FLAG_POWER_AFFECTS_DURATION,
    FLAG_POWER_AFFECTS_MAGNITUDE,
    GlobalFormId,
    Ingredient,
    IngredientEffect,
    MagicEffect,
)
from .service import GameData
from .snapshot import load_game_data, save_game_data
from .types import IngredientError, ReferencesUnknownMagicEffects, UnknownFormIdError

# Public exports
__all__ = [
    # Main container
    "GameData",
    "LoadOrder",
    # Models
    "GlobalFormId",
    "Ingredient",
    "IngredientEffect",
    "MagicEffect",
    # Flags
    "FLAG_HOSTILE",
    "FLAG_NO_DURATION",
    "FLAG_NO_MAGNITUDE",
    "FLAG_POWER_AFFECTS_DURATION",
    "FLAG_POWER_AFFECTS_MAGNITUDE",
    # Snapshots
    "load_game_data",
    "save_game_data",
    # Validation results
    "IngredientError",
    "ReferencesUnknownMagicEffects",
    "UnknownFormIdError",
]
