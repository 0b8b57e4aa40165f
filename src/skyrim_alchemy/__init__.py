"""
skyrim_alchemy: find the most valuable potions you can brew in Skyrim

Reads the ingredients and magic effects of an installation's active
plugins, stores them as a JSON snapshot, and ranks every 2- and
3-ingredient potion by gold value.
"""

__version__ = "0.1.0"
__author__ = "skyrim_alchemy Contributors"

from .alchemy import Potion, PotionsList, SharedEffectsCache, SharedEffectsCacheUnsync
from .errors import SkyrimAlchemyError
from .game_data import GameData, GlobalFormId, LoadOrder, load_game_data, save_game_data
from .utils.logging_config import setup_logging

__all__ = [
    # Data
    "GameData",
    "GlobalFormId",
    "LoadOrder",
    "load_game_data",
    "save_game_data",
    # Search
    "Potion",
    "PotionsList",
    "SharedEffectsCache",
    "SharedEffectsCacheUnsync",
    # Errors
    "SkyrimAlchemyError",
    # Logging
    "setup_logging",
]
