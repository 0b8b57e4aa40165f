"""
Potion crafting and the search for the most valuable potions.
"""

from .cache import SharedEffects, SharedEffectsCache, SharedEffectsCacheUnsync
from .potion import (
    DuplicateIngredient,
    InvalidIngredient,
    NoSharedEffects,
    NotEnoughIngredients,
    Potion,
    PotionCraftError,
    PotionEffect,
    PotionType,
    TooManyIngredients,
)
from .potions_list import PotionsList, is_valid_pair, is_valid_triple, select_ingredients

__all__ = [
    "SharedEffects",
    "SharedEffectsCache",
    "SharedEffectsCacheUnsync",
    "DuplicateIngredient",
    "InvalidIngredient",
    "NoSharedEffects",
    "NotEnoughIngredients",
    "Potion",
    "PotionCraftError",
    "PotionEffect",
    "PotionType",
    "TooManyIngredients",
    "PotionsList",
    "is_valid_pair",
    "is_valid_triple",
    "select_ingredients",
]
