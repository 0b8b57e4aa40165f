"""
Potion crafting and valuation.

A Potion is made from 2 or 3 distinct ingredients. Only effects present
in at least two of them become active; each active effect is valued
from its magic effect's base cost, magnitude and duration, and the
potion's value is the sum over its (at most six) most valuable effects.

See https://en.uesp.net/wiki/Skyrim:Alchemy_Effects#Strength_Equations
"""

import math
import struct
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from itertools import groupby
from typing import List, Optional, Sequence, Tuple

from ..game_data.models import (
    FLAG_NO_DURATION,
    FLAG_NO_MAGNITUDE,
    FLAG_POWER_AFFECTS_DURATION,
    FLAG_POWER_AFFECTS_MAGNITUDE,
    GlobalFormId,
    Ingredient,
    IngredientEffect,
    MagicEffect,
)
from ..game_data.service import GameData

MIN_INGREDIENTS = 2
MAX_INGREDIENTS = 3
MAX_EFFECTS = 6

# Stand-in for the player's alchemy skill and perks
EFFECT_POWER_FACTOR = 6.0

# Gold values are stored by the game as unsigned 16-bit integers
MAX_GOLD_VALUE = 0xFFFF

MISSING_EFFECT_NAME = "<MISSING_EFFECT_NAME>"
MISSING_INGREDIENT_NAME = "<MISSING_INGREDIENT_NAME>"


class PotionCraftError(Exception):
    """Raised when a set of ingredients does not make a potion."""
    pass


class NotEnoughIngredients(PotionCraftError):
    def __init__(self, count: int):
        super().__init__(f"must supply at least {MIN_INGREDIENTS} ingredients, got {count}")
        self.count = count


class TooManyIngredients(PotionCraftError):
    def __init__(self, count: int):
        super().__init__(f"at most {MAX_INGREDIENTS} ingredients fit in a potion, got {count}")
        self.count = count


class DuplicateIngredient(PotionCraftError):
    def __init__(self, ingredient: Ingredient):
        super().__init__(
            f"cannot use {ingredient.display_name} more than once in a potion"
        )
        self.ingredient = ingredient


class InvalidIngredient(PotionCraftError):
    def __init__(self, ingredient: Ingredient):
        super().__init__(f"ingredient {ingredient.display_name} has duplicate effects")
        self.ingredient = ingredient


class NoSharedEffects(PotionCraftError):
    def __init__(self):
        super().__init__("none of the ingredients have a shared effect")


class PotionType(Enum):
    POTION = "Potion"
    POISON = "Poison"

    def __str__(self) -> str:
        return self.value


_F32 = struct.Struct("<f")

MAX_U32 = 0xFFFFFFFF


def _f32(value: float) -> float:
    """Round `value` to single precision, the precision the game computes in."""
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


# 1.1 as the game sees it (1.10000002384...)
_GOLD_EXPONENT = _f32(1.1)


def _to_unsigned(value: float, upper: int) -> int:
    """Truncate to an integer in [0, upper]; NaN becomes 0, overflow saturates."""
    if math.isnan(value) or value <= 0:
        return 0
    if value >= upper:
        return upper
    return int(value)


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero, negatives to 0."""
    if not math.isfinite(value):
        return _to_unsigned(value, MAX_U32)
    return _to_unsigned(math.floor(value + 0.5), MAX_U32)


@dataclass(frozen=True)
class PotionEffect:
    """An active effect of a potion with its final strength and value."""

    magic_effect_id: GlobalFormId
    magnitude: int
    duration: int
    gold_value: int

    @classmethod
    def from_ingredient_effect(
        cls, ingredient_effect: IngredientEffect, game_data: GameData
    ) -> "PotionEffect":
        """Resolve an ingredient effect against its magic effect.

        Raises:
            KeyError: if the magic effect is not in `game_data`
        """
        magic_effect = game_data.magic_effects[ingredient_effect.global_id]
        magnitude = cls.calc_magnitude(ingredient_effect.magnitude, magic_effect.flags)
        duration = cls.calc_duration(ingredient_effect.duration, magic_effect.flags)
        gold_value = cls.calc_gold_value(magnitude, duration, magic_effect.base_cost)
        return cls(magic_effect.global_id, magnitude, duration, gold_value)

    @staticmethod
    def calc_magnitude(base_magnitude: float, flags: int) -> int:
        magnitude = 0.0 if flags & FLAG_NO_MAGNITUDE else _f32(base_magnitude)
        factor = EFFECT_POWER_FACTOR if flags & FLAG_POWER_AFFECTS_MAGNITUDE else 1.0
        return _round_half_away(_f32(magnitude * factor))

    @staticmethod
    def calc_duration(base_duration: int, flags: int) -> int:
        duration = 0.0 if flags & FLAG_NO_DURATION else _f32(float(base_duration))
        factor = EFFECT_POWER_FACTOR if flags & FLAG_POWER_AFFECTS_DURATION else 1.0
        return _round_half_away(_f32(duration * factor))

    @staticmethod
    def calc_gold_value(magnitude: int, duration: int, base_cost: float) -> int:
        """Gold value of one effect.

        A duration of 0 is valued like a duration of 10. Computed in single
        precision; NaN is worth 0 and overflow saturates at MAX_GOLD_VALUE.
        """
        magnitude_factor = _f32(float(max(magnitude, 1)))
        duration_factor = _f32((10.0 if duration == 0 else _f32(float(duration))) / 10.0)
        scale = _f32(_f32(magnitude_factor * duration_factor) ** _GOLD_EXPONENT)
        value = _f32(_f32(base_cost) * scale)
        return _to_unsigned(value, MAX_GOLD_VALUE)

    def description(self, magic_effect: MagicEffect) -> str:
        """The magic effect's description with <mag> and <dur> filled in."""
        return (
            magic_effect.description
            .replace("<mag>", str(self.magnitude))
            .replace("<dur>", str(self.duration))
        )


def _check_ingredients(ingredients: Sequence[Ingredient]) -> None:
    if len(ingredients) < MIN_INGREDIENTS:
        raise NotEnoughIngredients(len(ingredients))
    if len(ingredients) > MAX_INGREDIENTS:
        raise TooManyIngredients(len(ingredients))

    seen = set()
    for ingredient in ingredients:
        if ingredient.global_id in seen:
            raise DuplicateIngredient(ingredient)
        seen.add(ingredient.global_id)

    for ingredient in ingredients:
        if len(ingredient.effect_ids) != len(ingredient.effects):
            raise InvalidIngredient(ingredient)


@dataclass(frozen=True)
class Potion:
    """2 or 3 ingredients and the effects they produce together.

    Ingredients and magic effects are held by id and resolved through
    `game_data` on access.
    """

    ingredient_ids: Tuple[GlobalFormId, ...]
    effects: Tuple[PotionEffect, ...]
    gold_value: int
    game_data: GameData = field(compare=False, repr=False, hash=False)

    @classmethod
    def from_ingredients(
        cls, ingredients: Sequence[Ingredient], game_data: GameData
    ) -> "Potion":
        """Combine ingredients into a potion.

        Raises:
            NotEnoughIngredients: fewer than two ingredients
            TooManyIngredients: more than three ingredients
            DuplicateIngredient: the same ingredient given twice
            InvalidIngredient: an ingredient lists an effect twice
            NoSharedEffects: no effect is present in two ingredients
        """
        _check_ingredients(ingredients)

        # Stable sort keeps ingredient order among instances of one effect
        pooled = sorted(
            (effect for ingredient in ingredients for effect in ingredient.effects),
            key=lambda effect: effect.global_id,
        )
        counts = Counter(effect.global_id for effect in pooled)
        if all(count < 2 for count in counts.values()):
            raise NoSharedEffects()

        active: List[PotionEffect] = []
        for _, instances in groupby(
            (effect for effect in pooled if counts[effect.global_id] > 1),
            key=lambda effect: effect.global_id,
        ):
            strongest: Optional[PotionEffect] = None
            for instance in instances:
                candidate = PotionEffect.from_ingredient_effect(instance, game_data)
                if strongest is None or candidate.gold_value > strongest.gold_value:
                    strongest = candidate
            active.append(strongest)

        # Strongest first; index 0 is the primary effect
        active.sort(key=lambda effect: effect.gold_value, reverse=True)
        effects = tuple(active[:MAX_EFFECTS])

        return cls(
            ingredient_ids=tuple(ingredient.global_id for ingredient in ingredients),
            effects=effects,
            gold_value=sum(effect.gold_value for effect in effects),
            game_data=game_data,
        )

    @property
    def ingredients(self) -> Tuple[Optional[Ingredient], ...]:
        return tuple(self.game_data.get_ingredient(gid) for gid in self.ingredient_ids)

    @property
    def primary_effect(self) -> PotionEffect:
        return self.effects[0]

    @property
    def potion_type(self) -> PotionType:
        magic_effect = self.game_data.get_magic_effect(self.primary_effect.magic_effect_id)
        if magic_effect is not None and magic_effect.is_hostile:
            return PotionType.POISON
        return PotionType.POTION

    @property
    def name(self) -> str:
        magic_effect = self.game_data.get_magic_effect(self.primary_effect.magic_effect_id)
        effect_name = magic_effect.name if magic_effect is not None else None
        return f"{self.potion_type} of {effect_name or MISSING_EFFECT_NAME}"

    @property
    def description(self) -> str:
        parts = []
        for effect in self.effects:
            magic_effect = self.game_data.get_magic_effect(effect.magic_effect_id)
            if magic_effect is not None:
                parts.append(effect.description(magic_effect))
        return " ".join(parts)

    def __str__(self) -> str:
        lines = [
            self.name,
            self.description,
            f"Value: {self.gold_value} gold",
            "Ingredients:",
        ]
        for ingredient in self.ingredients:
            name = ingredient.name if ingredient is not None else None
            lines.append(f"- {name or MISSING_INGREDIENT_NAME}")
        return "\n".join(lines)
