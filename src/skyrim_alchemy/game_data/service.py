"""
Main container for Skyrim alchemy game data.

GameData owns every Ingredient and MagicEffect keyed by GlobalFormId,
together with the LoadOrder those ids index into. It is assembled once
from decoded records (or a snapshot), validated, pruned, and read-only
afterwards.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..errors import SnapshotError
from .load_order import LoadOrder
from .models import GlobalFormId, Ingredient, MagicEffect
from .types import IngredientError, ReferencesUnknownMagicEffects, UnknownFormIdError

SNAPSHOT_FIELDS = ("load_order", "ingredients", "magic_effects")


class GameData:
    """Ingredients and magic effects addressed by GlobalFormId.

    Use `from_decoded` (or `from_dict`) rather than the constructor: it
    compacts the load order to the plugins that actually contribute
    records and rewrites every id accordingly.
    """

    def __init__(
        self,
        load_order: LoadOrder,
        ingredients: Dict[GlobalFormId, Ingredient],
        magic_effects: Dict[GlobalFormId, MagicEffect],
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.load_order = load_order
        self._ingredients = ingredients
        self._magic_effects = magic_effects

    @classmethod
    def from_decoded(
        cls,
        load_order: LoadOrder,
        ingredients: Mapping[GlobalFormId, Ingredient],
        magic_effects: Mapping[GlobalFormId, MagicEffect],
    ) -> "GameData":
        """Build GameData from globalized records, compacting the load order.

        A plugin counts as used when it owns a record or is referenced by
        an ingredient effect, so dangling effect ids keep pointing at the
        right plugin and `validate` can report them.

        Raises:
            IndexError: if a record references a load order index that
                does not exist
        """
        used_indices = [form_id.source_index for form_id in ingredients]
        used_indices.extend(form_id.source_index for form_id in magic_effects)
        used_indices.extend(
            effect.global_id.source_index
            for ingredient in ingredients.values()
            for effect in ingredient.effects
        )
        remap = load_order.drain_unused(used_indices)

        if remap is None:
            return cls(load_order, dict(ingredients), dict(magic_effects))

        remapped_ingredients: Dict[GlobalFormId, Ingredient] = {}
        for ingredient in ingredients.values():
            remapped = ingredient.remap_source_indices(remap)
            remapped_ingredients[remapped.global_id] = remapped

        remapped_effects: Dict[GlobalFormId, MagicEffect] = {}
        for magic_effect in magic_effects.values():
            remapped = magic_effect.remap_source_indices(remap)
            remapped_effects[remapped.global_id] = remapped

        return cls(load_order, remapped_ingredients, remapped_effects)

    # Public API

    @property
    def ingredients(self) -> Mapping[GlobalFormId, Ingredient]:
        return self._ingredients

    @property
    def magic_effects(self) -> Mapping[GlobalFormId, MagicEffect]:
        return self._magic_effects

    def get_ingredient(self, form_id: GlobalFormId) -> Optional[Ingredient]:
        return self._ingredients.get(form_id)

    def get_magic_effect(self, form_id: GlobalFormId) -> Optional[MagicEffect]:
        return self._magic_effects.get(form_id)

    def validate(self) -> List[IngredientError]:
        """Check that every ingredient effect resolves to a magic effect.

        Returns:
            One error per ingredient with at least one dangling reference;
            an empty list when the data is consistent.
        """
        errors: List[IngredientError] = []
        for ingredient in self._ingredients.values():
            unknown = tuple(
                UnknownFormIdError(effect.global_id)
                for effect in ingredient.effects
                if effect.global_id not in self._magic_effects
            )
            if unknown:
                errors.append(ReferencesUnknownMagicEffects(ingredient, unknown))
        return errors

    def purge_invalid(self) -> None:
        """Remove every ingredient that fails validation.

        Magic effects left unreferenced by the removal are kept.
        """
        errors = self.validate()
        if not errors:
            return

        self.logger.warning(f"Ignoring {len(errors)} invalid ingredients:")
        for error in errors:
            self.logger.warning(f"  {error}")

        for error in errors:
            self._ingredients.pop(error.ingredient.global_id, None)

    # Snapshot conversion

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the snapshot document layout."""
        return {
            "load_order": self.load_order.names(),
            "ingredients": [ing.to_dict() for ing in self._ingredients.values()],
            "magic_effects": [mgef.to_dict() for mgef in self._magic_effects.values()],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "GameData":
        """Rebuild GameData from a snapshot document.

        Raises:
            SnapshotError: if a field is missing or a record is malformed
        """
        if not isinstance(data, dict):
            raise SnapshotError("snapshot root must be an object")
        missing = [name for name in SNAPSHOT_FIELDS if name not in data]
        if missing:
            raise SnapshotError(f"snapshot is missing fields: {', '.join(missing)}")

        try:
            load_order = LoadOrder(str(name) for name in _as_list(data["load_order"]))
            ingredients = _index_by_id(
                Ingredient.from_dict(item) for item in _as_list(data["ingredients"])
            )
            magic_effects = _index_by_id(
                MagicEffect.from_dict(item) for item in _as_list(data["magic_effects"])
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"malformed snapshot record: {e}") from e

        try:
            return cls.from_decoded(load_order, ingredients, magic_effects)
        except IndexError as e:
            raise SnapshotError(f"snapshot references unknown plugin: {e}") from e

    def __repr__(self) -> str:
        return (
            f"GameData({len(self.load_order)} plugins, {len(self._ingredients)} ingredients, "
            f"{len(self._magic_effects)} magic effects)"
        )


def _as_list(value: Any) -> List[Any]:
    if not isinstance(value, list):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    return value


def _index_by_id(records: Iterable[Any]) -> Dict[GlobalFormId, Any]:
    return {record.global_id: record for record in records}
