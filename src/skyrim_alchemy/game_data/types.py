"""
Validation result types for game data.

These are values returned by `GameData.validate`, not exceptions: a
dataset with dangling references is expected and gets repaired by
`GameData.purge_invalid`.
"""

from dataclasses import dataclass
from typing import Tuple

from .models import GlobalFormId, Ingredient


@dataclass(frozen=True)
class UnknownFormIdError:
    """A reference to a form id that is not present in the dataset."""
    form_id: GlobalFormId

    def __str__(self) -> str:
        return f"the form ID {self.form_id} is unknown"


@dataclass(frozen=True)
class IngredientError:
    """Base class for problems found with a single ingredient."""
    ingredient: Ingredient


@dataclass(frozen=True)
class ReferencesUnknownMagicEffects(IngredientError):
    """The ingredient lists effects that have no MagicEffect record."""
    unknown: Tuple[UnknownFormIdError, ...] = ()

    def __str__(self) -> str:
        return (
            f"ingredient {self.ingredient.display_name} references unknown magic effects: "
            + ", ".join(str(err) for err in self.unknown)
        )
