"""
Data models for Skyrim alchemy game data.

Contains the global addressing scheme (GlobalFormId) and the records the
rest of the package works with. Models carry no file-system or search
logic; they only know how to convert themselves to and from the plain
dicts stored in a snapshot.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..errors import FormIdParseError

# Widths of the two halves of a GlobalFormId
MAX_SOURCE_INDEX = 0xFFFF
MAX_LOCAL_ID = 0xFFFFFFFF

# Magic effect flag bits (MGEF DATA)
FLAG_HOSTILE = 0x00000001
FLAG_NO_DURATION = 0x00000200
FLAG_NO_MAGNITUDE = 0x00000400
FLAG_POWER_AFFECTS_MAGNITUDE = 0x00200000
FLAG_POWER_AFFECTS_DURATION = 0x00400000

_DECIMAL_RE = re.compile(r"[0-9]+")
_HEX_RE = re.compile(r"[0-9a-fA-F]+")


@dataclass(frozen=True, order=True)
class GlobalFormId:
    """Load-order-qualified record identifier.

    Ordering is lexicographic on (source_index, local_id), which is what
    dataclass ordering gives us from the field order.
    """

    source_index: int
    local_id: int

    def __post_init__(self) -> None:
        if not 0 <= self.source_index <= MAX_SOURCE_INDEX:
            raise ValueError(f"source index out of range: {self.source_index}")
        if not 0 <= self.local_id <= MAX_LOCAL_ID:
            raise ValueError(f"local id out of range: {self.local_id}")

    def to_text(self) -> str:
        """Render as ``NNNN:xxxxxx`` (decimal index, hex local id)."""
        return f"{self.source_index:04d}:{self.local_id:06x}"

    @classmethod
    def from_text(cls, text: str) -> "GlobalFormId":
        """Parse the ``NNNN:xxxxxx`` form produced by `to_text`.

        Raises:
            FormIdParseError: if the separator is missing or either part is
                not a valid number of the right width
        """
        index_part, sep, id_part = text.partition(":")
        if not sep:
            raise FormIdParseError(text, "missing ':' separator")
        if not _DECIMAL_RE.fullmatch(index_part):
            raise FormIdParseError(text, "source index is not a decimal number")
        source_index = int(index_part)
        if source_index > MAX_SOURCE_INDEX:
            raise FormIdParseError(text, "source index does not fit in 16 bits")
        if not _HEX_RE.fullmatch(id_part):
            raise FormIdParseError(text, "local id is not a hexadecimal number")
        local_id = int(id_part, 16)
        if local_id > MAX_LOCAL_ID:
            raise FormIdParseError(text, "local id does not fit in 32 bits")
        return cls(source_index, local_id)

    def with_source_index(self, source_index: int) -> "GlobalFormId":
        return GlobalFormId(source_index, self.local_id)

    def __str__(self) -> str:
        return self.to_text()


def remap_form_id(form_id: GlobalFormId, remap: Mapping[int, int]) -> GlobalFormId:
    """Return `form_id` with its source index translated through `remap`."""
    return form_id.with_source_index(remap[form_id.source_index])


@dataclass(frozen=True)
class IngredientEffect:
    """An effect an ingredient grants, at its base strength."""

    global_id: GlobalFormId
    magnitude: float
    duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "global_id": self.global_id.to_text(),
            "magnitude": self.magnitude,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IngredientEffect":
        return cls(
            global_id=GlobalFormId.from_text(str(data["global_id"])),
            magnitude=float(data["magnitude"]),
            duration=int(data["duration"]),
        )


@dataclass(eq=False)
class Ingredient:
    """An ingredient record.

    Identity is the global id only: two Ingredient objects with the same
    global id are the same ingredient regardless of their other fields.
    Effects are kept sorted by effect id.
    """

    global_id: GlobalFormId
    editor_id: str
    name: Optional[str] = None
    effects: Tuple[IngredientEffect, ...] = ()
    effect_ids: frozenset[GlobalFormId] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.effects = tuple(sorted(self.effects, key=lambda eff: eff.global_id))
        self.effect_ids = frozenset(eff.global_id for eff in self.effects)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ingredient):
            return NotImplemented
        return self.global_id == other.global_id

    def __hash__(self) -> int:
        return hash(self.global_id)

    @property
    def display_name(self) -> str:
        """Display name, falling back to the editor id."""
        return self.name or self.editor_id

    def shares_effects_with(self, other: "Ingredient") -> bool:
        """Whether the two ingredients have at least one effect in common."""
        return not self.effect_ids.isdisjoint(other.effect_ids)

    def effects_shared_with(self, other: "Ingredient") -> frozenset[GlobalFormId]:
        """Effect ids present in both ingredients."""
        return self.effect_ids & other.effect_ids

    def remap_source_indices(self, remap: Mapping[int, int]) -> "Ingredient":
        """Return a copy with every form id rewritten through `remap`."""
        return replace(
            self,
            global_id=remap_form_id(self.global_id, remap),
            effects=tuple(
                replace(eff, global_id=remap_form_id(eff.global_id, remap))
                for eff in self.effects
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "global_id": self.global_id.to_text(),
            "editor_id": self.editor_id,
            "name": self.name,
            "effects": [eff.to_dict() for eff in self.effects],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Ingredient":
        effects: List[Any] = list(data.get("effects") or [])
        return cls(
            global_id=GlobalFormId.from_text(str(data["global_id"])),
            editor_id=str(data["editor_id"]),
            name=data.get("name"),
            effects=tuple(IngredientEffect.from_dict(eff) for eff in effects),
        )


@dataclass
class MagicEffect:
    """A magic effect definition referenced by ingredients."""

    global_id: GlobalFormId
    editor_id: str
    name: Optional[str] = None
    description: str = ""
    flags: int = 0
    base_cost: float = 0.0

    @property
    def is_hostile(self) -> bool:
        return bool(self.flags & FLAG_HOSTILE)

    @property
    def display_name(self) -> str:
        return self.name or self.editor_id

    def remap_source_indices(self, remap: Mapping[int, int]) -> "MagicEffect":
        return replace(self, global_id=remap_form_id(self.global_id, remap))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "global_id": self.global_id.to_text(),
            "editor_id": self.editor_id,
            "name": self.name,
            "description": self.description,
            "flags": self.flags,
            "is_hostile": self.is_hostile,
            "base_cost": self.base_cost,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MagicEffect":
        # is_hostile is derived from flags and only written for readers of the file
        return cls(
            global_id=GlobalFormId.from_text(str(data["global_id"])),
            editor_id=str(data["editor_id"]),
            name=data.get("name"),
            description=str(data.get("description") or ""),
            flags=int(data.get("flags", 0)),
            base_cost=float(data.get("base_cost", 0.0)),
        )
