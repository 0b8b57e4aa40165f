"""Shared fixtures: small game data sets and in-memory plugin files."""

import struct
import zlib
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from skyrim_alchemy.game_data import (
    GameData,
    GlobalFormId,
    Ingredient,
    IngredientEffect,
    LoadOrder,
    MagicEffect,
)

# === GAME DATA HELPERS ===

EffectSpec = Tuple[int, float, int]


def gid(local_id: int, source_index: int = 0) -> GlobalFormId:
    return GlobalFormId(source_index, local_id)


def make_ingredient(
    local_id: int,
    name: Optional[str],
    effects: Iterable[EffectSpec] = (),
    source_index: int = 0,
    editor_id: Optional[str] = None,
) -> Ingredient:
    """Build an ingredient; effects are (effect local id, magnitude, duration)."""
    return Ingredient(
        global_id=gid(local_id, source_index),
        editor_id=editor_id or f"Ingr{local_id:04X}",
        name=name,
        effects=tuple(
            IngredientEffect(gid(effect_id, source_index), magnitude, duration)
            for effect_id, magnitude, duration in effects
        ),
    )


def make_magic_effect(
    local_id: int,
    name: Optional[str],
    base_cost: float = 1.0,
    flags: int = 0,
    description: str = "",
    source_index: int = 0,
) -> MagicEffect:
    return MagicEffect(
        global_id=gid(local_id, source_index),
        editor_id=f"Mgef{local_id:04X}",
        name=name,
        description=description,
        flags=flags,
        base_cost=base_cost,
    )


def make_game_data(
    ingredients: Sequence[Ingredient],
    magic_effects: Sequence[MagicEffect],
    load_order: Sequence[str] = ("Skyrim.esm",),
) -> GameData:
    return GameData.from_decoded(
        LoadOrder(load_order),
        {ing.global_id: ing for ing in ingredients},
        {mgef.global_id: mgef for mgef in magic_effects},
    )


# Effect ids used by the sample data
RESTORE_HEALTH = 0x100
FORTIFY_SMITHING = 0x101
DAMAGE_HEALTH = 0x102
RESIST_FIRE = 0x103
INVISIBILITY = 0x104


@pytest.fixture
def sample_magic_effects() -> List[MagicEffect]:
    return [
        make_magic_effect(
            RESTORE_HEALTH, "Restore Health", base_cost=0.5,
            description="Restore <mag> points of Health.",
        ),
        make_magic_effect(
            FORTIFY_SMITHING, "Fortify Smithing", base_cost=0.6,
            description="For <dur> seconds, weapon and armor improving is <mag>% better.",
        ),
        make_magic_effect(
            DAMAGE_HEALTH, "Damage Health", base_cost=3.0, flags=0x1,
            description="Causes <mag> points of poison damage.",
        ),
        make_magic_effect(
            RESIST_FIRE, "Resist Fire", base_cost=0.5,
            description="Resist <mag>% of fire damage for <dur> seconds.",
        ),
        make_magic_effect(
            INVISIBILITY, "Invisibility", base_cost=100.0, flags=0x400,
            description="Invisibility for <dur> seconds.",
        ),
    ]


@pytest.fixture
def sample_ingredients() -> List[Ingredient]:
    return [
        make_ingredient(0x1, "Blue Mountain Flower", [
            (RESTORE_HEALTH, 1.0, 0), (FORTIFY_SMITHING, 1.0, 30),
        ]),
        make_ingredient(0x2, "Sabre Cat Tooth", [
            (FORTIFY_SMITHING, 1.0, 30), (RESIST_FIRE, 3.0, 60),
        ]),
        make_ingredient(0x3, "Nightshade", [
            (DAMAGE_HEALTH, 1.0, 0), (RESIST_FIRE, 3.0, 60),
        ]),
        make_ingredient(0x4, "Chaurus Eggs", [
            (INVISIBILITY, 1.0, 4), (DAMAGE_HEALTH, 1.0, 0),
        ]),
        make_ingredient(0x5, "Wheat", [(RESTORE_HEALTH, 1.0, 0)]),
    ]


@pytest.fixture
def sample_game_data(sample_ingredients, sample_magic_effects) -> GameData:
    return make_game_data(sample_ingredients, sample_magic_effects)


# === PLUGIN FILE BUILDER ===

RECORD_HEADER = struct.Struct("<4sIIIIHH")
GROUP_HEADER = struct.Struct("<4sI4siHHHH")

Subrecords = List[Tuple[str, bytes]]


def subrecord(sub_type: str, data: bytes) -> bytes:
    if len(data) > 0xFFFF:
        # Oversized payloads are announced by an XXXX subrecord
        return (
            b"XXXX" + struct.pack("<HI", 4, len(data))
            + sub_type.encode("ascii") + struct.pack("<H", 0) + data
        )
    return sub_type.encode("ascii") + struct.pack("<H", len(data)) + data


def zstring(text: str) -> bytes:
    return text.encode("cp1252") + b"\x00"


def record(
    record_type: str,
    form_id: int,
    subrecords: Subrecords,
    flags: int = 0,
    compress: bool = False,
) -> bytes:
    data = b"".join(subrecord(sub_type, payload) for sub_type, payload in subrecords)
    if compress:
        flags |= 0x00040000
        data = struct.pack("<I", len(data)) + zlib.compress(data)
    return RECORD_HEADER.pack(record_type.encode("ascii"), len(data), flags, form_id, 0, 44, 0) + data


def group(label: str, contents: bytes, group_type: int = 0) -> bytes:
    return GROUP_HEADER.pack(
        b"GRUP", GROUP_HEADER.size + len(contents), label.encode("ascii"), group_type, 0, 0, 0, 0
    ) + contents


def ingredient_subrecords(
    editor_id: str,
    name: Optional[bytes],
    effects: Iterable[Tuple[int, float, int]],
) -> Subrecords:
    """INGR subrecords; `name` is the raw FULL payload."""
    subs: Subrecords = [("EDID", zstring(editor_id))]
    if name is not None:
        subs.append(("FULL", name))
    subs.append(("DATA", struct.pack("<If", 1, 0.1)))
    subs.append(("ENIT", struct.pack("<iI", 5, 0)))
    for effect_id, magnitude, duration in effects:
        subs.append(("EFID", struct.pack("<I", effect_id)))
        subs.append(("EFIT", struct.pack("<fII", magnitude, 0, duration)))
    return subs


def magic_effect_subrecords(
    editor_id: str,
    name: Optional[bytes],
    flags: int,
    base_cost: float,
    description: Optional[bytes] = None,
) -> Subrecords:
    subs: Subrecords = [("EDID", zstring(editor_id))]
    if name is not None:
        subs.append(("FULL", name))
    # Real DATA is 152 bytes; only flags and base cost are read
    subs.append(("DATA", struct.pack("<If", flags, base_cost) + bytes(144)))
    if description is not None:
        subs.append(("DNAM", description))
    return subs


class PluginBuilder:
    """Assembles a plugin file in memory."""

    def __init__(self, masters: Sequence[str] = (), flags: int = 0):
        self.masters = list(masters)
        self.flags = flags
        self.groups: Dict[str, List[bytes]] = {}

    def add(self, record_type: str, form_id: int, subrecords: Subrecords, **kwargs) -> "PluginBuilder":
        self.groups.setdefault(record_type, []).append(
            record(record_type, form_id, subrecords, **kwargs)
        )
        return self

    def add_ingredient(self, form_id: int, editor_id: str, name: Optional[str], effects) -> "PluginBuilder":
        raw_name = zstring(name) if name is not None else None
        return self.add("INGR", form_id, ingredient_subrecords(editor_id, raw_name, effects))

    def add_magic_effect(
        self, form_id: int, editor_id: str, name: Optional[str], flags: int = 0,
        base_cost: float = 1.0, description: str = "",
    ) -> "PluginBuilder":
        raw_name = zstring(name) if name is not None else None
        return self.add(
            "MGEF", form_id,
            magic_effect_subrecords(editor_id, raw_name, flags, base_cost, zstring(description)),
        )

    def header(self) -> bytes:
        subs: Subrecords = [("HEDR", struct.pack("<fII", 1.7, 0, 0x800))]
        for master in self.masters:
            subs.append(("MAST", zstring(master)))
            subs.append(("DATA", struct.pack("<Q", 0)))
        return record("TES4", 0, subs, flags=self.flags)

    def build(self) -> bytes:
        body = b"".join(
            group(label, b"".join(records)) for label, records in self.groups.items()
        )
        return self.header() + body

    def write(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.build())
        return path


def strings_file(entries: Dict[int, str], length_prefixed: bool = False) -> bytes:
    """Build a .strings (zstring) or .dlstrings/.ilstrings (length-prefixed) file."""
    directory = b""
    data = b""
    for string_id, text in entries.items():
        directory += struct.pack("<II", string_id, len(data))
        encoded = zstring(text)
        if length_prefixed:
            data += struct.pack("<I", len(encoded)) + encoded
        else:
            data += encoded
    return struct.pack("<II", len(entries), len(data)) + directory + data


@pytest.fixture
def plugin_builder():
    return PluginBuilder


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """An empty Data/ directory under a fake game directory."""
    path = tmp_path / "game" / "Data"
    path.mkdir(parents=True)
    return path


# === SETTINGS AND LOGGING ===


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    return tmp_path / "settings.ini"


@pytest.fixture
def app_settings(settings_file: Path):
    """AppSettings backed by an INI file under tmp_path."""
    from skyrim_alchemy.settings import AppSettings

    return AppSettings(settings_file=settings_file)


@pytest.fixture
def isolated_logging():
    """Restore the root logger after a test that reconfigures logging."""
    import logging

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
