"""
Decoders turning raw INGR and MGEF records into game data models.

`decode_record` dispatches on the record type and returns an Ingredient,
a MagicEffect or an UnknownRecord for any other type. Form ids are made
global through the `globalize` callable of the DecodeContext, and
localized strings go through its `resolve_lstring` callable.
"""

import struct
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from ..errors import RecordDecodeError
from ..game_data.models import GlobalFormId, Ingredient, IngredientEffect, MagicEffect
from .records import Record, parse_zstring

# magnitude, area, duration
EFIT = struct.Struct("<fII")
# flags, base cost (the rest of MGEF DATA is not needed)
MGEF_DATA = struct.Struct("<If")
FORM_ID = struct.Struct("<I")


@dataclass
class DecodeContext:
    """Per-plugin callbacks used while decoding records."""
    globalize: Callable[[int], GlobalFormId]
    resolve_lstring: Callable[[bytes], str] = parse_zstring


@dataclass(frozen=True)
class UnknownRecord:
    """A record of a type this package does not decode."""
    type: str
    form_id: int


DecodedRecord = Union[Ingredient, MagicEffect, UnknownRecord]


def _require_form_id(record: Record) -> int:
    if record.form_id == 0:
        raise RecordDecodeError(f"{record.type} record has no form ID")
    return record.form_id


def _editor_id(record: Record) -> str:
    data = record.find("EDID")
    if data is None:
        raise RecordDecodeError(
            f"{record.type} record {record.form_id:08x} is missing editor ID"
        )
    return parse_zstring(data)


def _optional_lstring(record: Record, sub_type: str, context: DecodeContext) -> Optional[str]:
    data = record.find(sub_type)
    if data is None:
        return None
    return context.resolve_lstring(data)


def decode_ingredient(record: Record, context: DecodeContext) -> Ingredient:
    """Decode an INGR record.

    Effects are the EFID/EFIT pairs that follow the ENIT subrecord.

    Raises:
        RecordDecodeError: if required data is missing or malformed
        FormIdResolutionError: if a form id cannot be globalized
    """
    global_id = context.globalize(_require_form_id(record))
    editor_id = _editor_id(record)
    name = _optional_lstring(record, "FULL", context)

    effects: List[IngredientEffect] = []
    current_effect_id: Optional[int] = None
    seen_enit = False
    for sub in record.subrecords():
        if not seen_enit:
            seen_enit = sub.type == "ENIT"
            continue

        if sub.type == "EFID":
            if len(sub.data) < FORM_ID.size:
                raise RecordDecodeError(f"ingredient {editor_id}: truncated EFID")
            (current_effect_id,) = FORM_ID.unpack_from(sub.data, 0)
        elif sub.type == "EFIT":
            if current_effect_id is None:
                raise RecordDecodeError(f"ingredient {editor_id}: EFIT appeared before EFID")
            if len(sub.data) < EFIT.size:
                raise RecordDecodeError(
                    f"ingredient {editor_id}: EFIT has {len(sub.data)} bytes, "
                    f"expected {EFIT.size}"
                )
            if current_effect_id == 0:
                raise RecordDecodeError(f"ingredient {editor_id}: EFID is a null form ID")
            magnitude, _area, duration = EFIT.unpack_from(sub.data, 0)
            effects.append(
                IngredientEffect(context.globalize(current_effect_id), magnitude, duration)
            )
            current_effect_id = None

    # Ingredient sorts its effects by global id
    return Ingredient(global_id, editor_id, name, tuple(effects))


def decode_magic_effect(record: Record, context: DecodeContext) -> MagicEffect:
    """Decode an MGEF record.

    Raises:
        RecordDecodeError: if EDID or DATA is missing or DATA is truncated
        FormIdResolutionError: if the form id cannot be globalized
    """
    global_id = context.globalize(_require_form_id(record))
    editor_id = _editor_id(record)
    name = _optional_lstring(record, "FULL", context)
    description = _optional_lstring(record, "DNAM", context) or ""

    data = record.find("DATA")
    if data is None:
        raise RecordDecodeError(f"magic effect {editor_id} is missing data")
    if len(data) < MGEF_DATA.size:
        raise RecordDecodeError(
            f"magic effect {editor_id}: DATA has {len(data)} bytes, expected at least "
            f"{MGEF_DATA.size}"
        )
    flags, base_cost = MGEF_DATA.unpack_from(data, 0)

    return MagicEffect(
        global_id=global_id,
        editor_id=editor_id,
        name=name,
        description=description,
        flags=flags,
        base_cost=base_cost,
    )


DECODERS: Dict[str, Callable[[Record, DecodeContext], DecodedRecord]] = {
    "INGR": decode_ingredient,
    "MGEF": decode_magic_effect,
}

# Top-level groups the plugin reader has to descend into
DECODED_TYPES = frozenset(DECODERS)


def decode_record(record: Record, context: DecodeContext) -> DecodedRecord:
    """Decode `record` according to its type; unknown types are not an error."""
    decoder = DECODERS.get(record.type)
    if decoder is None:
        return UnknownRecord(record.type, record.form_id)
    return decoder(record, context)
