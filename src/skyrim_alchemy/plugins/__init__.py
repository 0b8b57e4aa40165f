"""
Reading Skyrim plugin files.

Exposes the binary record reader, the INGR/MGEF decoders, form id
globalization and localized strings lookup.
"""

from .decoders import (
    DECODED_TYPES,
    DecodeContext,
    DecodedRecord,
    UnknownRecord,
    decode_ingredient,
    decode_magic_effect,
    decode_record,
)
from .form_ids import FormIdResolver, split_form_id
from .records import (
    PluginHeader,
    Record,
    RecordHeader,
    Subrecord,
    iter_records,
    read_plugin_header,
)
from .strings_table import StringsLookup, StringsTable, find_strings_files

__all__ = [
    "DECODED_TYPES",
    "DecodeContext",
    "DecodedRecord",
    "UnknownRecord",
    "decode_ingredient",
    "decode_magic_effect",
    "decode_record",
    "FormIdResolver",
    "split_form_id",
    "PluginHeader",
    "Record",
    "RecordHeader",
    "Subrecord",
    "iter_records",
    "read_plugin_header",
    "StringsLookup",
    "StringsTable",
    "find_strings_files",
]
