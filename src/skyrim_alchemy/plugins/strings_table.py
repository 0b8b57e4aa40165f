"""
Localized string tables.

Localized plugins store names and descriptions as 32-bit string ids that
index into `Strings/<plugin>_<language>.STRINGS` (plus `.DLSTRINGS` and
`.ILSTRINGS`). Only loose files are read; strings packed inside BSA
archives are not available.

File layout: u32 count, u32 data size, `count` directory entries of
(u32 id, u32 offset), then the string data. `.strings` entries are plain
zstrings; the other two kinds prefix each string with a u32 length.
"""

import logging
import struct
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import RecordDecodeError
from .records import parse_string, parse_zstring

logger = logging.getLogger(__name__)

STRINGS_DIR = "Strings"
STRINGS_EXTENSIONS = ("strings", "dlstrings", "ilstrings")

_HEADER = struct.Struct("<II")
_ENTRY = struct.Struct("<II")
_LENGTH = struct.Struct("<I")


class StringsTable:
    """One strings file, loaded on first lookup."""

    def __init__(self, path: Path):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.path = Path(path)
        self.length_prefixed = self.path.suffix.lower() != ".strings"
        self._offsets: Optional[Dict[int, int]] = None
        self._data = b""

    def _load(self) -> Dict[int, int]:
        if self._offsets is not None:
            return self._offsets

        raw = self.path.read_bytes()
        if len(raw) < _HEADER.size:
            raise RecordDecodeError(f"strings file {self.path} is truncated")
        count, data_size = _HEADER.unpack_from(raw, 0)
        data_start = _HEADER.size + count * _ENTRY.size
        if data_start + data_size > len(raw):
            raise RecordDecodeError(
                f"strings file {self.path} declares {data_size} bytes of data, "
                f"only {len(raw) - data_start} present"
            )

        offsets = {
            string_id: offset
            for string_id, offset in _ENTRY.iter_unpack(raw[_HEADER.size:data_start])
        }
        self._data = raw[data_start:data_start + data_size]
        self._offsets = offsets
        self.logger.debug(f"Loaded {count} strings from {self.path.name}")
        return offsets

    def get(self, string_id: int) -> Optional[str]:
        """Return the string with `string_id`, or None if not in this table."""
        offset = self._load().get(string_id)
        if offset is None or offset >= len(self._data):
            return None
        if self.length_prefixed:
            if offset + _LENGTH.size > len(self._data):
                raise RecordDecodeError(
                    f"string {string_id:#x} in {self.path.name} has a truncated length prefix"
                )
            (length,) = _LENGTH.unpack_from(self._data, offset)
            start = offset + _LENGTH.size
            return parse_zstring(self._data[start:start + length])
        end = self._data.find(b"\x00", offset)
        if end < 0:
            end = len(self._data)
        return parse_string(self._data[offset:end])

    def __len__(self) -> int:
        return len(self._load())


def find_strings_files(plugin_name: str, plugins_path: Path, language: str) -> List[Path]:
    """Locate the loose strings files of a plugin.

    File names are matched case-insensitively since the game ships them in
    mixed case. Returned in `.strings`, `.dlstrings`, `.ilstrings` order.
    """
    strings_dir = Path(plugins_path) / STRINGS_DIR
    if not strings_dir.is_dir():
        # Case-insensitive match for the directory itself
        matches = [
            d for d in Path(plugins_path).iterdir()
            if d.is_dir() and d.name.lower() == STRINGS_DIR.lower()
        ] if Path(plugins_path).is_dir() else []
        if not matches:
            return []
        strings_dir = matches[0]

    by_lower_name = {f.name.lower(): f for f in strings_dir.iterdir() if f.is_file()}
    stem = Path(plugin_name).stem.lower()
    found: List[Path] = []
    for extension in STRINGS_EXTENSIONS:
        candidate = by_lower_name.get(f"{stem}_{language.lower()}.{extension}")
        if candidate is not None:
            found.append(candidate)
    return found


class StringsLookup:
    """Resolves localized string ids for one plugin across its tables."""

    def __init__(self, tables: List[StringsTable], plugin_name: str = ""):
        self.tables = tables
        self.plugin_name = plugin_name
        self._warned = False

    @classmethod
    def for_plugin(cls, plugin_name: str, plugins_path: Path, language: str) -> "StringsLookup":
        paths = find_strings_files(plugin_name, plugins_path, language)
        return cls([StringsTable(path) for path in paths], plugin_name)

    def get(self, string_id: int) -> Optional[str]:
        for table in self.tables:
            value = table.get(string_id)
            if value is not None:
                return value
        return None

    def resolve(self, raw: bytes) -> str:
        """Resolve an lstring subrecord payload (a u32 string id) to text.

        Unknown ids and plugins without strings files resolve to "".
        """
        if not self.tables:
            if not self._warned:
                logger.warning(
                    f"No loose strings files found for localized plugin {self.plugin_name}"
                )
                self._warned = True
            return ""
        if len(raw) < _LENGTH.size:
            raise RecordDecodeError(f"lstring payload has {len(raw)} bytes, expected 4")
        (string_id,) = _LENGTH.unpack_from(raw, 0)
        if string_id == 0:
            return ""
        value = self.get(string_id)
        if value is None:
            logger.debug(f"String id {string_id:#x} not found for {self.plugin_name}")
            return ""
        return value
