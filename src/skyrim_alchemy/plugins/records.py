"""
Binary record and group reader for Skyrim plugin files (.esm/.esp/.esl).

Layout reference: https://en.uesp.net/wiki/Skyrim_Mod:Mod_File_Format

A plugin starts with a TES4 header record followed by top-level groups.
Only the groups whose label is asked for are walked; every other group
is skipped by its size. Record payloads are kept raw until
`Record.subrecords()` is called so that a single bad record (corrupt
zlib stream, truncated subrecord) fails on its own.
"""

import logging
import struct
import zlib
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from ..errors import PluginFormatError, RecordDecodeError

logger = logging.getLogger(__name__)

# Record flags
FLAG_MASTER = 0x00000001
FLAG_LOCALIZED = 0x00000080
FLAG_LIGHT_MASTER = 0x00000200
FLAG_COMPRESSED = 0x00040000

GROUP_TYPE = "GRUP"
HEADER_RECORD_TYPE = "TES4"

# type, data size, flags, form id, version control info, form version, unknown
RECORD_HEADER = struct.Struct("<4sIIIIHH")
# type, group size (including header), label, group type, stamp, unknown, version, unknown
GROUP_HEADER = struct.Struct("<4sI4siHHHH")
SUBRECORD_HEADER = struct.Struct("<4sH")
UINT32 = struct.Struct("<I")

# Subrecord that carries the real size of the following oversized subrecord
SUB_XXXX = "XXXX"
SUB_MAST = "MAST"


def _signature(raw: bytes) -> str:
    return raw.decode("cp1252", errors="replace")


@dataclass(slots=True)
class Subrecord:
    """A single subrecord within a record (e.g. EDID, FULL, DATA)."""
    type: str
    data: bytes


@dataclass(slots=True)
class RecordHeader:
    """24-byte record header preceding the record data."""
    type: str
    data_size: int
    flags: int
    form_id: int
    version_control: int = 0
    version: int = 0

    @property
    def is_compressed(self) -> bool:
        return bool(self.flags & FLAG_COMPRESSED)


@dataclass(slots=True)
class GroupHeader:
    """24-byte GRUP header. `size` includes the header itself."""
    size: int
    label: str
    group_type: int
    stamp: int = 0


@dataclass(slots=True)
class Record:
    """A record header plus its still-encoded payload."""
    header: RecordHeader
    raw_data: bytes = b""
    _subrecords: Optional[List[Subrecord]] = field(default=None, repr=False)

    @property
    def type(self) -> str:
        return self.header.type

    @property
    def form_id(self) -> int:
        return self.header.form_id

    def subrecords(self) -> List[Subrecord]:
        """Decompress (if needed) and split the payload into subrecords.

        Raises:
            RecordDecodeError: if the payload is truncated or corrupt
        """
        if self._subrecords is None:
            data = self.raw_data
            if self.header.is_compressed:
                data = _decompress(data, self.header)
            self._subrecords = parse_subrecords(data)
        return self._subrecords

    def find(self, sub_type: str) -> Optional[bytes]:
        """Return the data of the first subrecord of `sub_type`."""
        for sub in self.subrecords():
            if sub.type == sub_type:
                return sub.data
        return None

    def find_all(self, sub_type: str) -> List[bytes]:
        return [sub.data for sub in self.subrecords() if sub.type == sub_type]


@dataclass
class PluginHeader:
    """Data read from the TES4 header record."""
    flags: int
    masters: List[str] = field(default_factory=list)

    @property
    def is_localized(self) -> bool:
        return bool(self.flags & FLAG_LOCALIZED)

    @property
    def is_master(self) -> bool:
        return bool(self.flags & FLAG_MASTER)

    @property
    def is_light(self) -> bool:
        return bool(self.flags & FLAG_LIGHT_MASTER)


def _decompress(data: bytes, header: RecordHeader) -> bytes:
    if len(data) < UINT32.size:
        raise RecordDecodeError(
            f"compressed {header.type} record {header.form_id:08x} is too short"
        )
    (expected_size,) = UINT32.unpack_from(data, 0)
    try:
        decompressed = zlib.decompress(data[UINT32.size:])
    except zlib.error as e:
        raise RecordDecodeError(
            f"failed to decompress {header.type} record {header.form_id:08x}: {e}"
        ) from e
    if len(decompressed) != expected_size:
        raise RecordDecodeError(
            f"{header.type} record {header.form_id:08x} decompressed to "
            f"{len(decompressed)} bytes, expected {expected_size}"
        )
    return decompressed


def parse_subrecords(data: bytes) -> List[Subrecord]:
    """Split a record payload into subrecords.

    Raises:
        RecordDecodeError: if a subrecord runs past the end of the payload
    """
    subrecords: List[Subrecord] = []
    offset = 0
    next_size: Optional[int] = None
    while offset < len(data):
        if offset + SUBRECORD_HEADER.size > len(data):
            raise RecordDecodeError(f"truncated subrecord header at offset {offset}")
        raw_type, size = SUBRECORD_HEADER.unpack_from(data, offset)
        offset += SUBRECORD_HEADER.size
        sub_type = _signature(raw_type)

        if next_size is not None:
            size = next_size
            next_size = None

        if offset + size > len(data):
            raise RecordDecodeError(
                f"subrecord {sub_type} at offset {offset} needs {size} bytes, "
                f"only {len(data) - offset} left"
            )
        payload = data[offset:offset + size]
        offset += size

        if sub_type == SUB_XXXX:
            if len(payload) < UINT32.size:
                raise RecordDecodeError(
                    f"{SUB_XXXX} subrecord at offset {offset - size} has {len(payload)} bytes, "
                    f"expected {UINT32.size}"
                )
            (next_size,) = UINT32.unpack_from(payload, 0)
            continue
        subrecords.append(Subrecord(sub_type, payload))
    return subrecords


def read_record(buffer: bytes, offset: int) -> Tuple[Record, int]:
    """Read the record starting at `offset`; return it and the next offset.

    Raises:
        PluginFormatError: if the record runs past the end of the buffer
    """
    if offset + RECORD_HEADER.size > len(buffer):
        raise PluginFormatError(f"truncated record header at offset {offset}")
    raw_type, data_size, flags, form_id, vc_info, version, _unknown = (
        RECORD_HEADER.unpack_from(buffer, offset)
    )
    start = offset + RECORD_HEADER.size
    end = start + data_size
    if end > len(buffer):
        raise PluginFormatError(
            f"record {_signature(raw_type)} at offset {offset} runs past end of file"
        )
    header = RecordHeader(_signature(raw_type), data_size, flags, form_id, vc_info, version)
    return Record(header, bytes(buffer[start:end])), end


def read_group_header(buffer: bytes, offset: int) -> GroupHeader:
    if offset + GROUP_HEADER.size > len(buffer):
        raise PluginFormatError(f"truncated group header at offset {offset}")
    raw_type, size, raw_label, group_type, stamp, _u1, _version, _u2 = (
        GROUP_HEADER.unpack_from(buffer, offset)
    )
    if _signature(raw_type) != GROUP_TYPE:
        raise PluginFormatError(
            f"expected {GROUP_TYPE} at offset {offset}, found {_signature(raw_type)!r}"
        )
    if size < GROUP_HEADER.size or offset + size > len(buffer):
        raise PluginFormatError(f"group at offset {offset} has invalid size {size}")
    return GroupHeader(size, _signature(raw_label), group_type, stamp)


def read_plugin_header(buffer: bytes) -> Tuple[PluginHeader, int]:
    """Read the TES4 header record.

    Returns:
        The plugin header and the offset of the first top-level group

    Raises:
        PluginFormatError: if the file does not start with a TES4 record
    """
    record, offset = read_record(buffer, 0)
    if record.type != HEADER_RECORD_TYPE:
        raise PluginFormatError(
            f"expected {HEADER_RECORD_TYPE} header record, found {record.type!r}"
        )
    try:
        masters = [parse_zstring(data) for data in record.find_all(SUB_MAST)]
    except RecordDecodeError as e:
        raise PluginFormatError(f"malformed plugin header: {e}") from e
    return PluginHeader(flags=record.header.flags, masters=masters), offset


def iter_records(
    buffer: bytes, record_types: frozenset[str], offset: int
) -> Iterator[Record]:
    """Yield every record of the given types from the top-level groups.

    Args:
        buffer: Whole plugin file contents
        record_types: Labels of the top-level groups to descend into
        offset: Offset of the first top-level group (after the TES4 record)
    """
    while offset < len(buffer):
        group = read_group_header(buffer, offset)
        group_end = offset + group.size
        if group.label in record_types:
            yield from _iter_group_records(buffer, offset + GROUP_HEADER.size, group_end)
        offset = group_end


def _iter_group_records(buffer: bytes, offset: int, end: int) -> Iterator[Record]:
    while offset < end:
        if buffer[offset:offset + 4] == GROUP_TYPE.encode("ascii"):
            group = read_group_header(buffer, offset)
            yield from _iter_group_records(
                buffer, offset + GROUP_HEADER.size, offset + group.size
            )
            offset += group.size
        else:
            record, offset = read_record(buffer, offset)
            yield record
    if offset != end:
        raise PluginFormatError(f"group contents overrun group end at offset {end}")


def parse_string(data: bytes) -> str:
    """Decode a Windows-1252 string."""
    return data.decode("cp1252", errors="replace")


def parse_zstring(data: bytes) -> str:
    """Decode a null-terminated string; anything after the first null is ignored."""
    return parse_string(data.split(b"\x00", 1)[0])
