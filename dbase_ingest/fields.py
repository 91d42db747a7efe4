"""
Field descriptor table decoder.

The table starts right after the 32-byte header and is a run of 32-byte
descriptors closed by a single 0x0D terminator byte:

    0-10   field name, null padded
    11     type tag ('C', 'D', 'N', 'M', ...)
    12-15  ignored (field data address in some dialects)
    16     field length (u8)
    17     decimal count (u8)
    18-31  ignored

Dialect quirk: some writers put one 0x00 byte after the terminator,
others start record data immediately.  The decoder looks one byte ahead
and swallows the null if it is there.  Record data can never start
with 0x00 (every record opens with a ' ' or '*' deletion marker), so the
look-ahead is unambiguous for well-formed files.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Any

from dbase_ingest.coerce import FieldType
from dbase_ingest.exceptions import RecordSizeMismatchError, TruncatedFieldTableError
from dbase_ingest.header import HEADER_SIZE

logger = logging.getLogger(__name__)

FIELD_DESCRIPTOR_SIZE = 32
FIELD_TERMINATOR = 0x0D

_DESCRIPTOR_STRUCT = struct.Struct("<11sc4sBB14s")


@dataclass(frozen=True)
class FieldDescriptor:
    """One column of a .dbf table.

    Attributes:
        name: Field name with null padding removed.
        type: Single-character type tag as stored in the file.
        length: Width of the field inside a record, in bytes.
        decimal_count: Number of fractional digits for numeric fields.
    """

    name: str
    type: str
    length: int
    decimal_count: int

    @property
    def field_type(self) -> FieldType | None:
        """The known ``FieldType`` for this tag, or ``None`` if unhandled."""
        return FieldType.from_tag(self.type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "length": self.length,
            "decimal_count": self.decimal_count,
        }


@dataclass(frozen=True)
class FieldTable:
    """Result of decoding the descriptor table.

    Attributes:
        fields: Descriptors in file order (this order defines record layout).
        data_offset: Absolute offset of the first record's deletion marker.
        has_trailing_null: Whether a 0x00 byte followed the terminator.
    """

    fields: tuple[FieldDescriptor, ...]
    data_offset: int
    has_trailing_null: bool

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def record_body_size(self) -> int:
        """Sum of all field lengths (record size without the deletion marker)."""
        return sum(f.length for f in self.fields)


def _decode_descriptor(
    buf: bytes | memoryview,
    pos: int,
    encoding: str,
    errors: str,
) -> FieldDescriptor:
    raw_name, raw_type, _address, length, decimal_count, _rest = (
        _DESCRIPTOR_STRUCT.unpack_from(buf, pos)
    )
    # Trim at the first null; whatever follows it is padding
    name = raw_name.split(b"\x00", 1)[0].decode(encoding, errors)
    return FieldDescriptor(
        name=name,
        type=raw_type.decode("latin-1"),
        length=length,
        decimal_count=decimal_count,
    )


def decode_fields(
    buf: bytes | memoryview,
    offset: int = HEADER_SIZE,
    record_size: int | None = None,
    *,
    encoding: str = "utf-8",
    errors: str = "replace",
) -> FieldTable:
    """Decode the field descriptor table starting at *offset* in *buf*.

    Args:
        buf: Buffer holding (at least) the descriptor table.
        offset: Position of the first descriptor inside *buf*.  Pass 0
            when *buf* was read starting at byte 32 of the file.
        record_size: Record size declared in the header.  When given,
            the table is checked against ``sum(lengths) + 1``.
        encoding: Codec used for field names.
        errors: Codec error handler for field names.

    Returns:
        A ``FieldTable``.  ``data_offset`` is relative to *buf*.

    Raises:
        TruncatedFieldTableError: If a descriptor is cut short or the
            buffer ends before the terminator.
        RecordSizeMismatchError: If *record_size* is given and does not
            match the decoded field lengths.
    """
    end = len(buf)
    pos = offset
    fields: list[FieldDescriptor] = []

    while True:
        if pos >= end:
            raise TruncatedFieldTableError(pos, 1, 0)
        if buf[pos] == FIELD_TERMINATOR:
            break
        if end - pos < FIELD_DESCRIPTOR_SIZE:
            raise TruncatedFieldTableError(pos, FIELD_DESCRIPTOR_SIZE, end - pos)
        field = _decode_descriptor(buf, pos, encoding, errors)
        fields.append(field)
        pos += FIELD_DESCRIPTOR_SIZE

    pos += 1  # terminator
    has_trailing_null = pos < end and buf[pos] == 0x00
    if has_trailing_null:
        pos += 1

    logger.debug(
        "Decoded %d field descriptors; trailing null=%s, data offset=%d",
        len(fields), has_trailing_null, pos,
    )

    table = FieldTable(
        fields=tuple(fields),
        data_offset=pos,
        has_trailing_null=has_trailing_null,
    )
    body_size = table.record_body_size
    if record_size is not None and body_size + 1 != record_size:
        raise RecordSizeMismatchError(
            f"Field lengths sum to {body_size} (+1 deletion byte = {body_size + 1}) "
            f"but the header declares a record size of {record_size}"
        )
    return table
