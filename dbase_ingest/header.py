"""
Fixed 32-byte file header decoder.

Layout (offsets from file start, numeric fields little-endian):

    0      version byte
    1-3    date of last update (YY MM DD, kept raw)
    4-7    number of records (u32)
    8-9    number of bytes in the header (u16)
    10-11  number of bytes in a record (u16)
    12-13  reserved
    14     incomplete dBASE IV transaction flag
    15     dBASE IV encryption flag
    16-27  reserved for multi-user processing
    28     mdx flag (0x01 if an .mdx file exists)
    29     language driver id
    30-31  reserved

Flags and the date are preserved as raw bytes; nothing is interpreted
beyond what the record decoder needs.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any

from dbase_ingest.exceptions import TruncatedHeaderError
from dbase_ingest.versions import resolve_version

HEADER_SIZE = 32

_HEADER_STRUCT = struct.Struct("<B3sIHH2scc12scc2s")


@dataclass(frozen=True)
class Header:
    """Decoded .dbf file header.

    Attributes:
        version_code: Raw version byte.
        last_updated: 3 raw date bytes (YY, MM, DD), not parsed.
        rec_count: Declared number of record slots (active + deleted).
        header_size: Declared header size in bytes, including the field table.
        record_size: Declared size of one record, deletion marker included.
        incomplete_tx_flag: 1 raw byte.
        encryption_flag: 1 raw byte.
        multi_user_reserved: 12 raw bytes.
        mdx_flag: 1 raw byte.
        lang_driver_id: 1 raw byte.
    """

    version_code: int
    last_updated: bytes
    rec_count: int
    header_size: int
    record_size: int
    incomplete_tx_flag: bytes
    encryption_flag: bytes
    multi_user_reserved: bytes
    mdx_flag: bytes
    lang_driver_id: bytes

    @property
    def version(self) -> str:
        """Descriptive version label; raises ``UnsupportedVersionError`` if unknown."""
        return resolve_version(self.version_code)

    def to_dict(self) -> dict[str, Any]:
        """Return the header as a plain dict with the version label resolved."""
        return {
            "version": self.version,
            "last_updated": self.last_updated,
            "rec_count": self.rec_count,
            "header_size": self.header_size,
            "a_rec_size": self.record_size,
            "incomplete_tx_flag": self.incomplete_tx_flag,
            "encryption_flag": self.encryption_flag,
            "multi_user_reserved": self.multi_user_reserved,
            "mdx_flag": self.mdx_flag,
            "lang_driver_id": self.lang_driver_id,
        }


def decode_header(buf: bytes | memoryview) -> Header:
    """Decode the first 32 bytes of *buf* into a ``Header``.

    Bytes beyond the first 32 are ignored.

    Raises:
        TruncatedHeaderError: If *buf* holds fewer than 32 bytes.
    """
    if len(buf) < HEADER_SIZE:
        raise TruncatedHeaderError(0, HEADER_SIZE, len(buf))

    (
        version_code,
        last_updated,
        rec_count,
        header_size,
        record_size,
        _reserved,
        incomplete_tx_flag,
        encryption_flag,
        multi_user_reserved,
        mdx_flag,
        lang_driver_id,
        _reserved_tail,
    ) = _HEADER_STRUCT.unpack_from(buf, 0)

    return Header(
        version_code=version_code,
        last_updated=last_updated,
        rec_count=rec_count,
        header_size=header_size,
        record_size=record_size,
        incomplete_tx_flag=incomplete_tx_flag,
        encryption_flag=encryption_flag,
        multi_user_reserved=multi_user_reserved,
        mdx_flag=mdx_flag,
        lang_driver_id=lang_driver_id,
    )
