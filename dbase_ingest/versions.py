"""
Version byte resolution for dBASE-family tables.

The first byte of every .dbf file identifies the product that wrote it.
Only the label is resolved here; no dialect-specific behaviour hangs
off the version code.
"""

from __future__ import annotations

from dbase_ingest.exceptions import UnsupportedVersionError

KNOWN_VERSIONS: dict[int, str] = {
    0x02: "FoxBase 1.0",
    0x03: "FoxBase 2.x / dBASE III",
    0x83: "FoxBase 2.x / dBASE III with memo file",
    0x30: "Visual FoxPro",
    0x31: "Visual FoxPro with auto increment",
    0x32: "Visual FoxPro with varchar/varbinary",
    0x43: "dBASE IV SQL Table, no memo file",
    0x63: "dBASE IV SQL System, no memo file",
    0x8B: "dBASE IV with memo file",
    0xCB: "dBASE IV SQL Table with memo file",
    0xFB: "FoxPro 2",
    0xF5: "FoxPro 2 with memo file",
}


def is_known_version(code: int) -> bool:
    return code in KNOWN_VERSIONS


def resolve_version(code: int) -> str:
    """Map a version byte to its descriptive label.

    Raises:
        UnsupportedVersionError: If *code* is not one of ``KNOWN_VERSIONS``.
    """
    try:
        return KNOWN_VERSIONS[code]
    except KeyError:
        raise UnsupportedVersionError(code) from None
