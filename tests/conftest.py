"""
Shared test fixtures and helpers for dbase-ingest tests.

All tables are synthesised in memory by ``build_dbf()`` -- no binary
fixtures are checked in.  The helper writes the exact byte layout of a
dBASE III file so each test can bend one detail (trailing null, record
size, deleted markers, truncation) at a time.
"""

from __future__ import annotations

import struct

import pytest

# (name, type, length, decimal_count)
FieldSpec = tuple[str, str, int, int]


def field_descriptor(name: str, type_: str, length: int, decimal_count: int = 0) -> bytes:
    """Encode one 32-byte field descriptor."""
    return (
        name.encode("ascii").ljust(11, b"\x00")
        + type_.encode("ascii")
        + b"\x00" * 4
        + bytes([length, decimal_count])
        + b"\x00" * 14
    )


def build_dbf(
    fields: list[FieldSpec],
    records: list[tuple[str, list[str]]],
    *,
    version: int = 0x03,
    rec_count: int | None = None,
    record_size: int | None = None,
    header_size: int | None = None,
    trailing_null: bool = False,
    eof_marker: bool = False,
) -> bytes:
    """Build a complete .dbf byte string.

    Args:
        fields: Field specs in file order.
        records: ``(marker, values)`` per slot; values are padded to the
            field length (right-aligned for 'N', left-aligned otherwise).
        version: Version byte.
        rec_count: Declared record count (defaults to ``len(records)``).
        record_size: Declared record size (defaults to the correct value).
        header_size: Declared header size (defaults to the correct value).
        trailing_null: Append 0x00 after the 0x0D terminator.
        eof_marker: Append a 0x1A byte after the last record.
    """
    descriptors = b"".join(field_descriptor(*f) for f in fields)
    terminator = b"\r\x00" if trailing_null else b"\r"
    if rec_count is None:
        rec_count = len(records)
    if record_size is None:
        record_size = 1 + sum(f[2] for f in fields)
    if header_size is None:
        header_size = 32 + len(descriptors) + len(terminator)

    header = struct.pack(
        "<B3sIHH2scc12scc2s",
        version, bytes([124, 1, 15]), rec_count, header_size, record_size,
        b"\x00\x00", b"\x00", b"\x00", b"\x00" * 12, b"\x00", b"\x57", b"\x00\x00",
    )

    body = b""
    for marker, values in records:
        body += marker.encode("ascii")
        for (_name, type_, length, _dec), value in zip(fields, values):
            raw = value.encode("utf-8")
            body += raw.rjust(length) if type_ == "N" else raw.ljust(length)

    return header + descriptors + terminator + body + (b"\x1a" if eof_marker else b"")


PEOPLE_FIELDS: list[FieldSpec] = [
    ("NAME", "C", 12, 0),
    ("BORN", "D", 8, 0),
    ("AGE", "N", 3, 0),
    ("BALANCE", "N", 8, 2),
    ("NOTES", "M", 10, 0),
]

PEOPLE_RECORDS = [
    (" ", ["John Doe", "19700101", "54", "1234.50", "0000000001"]),
    ("*", ["Jane Roe", "19800202", "44", "10.00", ""]),
    (" ", ["Max Musterma", "19900303", "", "", ""]),
    (" ", ["Ann", "", "abc", "x.y", "0000000002"]),
]


@pytest.fixture()
def people_dbf() -> bytes:
    """Four slots: three active, one deleted; every supported field type."""
    return build_dbf(PEOPLE_FIELDS, PEOPLE_RECORDS)


@pytest.fixture()
def people_path(tmp_path, people_dbf):
    """``people_dbf`` written to ``tmp_path / "people.dbf"``."""
    path = tmp_path / "people.dbf"
    path.write_bytes(people_dbf)
    return path


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (end-to-end decode and export)",
    )
