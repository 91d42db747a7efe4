"""
Integration tests: public API end-to-end.

Runs ``parse()``, ``field_info()``, ``header_info()`` and ``open()``
against complete synthetic tables, from bytes, from disk and from
streams.
"""

from __future__ import annotations

import io
import struct
from decimal import Decimal

import pytest

import dbase_ingest
from dbase_ingest import (
    FieldDescriptor,
    TruncatedFieldTableError,
    TruncatedHeaderError,
    TruncatedRecordError,
    UnsupportedVersionError,
)
from tests.conftest import PEOPLE_FIELDS, PEOPLE_RECORDS, build_dbf, field_descriptor


def _john_doe_table() -> bytes:
    """Header says 2 records, header_size 97, record size 13; one 'NAME' field."""
    header = struct.pack(
        "<B3sIHH2scc12scc2s",
        0x03, b"\x7c\x01\x0f", 2, 97, 13,
        b"\x00\x00", b"\x00", b"\x00", b"\x00" * 12, b"\x00", b"\x00", b"\x00\x00",
    )
    return (
        header
        + field_descriptor("NAME", "C", 12)
        + b"\x0d"
        + b" John Doe    "
        + b"*Jane Roe    "
    )


@pytest.mark.integration
class TestParse:
    """parse() against whole tables."""

    def test_john_doe(self):
        assert dbase_ingest.parse(_john_doe_table()) == [{"NAME": "John Doe"}]

    def test_from_path(self, people_path):
        records = dbase_ingest.parse(people_path)
        assert len(records) == 3
        assert records[0]["BALANCE"] == Decimal("1234.50")

    def test_from_str_path(self, people_path):
        assert dbase_ingest.parse(str(people_path)) == dbase_ingest.parse(people_path)

    def test_from_stream(self, people_dbf):
        assert len(dbase_ingest.parse(io.BytesIO(people_dbf))) == 3

    def test_trailing_null_layout_gives_same_records(self):
        plain = build_dbf(PEOPLE_FIELDS, PEOPLE_RECORDS)
        padded = build_dbf(PEOPLE_FIELDS, PEOPLE_RECORDS, trailing_null=True)
        assert dbase_ingest.parse(plain) == dbase_ingest.parse(padded)

    def test_columns_subset(self, people_dbf):
        records = dbase_ingest.parse(people_dbf, columns={"NAME", "AGE"})
        assert all(set(r) <= {"NAME", "AGE"} for r in records)

    def test_transform_drop(self, people_dbf):
        records = dbase_ingest.parse(
            people_dbf, transform=lambda r: None if r["NAME"] == "Ann" else r
        )
        assert [r["NAME"] for r in records] == ["John Doe", "Max Musterma"]

    def test_all_deleted(self):
        data = build_dbf([("A", "C", 1, 0)], [("*", ["x"]), ("*", ["y"])])
        assert dbase_ingest.parse(data) == []

    def test_unknown_version_still_parses(self):
        """Only the header query needs the version label."""
        data = build_dbf([("A", "C", 1, 0)], [(" ", ["x"])], version=0x99)
        assert dbase_ingest.parse(data) == [{"A": "x"}]

    def test_truncated_record_no_partial_result(self, people_dbf):
        with pytest.raises(TruncatedRecordError):
            dbase_ingest.parse(people_dbf[:-1])

    def test_truncated_header(self):
        with pytest.raises(TruncatedHeaderError):
            dbase_ingest.parse(b"\x03\x00")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            dbase_ingest.parse(tmp_path / "missing.dbf")


@pytest.mark.integration
class TestFieldInfo:
    """field_info() reads only the header area."""

    def test_people(self, people_path):
        fields = dbase_ingest.field_info(people_path)
        assert fields[3] == FieldDescriptor("BALANCE", "N", 8, 2)
        assert [f.name for f in fields] == ["NAME", "BORN", "AGE", "BALANCE", "NOTES"]

    def test_header_size_larger_than_table(self):
        fields = dbase_ingest.field_info(_john_doe_table())
        assert fields == [FieldDescriptor("NAME", "C", 12, 0)]

    def test_header_size_too_small_falls_back(self):
        data = build_dbf(PEOPLE_FIELDS, PEOPLE_RECORDS, header_size=40)
        assert len(dbase_ingest.field_info(data)) == 5

    def test_truncated_field_table(self):
        data = build_dbf(PEOPLE_FIELDS, [])[:100]
        with pytest.raises(TruncatedFieldTableError):
            dbase_ingest.field_info(data)


@pytest.mark.integration
class TestHeaderInfo:
    def test_header(self, people_path):
        header = dbase_ingest.header_info(people_path)
        assert header.version == "FoxBase 2.x / dBASE III"
        assert header.rec_count == 4
        assert header.record_size == 42

    def test_unknown_version_fails(self):
        data = build_dbf([("A", "C", 1, 0)], [], version=0x99)
        with pytest.raises(UnsupportedVersionError):
            dbase_ingest.header_info(data)

    def test_header_only_file(self):
        header = dbase_ingest.header_info(_john_doe_table()[:32])
        assert header.header_size == 97


@pytest.mark.integration
class TestOpen:
    def test_open_and_describe(self, people_path):
        table = dbase_ingest.open(people_path)
        info = table.describe()
        assert info.fields == ["NAME", "BORN", "AGE", "BALANCE", "NOTES"]
        assert len(table.load()) == 3
