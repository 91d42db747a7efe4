"""
dbase-ingest: Python library for decoding dBASE III (.dbf) tables.

Public API surface:

- ``parse(source, columns=None, transform=None)`` -- decode every active
  record into a list of dicts (field name -> value).

- ``field_info(source)`` -- the field descriptors, read from the header
  area only.

- ``header_info(source)`` -- the decoded 32-byte header, with the
  version byte resolved to its label.

- ``open(source, config=None)`` -- a ``DbfTable`` handle for repeated
  reads, DataFrame conversion and export.

*source* can be ``bytes``, a filesystem path, a seekable binary stream
or any ``ByteSource``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from dbase_ingest.config import DbaseConfig, ExportConfig, ReaderConfig, load_config
from dbase_ingest.exceptions import (
    DbaseIngestError,
    DbfFormatError,
    RecordSizeMismatchError,
    TruncatedFieldTableError,
    TruncatedHeaderError,
    TruncatedRecordError,
    UnsupportedFieldTypeError,
    UnsupportedVersionError,
)
from dbase_ingest.fields import FieldDescriptor, decode_fields
from dbase_ingest.header import HEADER_SIZE, Header, decode_header
from dbase_ingest.records import Transform
from dbase_ingest.source import as_source
from dbase_ingest.table import DbfTable, TableInfo

__all__ = [
    "parse",
    "field_info",
    "header_info",
    "open",
    "DbfTable",
    "TableInfo",
    "Header",
    "FieldDescriptor",
    "DbaseConfig",
    "ReaderConfig",
    "ExportConfig",
    "load_config",
    "DbaseIngestError",
    "DbfFormatError",
    "TruncatedHeaderError",
    "TruncatedFieldTableError",
    "TruncatedRecordError",
    "RecordSizeMismatchError",
    "UnsupportedVersionError",
    "UnsupportedFieldTypeError",
]

logger = logging.getLogger(__name__)


def open(source: Any, config: DbaseConfig | None = None) -> DbfTable:
    """Open a .dbf source and decode its header and field table.

    Raises:
        OSError: If the source cannot be read (propagated unchanged).
        DbfFormatError: If the header or field table is malformed.
    """
    table = DbfTable(source, config)
    logger.info(
        "open() -- %s: %d record slots, %d fields",
        table.name, table.header.rec_count, len(table.field_table.fields),
    )
    return table


def parse(
    source: Any,
    columns: Iterable[str] | None = None,
    transform: Transform | None = None,
    config: DbaseConfig | None = None,
) -> list[Any]:
    """Decode all active records of a .dbf table.

    Args:
        source: bytes, path, seekable binary stream or ``ByteSource``.
        columns: Field names to keep.  ``None`` or empty keeps all.
        transform: Optional callable applied to each record dict.
            Returning ``None`` drops the record.
        config: Optional ``DbaseConfig``; defaults apply when omitted.

    Returns:
        Records in file order.  Deleted records never appear.

    Raises:
        OSError: If the source cannot be read.
        TruncatedHeaderError, TruncatedFieldTableError, TruncatedRecordError,
        RecordSizeMismatchError: On structural corruption.  No partial
            result is returned.
        UnsupportedFieldTypeError: For unknown type tags in strict mode.

    Example::

        rows = dbase_ingest.parse("customers.dbf", columns=["NAME", "CITY"])
    """
    return DbfTable(source, config).load(columns, transform)


def field_info(source: Any, config: DbaseConfig | None = None) -> list[FieldDescriptor]:
    """Return the field descriptors of a .dbf table.

    Only the header area is read: bytes ``[0, header_size + 1)``.  If
    the declared header size is too small to hold the whole descriptor
    table, the full source is read instead.
    """
    reader = (config or DbaseConfig()).reader
    src = as_source(source)

    head = src.read_range(0, HEADER_SIZE)
    header = decode_header(head)
    # +1 past header_size covers the optional null after the terminator
    range_size = max(header.header_size + 1 - HEADER_SIZE, 0)
    chunk = src.read_range(HEADER_SIZE, range_size)
    record_size = header.record_size if reader.validate_record_size else None

    try:
        table = decode_fields(
            head + chunk,
            HEADER_SIZE,
            record_size,
            encoding=reader.encoding,
            errors=reader.char_decode_errors,
        )
    except TruncatedFieldTableError:
        if len(chunk) < range_size:
            raise
        logger.debug(
            "Field table extends past declared header size %d; reading full source",
            header.header_size,
        )
        table = decode_fields(
            src.read_all(),
            HEADER_SIZE,
            record_size,
            encoding=reader.encoding,
            errors=reader.char_decode_errors,
        )
    return list(table.fields)


def header_info(source: Any) -> Header:
    """Return the decoded file header.

    The version label is resolved eagerly.

    Raises:
        TruncatedHeaderError: If the source holds fewer than 32 bytes.
        UnsupportedVersionError: If the version byte is unknown.
    """
    header = decode_header(as_source(source).read_range(0, HEADER_SIZE))
    label = header.version
    logger.debug("header_info() -- version %s", label)
    return header
