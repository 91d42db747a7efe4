"""
Table handle for dbase-ingest.

``DbfTable`` wraps one .dbf source.  Construction reads the source once
and decodes the header and field table; records are decoded lazily on
each call to ``records()``.  The handle then offers the read side
(``records``, ``load``, ``to_dataframe``, ``describe``) and the export
side (``export``) without the caller repeating source or config.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from dbase_ingest.config import DbaseConfig
from dbase_ingest.export import build_fields_table, export_table, records_to_dataframe
from dbase_ingest.fields import FieldDescriptor, FieldTable, decode_fields
from dbase_ingest.header import HEADER_SIZE, Header, decode_header
from dbase_ingest.records import Transform, column_set, iter_records
from dbase_ingest.source import ByteSource, as_source

logger = logging.getLogger(__name__)


@dataclass
class TableInfo:
    """Structured metadata about a table, returned by ``DbfTable.describe()``.

    Attributes:
        source: Source name (file name for path sources).
        version: Resolved version label.
        rec_count: Declared number of record slots (deleted included).
        header_size: Declared header size in bytes.
        record_size: Declared record size in bytes.
        data_offset: Where record data actually starts.
        has_trailing_null: Whether the field table ends with 0x0D 0x00.
        fields: Field names in file order.
    """

    source: str
    version: str
    rec_count: int
    header_size: int
    record_size: int
    data_offset: int
    has_trailing_null: bool
    fields: list[str] = field(default_factory=list)

    @property
    def field_count(self) -> int:
        return len(self.fields)


def check_data_offset(header: Header, table: FieldTable) -> None:
    """Warn when the header's declared size disagrees with the decoded layout."""
    if header.header_size not in (table.data_offset, table.data_offset - 1):
        logger.warning(
            "Header declares %d header bytes but record data starts at byte %d; "
            "using the decoded offset",
            header.header_size, table.data_offset,
        )


class DbfTable:
    """Handle object for a decoded .dbf table.

    Created by ``dbase_ingest.open()``.

    Attributes:
        header: The decoded ``Header``.
        field_table: The decoded ``FieldTable`` (descriptors + data offset).
        config: The ``DbaseConfig`` in effect.
    """

    def __init__(self, source: Any, config: DbaseConfig | None = None) -> None:
        self.config = config or DbaseConfig()
        self._source: ByteSource = as_source(source)
        self._data = self._source.read_all()

        reader = self.config.reader
        self.header = decode_header(self._data)
        self.field_table = decode_fields(
            self._data,
            HEADER_SIZE,
            self.header.record_size if reader.validate_record_size else None,
            encoding=reader.encoding,
            errors=reader.char_decode_errors,
        )
        check_data_offset(self.header, self.field_table)

    # -- Properties ---------------------------------------------------------

    @property
    def fields(self) -> list[FieldDescriptor]:
        return list(self.field_table.fields)

    @property
    def name(self) -> str:
        return self._source.name

    def __repr__(self) -> str:
        return (
            f"DbfTable(source={self.name!r}, rec_count={self.header.rec_count}, "
            f"fields={self.field_table.names})"
        )

    # -- Read side ----------------------------------------------------------

    def records(
        self,
        columns: Iterable[str] | None = None,
        transform: Transform | None = None,
    ) -> Iterator[Any]:
        """Lazily yield active records in file order.

        Args:
            columns: Field names to keep.  Defaults to the config's
                ``columns`` (all fields when unset).
            transform: Optional per-record callable; ``None`` drops the record.
        """
        reader = self.config.reader
        if columns is None:
            columns = self.config.columns
        return iter_records(
            self._data,
            self.field_table.fields,
            self.header.record_size,
            self.header.rec_count,
            data_offset=self.field_table.data_offset,
            columns=columns,
            transform=transform,
            encoding=reader.encoding,
            errors=reader.char_decode_errors,
            unknown=reader.unknown_field_types,
            on_short_buffer=reader.on_short_buffer,
        )

    def load(
        self,
        columns: Iterable[str] | None = None,
        transform: Transform | None = None,
    ) -> list[Any]:
        """Decode every record into a list.  Fails as a whole on format errors."""
        return list(self.records(columns, transform))

    def to_dataframe(self, columns: Iterable[str] | None = None) -> pd.DataFrame:
        """Decode the table into a ``pandas.DataFrame`` (columns in file order)."""
        if columns is None:
            columns = self.config.columns
        columns = column_set(columns)
        return records_to_dataframe(self.records(columns), self.field_table.fields, columns)

    def describe(self) -> TableInfo:
        """Quick metadata lookup without decoding any record."""
        return TableInfo(
            source=self.name,
            version=self.header.version,
            rec_count=self.header.rec_count,
            header_size=self.header.header_size,
            record_size=self.header.record_size,
            data_offset=self.field_table.data_offset,
            has_trailing_null=self.field_table.has_trailing_null,
            fields=self.field_table.names,
        )

    # -- Export side --------------------------------------------------------

    def export(
        self,
        table_name: str | None = None,
        output_dir: str | Path | None = None,
    ) -> list[str]:
        """Write the table (and ``_fields``) using the config's export settings.

        Args:
            table_name: Output file stem.  Defaults to the source file
                stem, or ``"table"`` for in-memory sources.
            output_dir: Overrides ``config.export.output_dir``.

        Returns:
            List of output file paths that were written.
        """
        settings = self.config.export
        if table_name is None:
            stem = Path(self.name).stem
            table_name = stem if stem and not stem.startswith("<") else "table"

        df = self.to_dataframe()
        fields_df = None
        if settings.write_fields_table:
            fields_df = build_fields_table(
                self.header, self.field_table.fields, self.name, len(df)
            )
        return export_table(
            df,
            table_name,
            output_dir if output_dir is not None else settings.output_dir,
            settings.output_format,
            fields_df,
        )
