"""
DataFrame conversion and exporter for dbase-ingest.

Turns decoded records into a pandas DataFrame and writes it, together
with a ``_fields`` schema table, to the output directory in CSV or
Parquet.

Output file naming convention:
  {table_name}.{format}   -- e.g., "customers.parquet"
  "_fields.{format}"      -- one row per field descriptor (lineage).

Column dtypes follow the field types:
- Numeric with decimal_count == 0 -> nullable ``Int64`` for fields up to
  18 bytes wide; wider fields stay ``object`` holding Python ``int``.
- Numeric with decimals -> ``object`` holding ``decimal.Decimal``
  (Parquet stores them as ``decimal128`` via PyArrow).
- Character / Date / unknown -> ``object`` strings.
- Memo -> all-null ``object`` column.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from dbase_ingest.coerce import FieldType
from dbase_ingest.exceptions import ExportError
from dbase_ingest.fields import FieldDescriptor
from dbase_ingest.header import Header
from dbase_ingest.records import column_set

logger = logging.getLogger(__name__)

_SUPPORTED_FORMATS = {"csv", "parquet"}

# Widest N field whose values always fit in int64 (sign included)
_INT64_SAFE_WIDTH = 18
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_FIELDS_COLUMNS = [
    "source_file", "version", "last_updated", "rec_count", "rows_exported",
    "position", "name", "type", "length", "decimal_count", "processed_at",
]


def records_to_dataframe(
    records: Iterable[dict[str, Any]],
    fields: Sequence[FieldDescriptor],
    columns: Iterable[str] | None = None,
) -> pd.DataFrame:
    """Build a DataFrame with one column per (selected) field, in file order.

    Integer columns become nullable ``Int64`` so that tables with no
    rows, or rows dropped by a transform, keep a stable schema.
    """
    selected = column_set(columns)
    kept = [f for f in fields if selected is None or f.name in selected]
    names = [f.name for f in kept]

    df = pd.DataFrame.from_records(list(records), columns=names)

    for field in kept:
        if (
            field.field_type is FieldType.NUMERIC
            and field.decimal_count == 0
            and field.length <= _INT64_SAFE_WIDTH
        ):
            df[field.name] = df[field.name].astype("Int64")
        else:
            df[field.name] = df[field.name].astype(object)
    return df


def build_fields_table(
    header: Header,
    fields: Sequence[FieldDescriptor],
    source_name: str,
    rows_exported: int,
) -> pd.DataFrame:
    """Build the ``_fields`` lineage table: one row per field descriptor.

    Source-level columns (source file, version label, raw last-updated
    bytes as hex, declared record count) repeat on every row.
    """
    processed_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    rows = [
        {
            "source_file": source_name,
            "version": header.version,
            "last_updated": header.last_updated.hex(),
            "rec_count": header.rec_count,
            "rows_exported": rows_exported,
            "position": position,
            "processed_at": processed_at,
            **field.to_dict(),
        }
        for position, field in enumerate(fields)
    ]
    # Explicit column order keeps the schema stable for zero-field tables
    return pd.DataFrame(rows, columns=_FIELDS_COLUMNS)


def _widen_big_ints(df: pd.DataFrame) -> pd.DataFrame:
    """Turn object columns holding ints beyond int64 into ``Decimal``.

    PyArrow cannot infer an int64 column for them; as Decimal they are
    written as ``decimal128``.
    """
    out = df
    for col in df.columns:
        series = df[col]
        if series.dtype != object:
            continue
        if any(
            isinstance(v, int) and not _INT64_MIN <= v <= _INT64_MAX for v in series
        ):
            if out is df:
                out = df.copy()
            out[col] = series.map(lambda v: Decimal(v) if isinstance(v, int) else v)
    return out


def _write_dataframe(
    df: pd.DataFrame,
    path: Path,
    output_format: str,
) -> None:
    """Write a single DataFrame to disk in the specified format.

    Raises:
        ExportError: If writing fails for any reason.
    """
    try:
        if output_format == "csv":
            df.to_csv(path, index=False, encoding="utf-8")
        else:  # parquet
            _widen_big_ints(df).to_parquet(path, index=False, engine="pyarrow")
    except Exception as exc:
        raise ExportError(
            f"Failed to write {path.name} as {output_format}: {exc}"
        ) from exc


def export_table(
    df: pd.DataFrame,
    table_name: str,
    output_dir: str | Path,
    output_format: Literal["csv", "parquet"] = "parquet",
    fields_df: pd.DataFrame | None = None,
) -> list[str]:
    """Write a data table and, optionally, its ``_fields`` table to disk.

    The output directory is created recursively if it does not exist.

    Args:
        df: The decoded records.
        table_name: File stem for the data table.
        output_dir: Directory to write files into (created if needed).
        output_format: "csv" or "parquet".
        fields_df: Optional ``_fields`` table from ``build_fields_table``.

    Returns:
        List of file paths written: the data table first, then ``_fields``.

    Raises:
        ExportError: If *output_format* is unsupported, or if any write fails.
    """
    if output_format not in _SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported output format: '{output_format}'. "
            f"Supported formats: {sorted(_SUPPORTED_FORMATS)}"
        )

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    written: list[str] = []

    file_path = out / f"{table_name}.{output_format}"
    _write_dataframe(df, file_path, output_format)
    written.append(str(file_path))
    logger.info(
        "Exported table '%s' -> %s (%d rows, %d cols)",
        table_name, file_path.name, len(df), len(df.columns),
    )

    if fields_df is not None:
        fields_path = out / f"_fields.{output_format}"
        _write_dataframe(fields_df, fields_path, output_format)
        written.append(str(fields_path))
        logger.info("Exported _fields -> %s (%d rows)", fields_path.name, len(fields_df))

    return written
