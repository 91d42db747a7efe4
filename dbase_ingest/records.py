"""
Record decoding loop.

Record data is a run of fixed-size slots.  Each slot opens with one
deletion-marker byte (' ' = active, anything else, conventionally '*',
= deleted) followed by the field slices in descriptor order.

Per slot the decoder:
1. Skips deleted slots without decoding any field.
2. Slices each selected field, trims surrounding whitespace and
   coerces it (see ``coerce.py``).  Unselected fields are never sliced;
   their offsets are precomputed.
3. Passes the record dict through the optional transform.  A ``None``
   result drops the record.

Termination: after ``rec_count`` slots, or earlier when the buffer runs
out on a slot boundary (or hits the 0x1A end-of-file marker).  The
early stop is silent by default; ``on_short_buffer="error"`` turns it
into ``TruncatedRecordError``.  A partial slot is always fatal.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, Literal

from dbase_ingest.coerce import Coercer, build_coercer
from dbase_ingest.exceptions import RecordSizeMismatchError, TruncatedRecordError
from dbase_ingest.fields import FieldDescriptor

logger = logging.getLogger(__name__)

ACTIVE_MARKER = 0x20  # b" "
EOF_MARKER = 0x1A

Record = dict[str, Any]
Transform = Callable[[Record], Any]


def column_set(columns: Iterable[str] | None) -> set[str] | None:
    """Normalise a projection; ``None`` means all fields.

    A bare string names a single field rather than a set of characters.
    """
    if not columns:
        return None
    if isinstance(columns, str):
        return {columns}
    return set(columns)


def _build_plan(
    fields: Sequence[FieldDescriptor],
    record_size: int,
    columns: set[str] | None,
    *,
    encoding: str,
    errors: str,
    unknown: Literal["text", "error"],
) -> list[tuple[str, int, int, Coercer]]:
    """Precompute ``(name, start, stop, coercer)`` for every selected field.

    Offsets are relative to the slot start, so the first field begins at
    1 (after the deletion marker).
    """
    plan: list[tuple[str, int, int, Coercer]] = []
    start = 1
    for field in fields:
        stop = start + field.length
        if stop > record_size:
            raise RecordSizeMismatchError(
                f"Field {field.name!r} ends at byte {stop} of the record "
                f"but records are only {record_size} bytes"
            )
        if columns is None or field.name in columns:
            coercer = build_coercer(
                field.type,
                field.decimal_count,
                encoding=encoding,
                errors=errors,
                unknown=unknown,
                field_name=field.name,
            )
            plan.append((field.name, start, stop, coercer))
        start = stop
    return plan


def iter_records(
    buf: bytes,
    fields: Sequence[FieldDescriptor],
    record_size: int,
    rec_count: int,
    *,
    data_offset: int = 0,
    columns: Iterable[str] | None = None,
    transform: Transform | None = None,
    encoding: str = "utf-8",
    errors: str = "replace",
    unknown: Literal["text", "error"] = "text",
    on_short_buffer: Literal["stop", "error"] = "stop",
) -> Iterator[Any]:
    """Lazily decode records from *buf*.

    Args:
        buf: Buffer holding the record data.
        fields: Field descriptors in file order.
        record_size: Slot size in bytes, deletion marker included.
        rec_count: Number of slots declared in the header.
        data_offset: Position of the first slot inside *buf*.
        columns: Field names to materialise.  ``None`` or empty = all.
        transform: Optional per-record callable; returning ``None``
            drops the record.
        encoding: Codec for Character/Date values.
        errors: Codec error handler.
        unknown: Policy for type tags outside C/D/M/N.
        on_short_buffer: ``"stop"`` ends quietly when the buffer runs out
            before *rec_count* slots; ``"error"`` raises instead.

    Yields:
        One dict per active, non-dropped record (or whatever *transform*
        returned for it), in file order.

    Raises:
        TruncatedRecordError: On a partial slot, or on an early end of
            buffer when *on_short_buffer* is ``"error"``.
        RecordSizeMismatchError: If the fields do not fit in *record_size*.
    """
    selected = column_set(columns)
    plan = _build_plan(
        fields,
        record_size,
        selected,
        encoding=encoding,
        errors=errors,
        unknown=unknown,
    )

    end = len(buf)
    emitted = deleted = dropped = 0
    pos = data_offset

    for index in range(rec_count):
        remaining = end - pos
        if remaining <= 0 or (remaining < record_size and buf[pos] == EOF_MARKER):
            if on_short_buffer == "error":
                raise TruncatedRecordError(pos, record_size, max(remaining, 0))
            logger.warning(
                "Record data ended after %d of %d declared slots", index, rec_count
            )
            break
        if remaining < record_size:
            raise TruncatedRecordError(pos, record_size, remaining)

        if buf[pos] != ACTIVE_MARKER:
            deleted += 1
            pos += record_size
            continue

        record: Record = {
            name: coercer(buf[pos + start:pos + stop].strip())
            for name, start, stop, coercer in plan
        }
        pos += record_size

        if transform is not None:
            result = transform(record)
            if result is None:
                dropped += 1
                continue
        else:
            result = record

        emitted += 1
        yield result

    logger.info(
        "Decoded %d records (%d deleted, %d dropped by transform)",
        emitted, deleted, dropped,
    )


def decode_records(buf: bytes, fields: Sequence[FieldDescriptor], record_size: int,
                   rec_count: int, **kwargs: Any) -> list[Any]:
    """Eagerly decode all records; all-or-nothing on errors."""
    return list(iter_records(buf, fields, record_size, rec_count, **kwargs))
