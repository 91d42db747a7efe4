"""
Type coercion for raw field slices.

Each field slice arrives already trimmed of surrounding whitespace and
is turned into a Python value according to its type tag:

    'C'  Character  -> str
    'D'  Date       -> str, raw YYYYMMDD text (no calendar parsing)
    'M'  Memo       -> None (memo files are never resolved)
    'N'  Numeric    -> int when decimal_count == 0, else decimal.Decimal

Malformed numeric cells are common in legacy tables, so they degrade
to zero at the declared scale instead of aborting the read.  Parsing
uses explicit try-parse helpers that return ``None`` on failure; no
broad exception handler is involved.

Tags outside C/D/M/N are decided by the ``unknown`` policy:
``"text"`` passes the slice through as ``str``, ``"error"`` raises
``UnsupportedFieldTypeError``.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Callable, Literal, Union

from dbase_ingest.exceptions import UnsupportedFieldTypeError

logger = logging.getLogger(__name__)

Value = Union[str, int, Decimal, None]
Coercer = Callable[[bytes], Value]

DECIMAL_ZERO = Decimal("0.00")

_INT_RE = re.compile(rb"[+-]?\d+")
_DECIMAL_RE = re.compile(rb"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class FieldType(str, Enum):
    """Field type tags handled by the decoder."""

    CHARACTER = "C"
    DATE = "D"
    NUMERIC = "N"
    MEMO = "M"

    @classmethod
    def from_tag(cls, tag: str) -> FieldType | None:
        try:
            return cls(tag)
        except ValueError:
            return None


@lru_cache(maxsize=None)
def decimal_zero(scale: int) -> Decimal:
    """Zero with *scale* fractional digits, e.g. ``Decimal('0.00')`` for 2."""
    if scale == 2:
        return DECIMAL_ZERO
    return Decimal(0).scaleb(-scale)


def try_parse_int(raw: bytes) -> int | None:
    """Parse a signed base-10 integer, or return ``None``."""
    if _INT_RE.fullmatch(raw) is None:
        return None
    return int(raw.decode("ascii"))


def try_parse_decimal(raw: bytes) -> Decimal | None:
    """Parse a plain decimal literal, or return ``None``.

    NaN, Infinity and underscore separators are rejected.
    """
    if _DECIMAL_RE.fullmatch(raw) is None:
        return None
    return Decimal(raw.decode("ascii"))


def build_coercer(
    type_tag: str,
    decimal_count: int,
    *,
    encoding: str = "utf-8",
    errors: str = "replace",
    unknown: Literal["text", "error"] = "text",
    field_name: str = "",
) -> Coercer:
    """Return a callable that converts a trimmed slice for one field.

    Dispatch on the type tag happens here, once per field, so the
    record loop only calls the returned function.

    Raises:
        UnsupportedFieldTypeError: If the tag is unknown and *unknown*
            is ``"error"``.
    """
    field_type = FieldType.from_tag(type_tag)

    def as_text(raw: bytes) -> str:
        return raw.decode(encoding, errors)

    if field_type is FieldType.CHARACTER or field_type is FieldType.DATE:
        return as_text

    if field_type is FieldType.MEMO:
        return lambda raw: None

    if field_type is FieldType.NUMERIC:
        if decimal_count == 0:
            def as_int(raw: bytes) -> int:
                if not raw:
                    return 0
                value = try_parse_int(raw)
                if value is None:
                    logger.warning(
                        "Malformed integer %r in field %r; using 0", raw, field_name
                    )
                    return 0
                return value

            return as_int

        zero = decimal_zero(decimal_count)

        def as_decimal(raw: bytes) -> Decimal:
            if not raw:
                return zero
            value = try_parse_decimal(raw)
            if value is None:
                logger.warning(
                    "Malformed decimal %r in field %r; using %s", raw, field_name, zero
                )
                return zero
            return value

        return as_decimal

    # Unhandled tag
    if unknown == "error":
        raise UnsupportedFieldTypeError(
            f"Field {field_name!r} has unsupported type tag {type_tag!r}"
        )
    return as_text


def coerce_value(
    raw: bytes,
    type_tag: str,
    decimal_count: int = 0,
    *,
    encoding: str = "utf-8",
    errors: str = "replace",
    unknown: Literal["text", "error"] = "text",
) -> Value:
    """Convert a single trimmed slice.  See ``build_coercer`` for the rules."""
    coercer = build_coercer(
        type_tag,
        decimal_count,
        encoding=encoding,
        errors=errors,
        unknown=unknown,
    )
    return coercer(raw)
