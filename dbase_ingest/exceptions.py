"""
Custom exception hierarchy for dbase-ingest.

Why a custom hierarchy:
- Callers can catch structural corruption (``DbfFormatError``) separately
  from an unknown file version or a bad config, without relying on
  generic ValueError/struct.error.
- Error messages carry byte offsets so a broken table can be inspected
  with a hex editor.

I/O failures (missing file, permission denied) are NOT wrapped: the
``OSError`` raised by the byte source propagates unchanged.
"""


class DbaseIngestError(Exception):
    """Base exception for all dbase-ingest errors."""


class DbfFormatError(DbaseIngestError):
    """Raised when the binary layout of a .dbf file is inconsistent."""


class _TruncatedError(DbfFormatError):
    """Common base for truncation errors.

    Attributes:
        offset: Absolute byte offset where the missing data should start.
        expected: Number of bytes the decoder needed.
        available: Number of bytes actually present.
    """

    what = "data"

    def __init__(self, offset: int, expected: int, available: int) -> None:
        self.offset = offset
        self.expected = expected
        self.available = available
        super().__init__(
            f"Truncated {self.what} at byte {offset}: "
            f"expected {expected} bytes, {available} available"
        )


class TruncatedHeaderError(_TruncatedError):
    """Raised when fewer than 32 bytes are available for the file header."""

    what = "header"


class TruncatedFieldTableError(_TruncatedError):
    """Raised when a field descriptor is short or the 0x0D terminator is missing."""

    what = "field descriptor table"


class TruncatedRecordError(_TruncatedError):
    """Raised when a record slot holds fewer bytes than the record size."""

    what = "record"


class RecordSizeMismatchError(DbfFormatError):
    """Raised when the field lengths do not add up to the header's record size.

    The invariant is ``sum(field.length) + 1 == record_size`` (the extra
    byte is the deletion marker).
    """


class UnsupportedVersionError(DbaseIngestError):
    """Raised when the version byte is not in the known enumeration."""

    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"Unsupported dBASE version byte: 0x{code:02X}")


class UnsupportedFieldTypeError(DbaseIngestError):
    """Raised for an unknown field type tag when the reader runs in strict mode."""


class ConfigValidationError(DbaseIngestError):
    """Raised when a dbase-ingest YAML config is empty or inconsistent."""


class ExportError(DbaseIngestError):
    """Raised when the exporter fails to write output files.

    For example, permission errors, disk full, or unsupported format.
    """
