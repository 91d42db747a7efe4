"""
Configuration models and YAML I/O for dbase-ingest.

This module defines the Pydantic models that map 1:1 to a dbase-ingest
YAML config, plus helpers for loading and saving it.

Key models:
- DbaseConfig: Top-level config (reader + export + column projection).
- ReaderConfig: Text decoding and the policies for edge cases the
  dBASE III format leaves open (unknown type tags, short buffers).
- ExportConfig: Output directory and format for ``DbfTable.export()``.

Key functions:
- load_config(path) -> DbaseConfig: Load and validate from YAML.
- save_config(config, path): Serialize to YAML.

Why Pydantic + YAML:
- Pydantic gives us strict validation and clear error messages.
- YAML is human-editable (migration jobs keep one config per table).
"""

from __future__ import annotations

import codecs
import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from dbase_ingest.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)


class ReaderConfig(BaseModel):
    """Decoder settings."""

    encoding: str = Field(
        "utf-8", description="Codec for Character/Date values and field names"
    )
    char_decode_errors: Literal["strict", "replace", "ignore"] = Field(
        "replace", description="Codec error handler for text values"
    )
    unknown_field_types: Literal["text", "error"] = Field(
        "text",
        description=(
            "Type tags outside C/D/M/N: 'text' passes the raw slice through "
            "as a string, 'error' raises UnsupportedFieldTypeError"
        ),
    )
    on_short_buffer: Literal["stop", "error"] = Field(
        "stop",
        description=(
            "When record data ends before the declared record count: "
            "'stop' returns what was decoded, 'error' raises TruncatedRecordError"
        ),
    )
    validate_record_size: bool = Field(
        True, description="If True, require sum(field lengths) + 1 == record size"
    )

    @field_validator("encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"Unknown text encoding: '{value}'") from None
        return value


class ExportConfig(BaseModel):
    """Output settings."""

    output_dir: str = Field("outputs/", description="Directory for output files")
    output_format: Literal["csv", "parquet"] = Field(
        "parquet", description="Output format"
    )
    write_fields_table: bool = Field(
        True, description="If True, write a _fields schema table next to the data"
    )


class DbaseConfig(BaseModel):
    """Top-level configuration for dbase-ingest."""

    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    columns: list[str] | None = Field(
        None, description="Field names to keep; null or empty keeps all fields"
    )

    @model_validator(mode="after")
    def _check_columns_unique(self) -> DbaseConfig:
        """Reject duplicate names in the column projection."""
        if self.columns:
            dupes = sorted({c for c in self.columns if self.columns.count(c) > 1})
            if dupes:
                raise ValueError(f"Duplicate column names in projection: {dupes}")
        return self


def load_config(path: str | Path) -> DbaseConfig:
    """Load and validate a YAML config into a DbaseConfig model.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the file is empty.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    logger.info("Loaded config from %s", path)
    return DbaseConfig.model_validate(raw)


def save_config(config: DbaseConfig, path: str | Path) -> None:
    """Serialize a DbaseConfig to YAML with a header comment."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# dbase-ingest configuration\n\n")
        yaml.dump(
            data,
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved config to %s", path)
