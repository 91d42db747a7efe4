"""
Integration tests: decode a .dbf from disk and export it.

Uses tmp_path for output to avoid polluting the workspace.
"""

from __future__ import annotations

from decimal import Decimal

import pandas as pd
import pytest

import dbase_ingest
from dbase_ingest.config import save_config


@pytest.mark.integration
class TestExportPipeline:
    """open() -> export() with a YAML config."""

    def test_parquet_round_trip(self, people_path, tmp_path):
        config = dbase_ingest.DbaseConfig.model_validate(
            {"export": {"output_dir": str(tmp_path / "out")}}
        )
        dbase_ingest.open(people_path, config).export()

        df = pd.read_parquet(tmp_path / "out" / "people.parquet")
        assert list(df["NAME"]) == ["John Doe", "Max Musterma", "Ann"]
        assert df["BALANCE"].iloc[0] == Decimal("1234.50")
        assert df["NOTES"].isna().all()

        fields = pd.read_parquet(tmp_path / "out" / "_fields.parquet")
        assert list(fields["type"]) == ["C", "D", "N", "N", "M"]
        assert (fields["rows_exported"] == 3).all()

    def test_config_file_drives_export(self, people_path, tmp_path):
        config = dbase_ingest.DbaseConfig.model_validate({
            "export": {"output_dir": str(tmp_path / "csv"), "output_format": "csv"},
            "columns": ["NAME", "BORN"],
        })
        config_path = tmp_path / "dbase.yaml"
        save_config(config, config_path)

        loaded = dbase_ingest.load_config(config_path)
        paths = dbase_ingest.open(people_path, loaded).export()
        assert len(paths) == 2

        df = pd.read_csv(tmp_path / "csv" / "people.csv", dtype=str, keep_default_na=False)
        assert list(df.columns) == ["NAME", "BORN"]
        assert list(df["BORN"]) == ["19700101", "19900303", ""]
