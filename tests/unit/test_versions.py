"""
Unit tests for version byte resolution (dbase_ingest.versions).
"""

import pytest

from dbase_ingest.exceptions import UnsupportedVersionError
from dbase_ingest.versions import KNOWN_VERSIONS, is_known_version, resolve_version


class TestResolveVersion:
    """Tests for resolve_version()."""

    def test_dbase_iii(self):
        assert resolve_version(0x03) == "FoxBase 2.x / dBASE III"

    def test_dbase_iii_with_memo(self):
        assert resolve_version(0x83) == "FoxBase 2.x / dBASE III with memo file"

    @pytest.mark.parametrize("code", [0x30, 0x31, 0x32])
    def test_visual_foxpro_variants(self, code):
        assert resolve_version(code).startswith("Visual FoxPro")

    def test_dbase_iv_with_memo(self):
        assert resolve_version(0x8B) == "dBASE IV with memo file"
        assert resolve_version(0xCB) == "dBASE IV SQL Table with memo file"

    def test_foxpro_2(self):
        assert resolve_version(0xFB) == "FoxPro 2"
        assert resolve_version(0xF5) == "FoxPro 2 with memo file"

    def test_unmapped_code_raises(self):
        """0x99 is not a known version and must not default silently."""
        with pytest.raises(UnsupportedVersionError, match="0x99") as exc_info:
            resolve_version(0x99)
        assert exc_info.value.code == 0x99

    def test_enumeration_is_complete(self):
        assert len(KNOWN_VERSIONS) == 12
        assert is_known_version(0x02)
        assert not is_known_version(0x00)
