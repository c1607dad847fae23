"""
Tests for size conversion utilities used by configuration and CLI output.
"""
from datetime import datetime, timezone

import pytest
from treeops.utils.convert_utils import ConvertUtils


class TestHumanToBytes:
    """Test conversion from human-readable sizes (e.g., "64K") to bytes."""

    def test_bytes_without_suffix(self):
        assert ConvertUtils.human_to_bytes("0") == 0
        assert ConvertUtils.human_to_bytes("1024") == 1024

    def test_binary_suffixes(self):
        """Suffixes multiply by powers of 1024, not 1000."""
        assert ConvertUtils.human_to_bytes("1B") == 1
        assert ConvertUtils.human_to_bytes("1K") == 1024
        assert ConvertUtils.human_to_bytes("1.5KB") == 1536
        assert ConvertUtils.human_to_bytes("64K") == 64 * 1024
        assert ConvertUtils.human_to_bytes("1MB") == 1024 * 1024
        assert ConvertUtils.human_to_bytes("0.5GB") == 512 * 1024 * 1024

    def test_case_and_whitespace(self):
        assert ConvertUtils.human_to_bytes("1kb") == 1024
        assert ConvertUtils.human_to_bytes("\t1MB\n") == 1024 * 1024

    def test_rejects_negative_values(self):
        with pytest.raises(ValueError, match="Negative size not allowed"):
            ConvertUtils.human_to_bytes("-1")
        with pytest.raises(ValueError, match="Negative size not allowed"):
            ConvertUtils.human_to_bytes("-1KB")

    @pytest.mark.parametrize("value", ["", "invalid", "1.2.3KB", "1KB2", "KB"])
    def test_rejects_invalid_formats(self, value):
        with pytest.raises(ValueError):
            ConvertUtils.human_to_bytes(value)


class TestBytesToHuman:
    """Test conversion from bytes to human-readable format."""

    def test_ranges(self):
        assert ConvertUtils.bytes_to_human(0) == "0.00B"
        assert ConvertUtils.bytes_to_human(1023) == "1023.00B"
        assert ConvertUtils.bytes_to_human(1536) == "1.50KB"
        assert ConvertUtils.bytes_to_human(1024 * 1024) == "1.00MB"
        assert ConvertUtils.bytes_to_human(1024 ** 3) == "1.00GB"

    def test_negative_is_clamped(self):
        assert ConvertUtils.bytes_to_human(-5) == "0B"


def test_datetime_to_human_uses_format():
    value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    rendered = ConvertUtils.datetime_to_human(value, fmt="%Y")
    assert rendered == "2024"
