"""Tests for output timestamp validation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from reprocheck.core.recorder import ConfigurationError
from reprocheck.core.timestamp import has_bad_output_timestamp, parse_output_timestamp


class TestParseOutputTimestamp:
    def test_iso_8601(self):
        parsed = parse_output_timestamp("2024-01-01T00:00:00Z")
        assert parsed == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_iso_8601_with_offset(self):
        parsed = parse_output_timestamp("2024-01-01T02:00:00+02:00")
        assert parsed == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert parse_output_timestamp("1704067200") == datetime(2024, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "a", " "])
    def test_unset_or_disabled(self, value):
        assert parse_output_timestamp(value) is None

    def test_invalid(self):
        with pytest.raises(ConfigurationError, match="Invalid output timestamp"):
            parse_output_timestamp("yesterday")


class TestHasBadOutputTimestamp:
    def test_missing_logs_error(self, caplog):
        with caplog.at_level(logging.ERROR):
            assert has_bad_output_timestamp(None) is True
        assert "Reproducible Build not activated" in caplog.text

    def test_configured(self):
        assert has_bad_output_timestamp("2024-01-01T00:00:00Z") is False
