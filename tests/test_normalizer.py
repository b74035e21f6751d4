"""
Tests for the feed normalizer -- converts ThingSpeak feed entries to TelemetrySample.

Verifies field mapping, graceful degradation for missing or malformed
fields, previous-sample fallback and charging flag coercion.

CHANGELOG:
- 2026-10-13: Add previous-sample fallback tests (STORY-011)
- 2026-10-12: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest

from evmonitor.models import TelemetrySample
from evmonitor.normalizer import normalize_feed


def _make_feed(**overrides: object) -> dict[str, object]:
    feed: dict[str, object] = {
        "created_at": "2026-10-12T08:15:00Z",
        "entry_id": 7,
        "field1": "3.92",
        "field2": "1.25",
        "field3": "31.4",
        "field4": "1",
    }
    feed.update(overrides)
    return feed


class TestFieldMapping:
    def test_maps_all_fields(self) -> None:
        sample = normalize_feed(_make_feed())
        assert sample.voltage == 3.92
        assert sample.current == 1.25
        assert sample.temperature == 31.4
        assert sample.charging_flag == 1

    def test_parses_created_at(self) -> None:
        sample = normalize_feed(_make_feed())
        assert sample.observed_at == datetime(2026, 10, 12, 8, 15, 0, tzinfo=UTC)

    def test_accepts_numeric_values(self) -> None:
        sample = normalize_feed(_make_feed(field1=4.1, field2=-0.5))
        assert sample.voltage == 4.1
        assert sample.current == -0.5

    def test_strips_whitespace(self) -> None:
        assert normalize_feed(_make_feed(field1=" 3.80 ")).voltage == 3.8


class TestMissingFields:
    def test_missing_fields_default_to_zero(self) -> None:
        sample = normalize_feed({})
        assert sample == TelemetrySample(
            voltage=0.0, current=0.0, temperature=0.0, charging_flag=0, observed_at=None
        )

    def test_null_field_defaults_to_zero(self) -> None:
        assert normalize_feed(_make_feed(field2=None)).current == 0.0

    @pytest.mark.parametrize("bad", ["abc", "", "nan", "inf", True, [1]])
    def test_malformed_field_defaults_to_zero(self, bad: object) -> None:
        assert normalize_feed(_make_feed(field1=bad)).voltage == 0.0

    def test_missing_field_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="evmonitor.normalizer"):
            normalize_feed(_make_feed(field3=None))
        assert "field3" in caplog.text

    def test_bad_timestamp_is_none(self) -> None:
        assert normalize_feed(_make_feed(created_at="yesterday")).observed_at is None


class TestPreviousFallback:
    def test_missing_field_uses_previous_value(self) -> None:
        previous = TelemetrySample(voltage=3.75, current=0.8, temperature=29.0, charging_flag=1)
        sample = normalize_feed(_make_feed(field1=None, field4=None), previous=previous)
        assert sample.voltage == 3.75
        assert sample.charging_flag == 1
        # Present fields are still taken from the feed.
        assert sample.current == 1.25

    def test_present_fields_ignore_previous(self) -> None:
        previous = TelemetrySample(voltage=3.0, current=9.0, temperature=-5.0)
        sample = normalize_feed(_make_feed(), previous=previous)
        assert sample.voltage == 3.92
        assert sample.temperature == 31.4


class TestChargingFlag:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("1", 1), ("0", 0), ("1.0", 1), ("2", 0), ("-1", 0), (1, 1)],
    )
    def test_flag_coerced_to_zero_or_one(self, raw: object, expected: int) -> None:
        assert normalize_feed(_make_feed(field4=raw)).charging_flag == expected

    def test_missing_flag_without_previous_is_zero(self) -> None:
        assert normalize_feed(_make_feed(field4=None)).charging_flag == 0
