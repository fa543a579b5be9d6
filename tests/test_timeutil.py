"""Tests for time window resolution and datetime parsing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from signoz_mcp.errors import ToolArgumentError
from signoz_mcp.timeutil import parse_datetime_string, parse_time_range, resolve_time_window

NOW_NS = 1_700_000_000_123_456_789
NOW_MS = NOW_NS // 1_000_000


class TestResolveTimeWindow:
    @pytest.mark.parametrize(
        "time_range, millis",
        [("30m", 1_800_000), ("2h", 7_200_000), ("7d", 604_800_000), ("1h30m", 5_400_000), ("1.5h", 5_400_000)],
    )
    def test_relative_range_ends_now(self, time_range, millis):
        start, end = resolve_time_window({"timeRange": time_range}, "ms", now_ns=NOW_NS)
        assert end == NOW_MS
        assert end - start == millis

    def test_time_range_wins_over_explicit_bounds(self):
        start, end = resolve_time_window({"timeRange": "1h", "start": "5", "end": "10"}, "ms", now_ns=NOW_NS)
        assert (start, end) == (NOW_MS - 3_600_000, NOW_MS)

    def test_default_range_when_nothing_given(self):
        start, end = resolve_time_window({}, "ms", default_range="6h", now_ns=NOW_NS)
        assert end - start == 6 * 3_600_000

    def test_empty_strings_count_as_absent(self):
        start, end = resolve_time_window({"timeRange": "", "start": " "}, "ms", default_range="1h", now_ns=NOW_NS)
        assert end - start == 3_600_000

    def test_explicit_bounds_are_verbatim(self):
        assert resolve_time_window({"start": "1000", "end": 2000}, "ms", now_ns=NOW_NS) == (1000, 2000)

    def test_missing_end_means_now(self):
        assert resolve_time_window({"start": 1000}, "ms", now_ns=NOW_NS) == (1000, NOW_MS)

    def test_end_without_start_uses_default_range(self):
        start, end = resolve_time_window({"end": "5"}, "ms", default_range="1h", now_ns=NOW_NS)
        assert (start, end) == (NOW_MS - 3_600_000, NOW_MS)

    def test_nanosecond_unit(self):
        start, end = resolve_time_window({"timeRange": "1s"}, "ns", now_ns=NOW_NS)
        assert (start, end) == (NOW_NS - 1_000_000_000, NOW_NS)

    def test_second_unit(self):
        start, end = resolve_time_window({"timeRange": "1m"}, "s", now_ns=NOW_NS)
        assert end - start == 60

    def test_invalid_range(self):
        with pytest.raises(ToolArgumentError, match="invalid time range format: use formats like '2h', '30m'"):
            resolve_time_window({"timeRange": "two hours"}, "ms", now_ns=NOW_NS)

    @pytest.mark.parametrize("field", ["start", "end"])
    def test_non_numeric_bound(self, field):
        args = {"start": "1000", field: "2024-01-01"}
        with pytest.raises(ToolArgumentError) as exc_info:
            resolve_time_window(args, "ms", now_ns=NOW_NS)
        assert str(exc_info.value) == f'invalid {field} timestamp "2024-01-01": use timeRange instead (e.g., "1h", "24h")'

    def test_uses_wall_clock_by_default(self):
        start, end = resolve_time_window({"timeRange": "1h"})
        assert end - start == 3_600_000
        assert end > 1_700_000_000_000


@pytest.mark.parametrize(
    "value, expected",
    [
        ("45s", timedelta(seconds=45)),
        ("2h45m", timedelta(hours=2, minutes=45)),
        ("500ms", timedelta(milliseconds=500)),
        ("1d", timedelta(days=1)),
    ],
)
def test_parse_time_range(value, expected):
    assert parse_time_range(value) == expected


@pytest.mark.parametrize("value", ["", "h", "10", "-1h", "1w", "1 h", None, 3600])
def test_parse_time_range_rejects(value):
    with pytest.raises(ToolArgumentError):
        parse_time_range(value)


class TestParseDatetimeString:
    now = datetime(2025, 8, 28, 13, 30, tzinfo=UTC)

    def millis(self, moment):
        return int(moment.timestamp() * 1000)

    def test_epoch_seconds_and_millis(self):
        assert parse_datetime_string(1_756_387_800, self.now) == 1_756_387_800_000
        assert parse_datetime_string("1756387800000", self.now) == 1_756_387_800_000

    def test_keywords(self):
        midnight = datetime(2025, 8, 28, tzinfo=UTC)
        assert parse_datetime_string("now", self.now) == self.millis(self.now)
        assert parse_datetime_string("Today", self.now) == self.millis(midnight)
        assert parse_datetime_string("yesterday", self.now) == self.millis(midnight - timedelta(days=1))
        assert parse_datetime_string("tomorrow", self.now) == self.millis(midnight + timedelta(days=1))

    def test_relative_range_means_ago(self):
        assert parse_datetime_string("24h", self.now) == self.millis(self.now - timedelta(hours=24))

    def test_iso_formats(self):
        expected = self.millis(datetime(2025, 8, 28, 13, 0, tzinfo=UTC))
        assert parse_datetime_string("2025-08-28T13:00:00Z", self.now) == expected
        assert parse_datetime_string("2025-08-28T15:00:00+02:00", self.now) == expected
        assert parse_datetime_string("2025-08-28 13:00:00", self.now) == expected

    def test_other_layouts(self):
        expected = self.millis(datetime(2025, 8, 28, tzinfo=UTC))
        assert parse_datetime_string("08/28/2025", self.now) == expected
        assert parse_datetime_string("Aug 28, 2025", self.now) == expected

    def test_slash_date_with_minutes(self):
        assert parse_datetime_string("2025/08/28 13:00", self.now) == self.millis(datetime(2025, 8, 28, 13, 0, tzinfo=UTC))

    def test_naive_values_use_the_reference_zone(self):
        tokyo = timezone(timedelta(hours=9))
        now = datetime(2025, 8, 28, 22, 30, tzinfo=tokyo)
        expected = self.millis(datetime(2025, 8, 28, 13, 0, tzinfo=UTC))
        assert parse_datetime_string("2025-08-28 22:00:00", now) == expected
        assert parse_datetime_string("2025-08-28T13:00:00Z", now) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("Dec 3rd 5 PM", datetime(2024, 12, 3, 17, tzinfo=UTC)),
            ("aug 30 9 am", datetime(2025, 8, 30, 9, tzinfo=UTC)),
            ("August 1st 12 AM", datetime(2025, 8, 1, 0, tzinfo=UTC)),
            ("5 PM", datetime(2025, 8, 28, 17, tzinfo=UTC)),
            ("17:45", datetime(2025, 8, 28, 17, 45, tzinfo=UTC)),
        ],
    )
    def test_natural_dates(self, value, expected):
        assert parse_datetime_string(value, self.now) == self.millis(expected)

    def test_natural_date_in_reference_zone(self):
        tokyo = timezone(timedelta(hours=9))
        now = datetime(2025, 8, 28, 22, 30, tzinfo=tokyo)
        assert parse_datetime_string("Aug 28th 5 PM", now) == self.millis(datetime(2025, 8, 28, 17, tzinfo=tokyo))

    def test_invalid_month(self):
        with pytest.raises(ToolArgumentError, match='invalid month "Smarch"'):
            parse_datetime_string("Smarch 3rd 5 PM", self.now)

    def test_invalid_day(self):
        with pytest.raises(ToolArgumentError, match='invalid date "Feb 30 5 PM"'):
            parse_datetime_string("Feb 30 5 PM", self.now)

    @pytest.mark.parametrize("value", ["", "next tuesday", None])
    def test_unparseable(self, value):
        with pytest.raises(ToolArgumentError):
            parse_datetime_string(value, self.now)
