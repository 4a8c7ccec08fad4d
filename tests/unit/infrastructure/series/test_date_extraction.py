from datetime import date, datetime, timedelta, timezone

import pytest

from seriesdb.infrastructure.series import extract_timestamp

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def fixed_now():
    return FIXED_NOW


def test_millisecond_timestamp():
    result = extract_timestamp({"timestamp": 1300000000000}, now=fixed_now)
    assert result == datetime.fromtimestamp(1300000000, tz=timezone.utc)


def test_seconds_timestamp_scaled_to_milliseconds():
    result = extract_timestamp({"timestamp": 130000000}, now=fixed_now)
    assert result == datetime.fromtimestamp(130000000, tz=timezone.utc)


def test_small_numbers_are_not_timestamps():
    assert extract_timestamp({"timestamp": 42}, now=fixed_now) == FIXED_NOW


def test_no_time_field_yields_now():
    assert extract_timestamp({"message": "hello"}, now=fixed_now) == FIXED_NOW
    assert extract_timestamp(None, now=fixed_now) == FIXED_NOW
    assert extract_timestamp(["not", "a", "record"], now=fixed_now) == FIXED_NOW


def test_field_priority_order():
    record = {"date": 1300000000000, "@timestamp": "2023-01-02T03:04:05Z", "timestamp": "bad"}
    assert extract_timestamp(record, now=fixed_now) == datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_iso_string_with_offset_converted_to_utc():
    result = extract_timestamp({"time": "2024-05-01T23:30:00-02:00"}, now=fixed_now)
    assert result == datetime(2024, 5, 2, 1, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("value,expected", [
    ("Wed, 01 May 2024 10:00:00 GMT", datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)),
    ("Sun Mar 13 2011 07:06:40 GMT+0000", datetime(2011, 3, 13, 7, 6, 40, tzinfo=timezone.utc)),
    ("Sun Mar 13 2011 07:06:40 GMT+0100 (Central European Standard Time)",
     datetime(2011, 3, 13, 6, 6, 40, tzinfo=timezone.utc)),
    ("Tue, 30 Apr 2024 23:30:00 -0200", datetime(2024, 5, 1, 1, 30, tzinfo=timezone.utc)),
])
def test_rfc_2822_style_strings(value, expected):
    assert extract_timestamp({"timestamp": value}, now=fixed_now) == expected


def test_unparseable_long_string_yields_now():
    assert extract_timestamp({"timestamp": "definitely not a date at all"}, now=fixed_now) == FIXED_NOW


def test_short_strings_ignored():
    assert extract_timestamp({"date": "2024-05-01"}, now=fixed_now) == FIXED_NOW


def test_datetime_and_date_values():
    naive = datetime(2024, 1, 1, 8, 0)
    assert extract_timestamp({"timestamp": naive}, now=fixed_now) == naive.replace(tzinfo=timezone.utc)
    aware = datetime(2024, 1, 1, 8, 0, tzinfo=timezone(timedelta(hours=5)))
    assert extract_timestamp({"timestamp": aware}, now=fixed_now) == datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)
    assert extract_timestamp({"date": date(2024, 2, 29)}, now=fixed_now) == datetime(2024, 2, 29, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [True, float("nan"), float("inf"), None, {"nested": 1}])
def test_unusable_values_fall_through(value):
    assert extract_timestamp({"timestamp": value}, now=fixed_now) == FIXED_NOW
