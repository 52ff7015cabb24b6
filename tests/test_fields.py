from datetime import datetime, timedelta, timezone

import pytest

from servicekit.logger.fields import (
    Field,
    any_value,
    boolean,
    duration,
    error,
    fields_from_map,
    float64,
    format_duration,
    int64,
    integer,
    string,
    timestamp,
)


@pytest.mark.parametrize(
    "field, key, value",
    [
        (string("key", "value"), "key", "value"),
        (integer("key", 42), "key", 42),
        (int64("key", 64), "key", 64),
        (float64("key", 3.14), "key", 3.14),
        (boolean("key", True), "key", True),
        (error(ValueError("test error")), "error", "test error"),
        (any_value("key", "any value"), "key", "any value"),
    ],
)
def test_field_constructors(field, key, value):
    assert field.key == key
    assert field.value == value


def test_error_none():
    assert error(None) == Field("error", None)


def test_fields_from_map():
    result = fields_from_map({"key1": "value1", "key2": 42, "key3": True})
    assert len(result) == 3
    assert {f.key: f.value for f in result} == {"key1": "value1", "key2": 42, "key3": True}


@pytest.mark.parametrize(
    "value, expected",
    [
        (timedelta(0), "0s"),
        (timedelta(microseconds=2), "2µs"),
        (timedelta(microseconds=1500), "1.5ms"),
        (timedelta(milliseconds=150), "150ms"),
        (timedelta(seconds=1.5), "1.5s"),
        (timedelta(minutes=1, seconds=1), "1m1s"),
        (timedelta(hours=1), "1h0m0s"),
        (timedelta(hours=2, minutes=3, seconds=4), "2h3m4s"),
        (-timedelta(seconds=2), "-2s"),
    ],
)
def test_format_duration(value, expected):
    assert format_duration(value) == expected


def test_duration_field():
    assert duration("elapsed", timedelta(milliseconds=150)) == Field("elapsed", "150ms")


def test_timestamp_utc():
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert timestamp("at", moment).value == "2024-01-01T00:00:00Z"


def test_timestamp_with_offset():
    zone = timezone(timedelta(hours=5, minutes=30))
    moment = datetime(2024, 1, 1, 12, 30, 15, tzinfo=zone)
    assert timestamp("at", moment).value == "2024-01-01T12:30:15+05:30"


def test_timestamp_negative_offset():
    zone = timezone(-timedelta(hours=7))
    moment = datetime(2024, 6, 1, 8, 0, 0, tzinfo=zone)
    assert timestamp("at", moment).value == "2024-06-01T08:00:00-07:00"