from datetime import datetime, timedelta, timezone

import pytest

from apps.backend.utils.timestamps import parse_ts


@pytest.mark.parametrize("raw,micro", [
    ("2024-03-15T10:11:12.3456+00:00", 345600),
    ("2024-03-15T10:11:12.3+00:00", 300000),
    ("2024-03-15T10:11:12.12345+00:00", 123450),
    ("2024-03-15T10:11:12.123456789+00:00", 123456),
    ("2024-03-15T10:11:12.345678Z", 345678),
])
def test_parse_trimmed_fractions(raw, micro):
    assert parse_ts(raw) == datetime(2024, 3, 15, 10, 11, 12, micro, tzinfo=timezone.utc)


def test_parse_postgres_text_form():
    assert parse_ts("2024-03-15 10:11:12.25+00") == datetime(2024, 3, 15, 10, 11, 12, 250000, tzinfo=timezone.utc)
    assert parse_ts("2024-03-15T12:00:00+02") == datetime(2024, 3, 15, 10, tzinfo=timezone.utc)
    assert parse_ts("2024-03-15T12:00:00+05:30").utcoffset() == timedelta(hours=5, minutes=30)


def test_naive_values_are_utc():
    assert parse_ts("2024-03-15T10:11:12") == datetime(2024, 3, 15, 10, 11, 12, tzinfo=timezone.utc)
    assert parse_ts("2024-03-15") == datetime(2024, 3, 15, tzinfo=timezone.utc)
    assert parse_ts(datetime(2024, 3, 15)) == datetime(2024, 3, 15, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", [None, ""])
def test_empty_values(raw):
    assert parse_ts(raw) is None
