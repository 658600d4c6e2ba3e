from datetime import date, datetime, timedelta, timezone

import pytest

from rentpay.services.date_utils import clamp_day, month_span, normalize_date_key, parse_calendar_day


@pytest.mark.parametrize(
  "value, expected",
  [
    ("2026-01-02", "2026-01-02"),
    ("2026-01-02T23:30:00.000Z", "2026-01-02"),
    ("2026-01-02T00:00:00+08:00", "2026-01-02"),
    ("2026/01/02 10:15", "2026-01-02"),
    ("January 2, 2026", "2026-01-02"),
    (date(2026, 1, 2), "2026-01-02"),
  ],
)
def test_normalize_date_key(value, expected):
  assert normalize_date_key(value) == expected


def test_datetime_keeps_its_own_day_west_of_utc():
  late_evening = datetime(2026, 1, 2, 23, 30, tzinfo=timezone(timedelta(hours=-8)))
  assert normalize_date_key(late_evening) == "2026-01-02"


@pytest.mark.parametrize("value", ["", None])
def test_empty_input_gives_empty_key(value):
  assert normalize_date_key(value) == ""


def test_unparseable_string_falls_back_to_first_word():
  assert normalize_date_key("someday maybe") == "someday"


@pytest.mark.parametrize("value", ["2026-01-02", "2024-02-29", "1999-12-31"])
def test_canonical_keys_are_stable(value):
  assert normalize_date_key(normalize_date_key(value)) == normalize_date_key(value)


def test_parse_calendar_day():
  assert parse_calendar_day("2026-03-04T10:00:00Z") == date(2026, 3, 4)
  assert parse_calendar_day(datetime(2026, 3, 4, 18, 0)) == date(2026, 3, 4)
  assert parse_calendar_day("2026-02-30") is None
  assert parse_calendar_day(None) is None


def test_clamp_day():
  assert clamp_day(2026, 2, 31) == date(2026, 2, 28)
  assert clamp_day(2024, 2, 30) == date(2024, 2, 29)
  assert clamp_day(2026, 4, 31) == date(2026, 4, 30)
  assert clamp_day(2026, 5, 15) == date(2026, 5, 15)


def test_month_span():
  assert month_span(date(2025, 12, 2), date(2026, 1, 2)) == 2
  assert month_span(date(2026, 1, 1), date(2026, 1, 31)) == 1
  assert month_span(date(2026, 2, 1), date(2026, 1, 1)) == 0
