"""Tests for calendar helpers."""

from datetime import date, datetime

import pytest

from app.shared.periods import (
    WEEKDAY_NAMES,
    date_range_bounds,
    day_bounds,
    month_bounds,
    shift_month,
    weekday_index,
)


class TestMonthBounds:
    def test_thirty_one_day_month(self):
        start, end = month_bounds(2024, 3)

        assert start == datetime(2024, 3, 1)
        assert end == datetime(2024, 3, 31, 23, 59, 59)

    def test_leap_february(self):
        _, end = month_bounds(2024, 2)

        assert end == datetime(2024, 2, 29, 23, 59, 59)

    def test_plain_february(self):
        _, end = month_bounds(2023, 2)

        assert end.day == 28

    @pytest.mark.parametrize("month", [0, 13])
    def test_rejects_invalid_month(self, month: int):
        with pytest.raises(ValueError):
            month_bounds(2024, month)


def test_day_bounds_is_half_open():
    start, end = day_bounds(date(2024, 3, 31))

    assert start == datetime(2024, 3, 31)
    assert end == datetime(2024, 4, 1)


def test_date_range_bounds_covers_whole_end_day():
    start, end = date_range_bounds(date(2024, 3, 1), date(2024, 3, 31))

    assert start == datetime(2024, 3, 1)
    assert end == datetime(2024, 4, 1)


def test_date_range_bounds_open_ends():
    assert date_range_bounds(None, None) == (None, None)


@pytest.mark.parametrize(
    ("year", "month", "offset", "expected"),
    [
        (2024, 3, 1, (2024, 4)),
        (2024, 12, 1, (2025, 1)),
        (2024, 1, -1, (2023, 12)),
        (2024, 11, 3, (2025, 2)),
        (2024, 5, 0, (2024, 5)),
    ],
)
def test_shift_month(year: int, month: int, offset: int, expected: tuple[int, int]):
    assert shift_month(year, month, offset) == expected


def test_weekday_index_starts_on_sunday():
    # 2024-03-03 was a Sunday, 2024-03-09 a Saturday.
    assert weekday_index(date(2024, 3, 3)) == 1
    assert weekday_index(datetime(2024, 3, 9, 7, 0)) == 7
    assert WEEKDAY_NAMES[weekday_index(date(2024, 3, 4))] == "Monday"
