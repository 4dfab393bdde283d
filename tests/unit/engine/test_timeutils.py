"""Tests for the wall-clock helpers shared by the engine."""

import datetime
from zoneinfo import ZoneInfo

import pytest

from app.engine.timeutils import (
    date_range,
    horizon,
    is_valid_timezone,
    local_today,
    resolve_zone,
    session_window,
    sunday_based_weekday,
    to_local,
)


class TestSundayBasedWeekday:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (datetime.date(2024, 1, 7), 0),  # Sunday
            (datetime.date(2024, 1, 8), 1),  # Monday
            (datetime.date(2024, 1, 10), 3),  # Wednesday
            (datetime.date(2024, 1, 13), 6),  # Saturday
        ],
    )
    def test_mapping(self, day, expected):
        assert sunday_based_weekday(day) == expected


class TestDateRange:
    def test_inclusive(self):
        days = list(date_range(datetime.date(2024, 1, 1), datetime.date(2024, 1, 3)))
        assert days == [datetime.date(2024, 1, 1), datetime.date(2024, 1, 2), datetime.date(2024, 1, 3)]

    def test_empty_when_reversed(self):
        assert list(date_range(datetime.date(2024, 1, 3), datetime.date(2024, 1, 1))) == []

    def test_horizon_is_eight_days(self):
        start, end = horizon(datetime.date(2024, 1, 1), 7)
        assert len(list(date_range(start, end))) == 8


class TestZones:
    def test_unknown_zone_falls_back_to_utc(self):
        assert resolve_zone("Mars/Olympus") == ZoneInfo("UTC")
        assert resolve_zone(None) == ZoneInfo("UTC")

    def test_is_valid_timezone(self):
        assert is_valid_timezone("Europe/Rome")
        assert not is_valid_timezone("Not/AZone")

    def test_naive_now_is_local(self):
        naive = datetime.datetime(2024, 3, 1, 9, 0)
        local = to_local(naive, "America/New_York")
        assert local.hour == 9
        assert local.tzinfo == ZoneInfo("America/New_York")

    def test_aware_now_is_converted(self):
        utc = datetime.datetime(2024, 3, 2, 2, 0, tzinfo=datetime.timezone.utc)
        assert local_today(utc, "America/New_York") == datetime.date(2024, 3, 1)
        assert local_today(utc, "UTC") == datetime.date(2024, 3, 2)


class TestSessionWindow:
    def test_checkin_opens_one_hour_before_start(self):
        window = session_window(datetime.date(2024, 1, 10), datetime.time(15), datetime.time(17))
        assert window.checkin_opens == datetime.datetime(2024, 1, 10, 14, tzinfo=ZoneInfo("UTC"))

    def test_boundaries_are_half_open(self):
        window = session_window(datetime.date(2024, 1, 10), datetime.time(15), datetime.time(17))
        assert window.checkin_window_contains(window.checkin_opens)
        assert not window.checkin_window_contains(window.end)
        assert window.training_window_contains(window.start)
        assert not window.training_window_contains(window.end)
        assert window.has_ended(window.end)

    def test_evening_session_ends_next_utc_day(self):
        window = session_window(datetime.date(2024, 3, 1), datetime.time(19), datetime.time(21),
                                timezone="America/New_York")
        assert window.end.astimezone(datetime.timezone.utc) == datetime.datetime(2024, 3, 2, 2,
                                                                                 tzinfo=datetime.timezone.utc)

    def test_checkin_window_across_spring_forward(self):
        # 2024-03-10 02:00 does not exist in New York; 03:30 local is 07:30 UTC
        window = session_window(datetime.date(2024, 3, 10), datetime.time(3, 30), datetime.time(5),
                                timezone="America/New_York")
        opens_utc = window.checkin_opens.astimezone(datetime.timezone.utc)
        start_utc = window.start.astimezone(datetime.timezone.utc)
        assert start_utc - opens_utc == datetime.timedelta(minutes=60)
