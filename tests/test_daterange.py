from datetime import date, datetime, timedelta, timezone

from utils.daterange import (DateRange, format_server_date, parse_server_date,
                             start_of_week, week_range, weekday_name)


def test_start_of_week_is_always_monday():
    day = date(2025, 1, 1)
    for offset in range(400):
        current = day + timedelta(days=offset)
        monday = start_of_week(current)
        assert monday.weekday() == 0
        assert monday <= current < monday + timedelta(days=7)


def test_week_range_spans_seven_days():
    for offset in range(14):
        current = date(2025, 9, 1) + timedelta(days=offset)
        week = week_range(current)
        assert week.days_count == 7
        assert week.end_date - week.start_date == timedelta(days=6)


def test_sunday_belongs_to_previous_monday():
    assert start_of_week(date(2025, 9, 7)) == date(2025, 9, 1)
    assert start_of_week(date(2025, 9, 8)) == date(2025, 9, 8)


def test_server_date_uses_institution_timezone():
    # 20:00 UTC is already the next morning in Khabarovsk
    moment = datetime(2025, 9, 7, 20, 0, tzinfo=timezone.utc)
    assert format_server_date(moment) == "2025-09-08"
    assert start_of_week(moment) == date(2025, 9, 8)
    assert format_server_date(date(2025, 9, 7)) == "2025-09-07"


def test_parse_server_date():
    assert parse_server_date("2025-09-01") == date(2025, 9, 1)
    assert parse_server_date("01.09.2025") is None
    assert parse_server_date("") is None
    assert parse_server_date(None) is None


def test_date_range_is_inclusive():
    week = DateRange(date(2025, 9, 1), date(2025, 9, 7))
    assert week.is_date_in_range(date(2025, 9, 1))
    assert week.is_date_in_range(date(2025, 9, 7))
    assert not week.is_date_in_range(date(2025, 9, 8))
    assert DateRange(date(2025, 9, 1)).days_count == 1


def test_weekday_name():
    assert weekday_name(date(2025, 9, 1)) == "Понедельник"
    assert weekday_name(date(2025, 9, 7)) == "Воскресенье"
