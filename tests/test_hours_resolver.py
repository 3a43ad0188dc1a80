from datetime import date, datetime, time, timezone

import pytest

from wingfinder.schemas.location import HourEntry
from wingfinder.services.hours_resolver import HoursResolver, parse_hours_range


def hm(hours: int, minutes: int = 0) -> int:
    return hours * 60 + minutes


@pytest.fixture
def resolver():
    return HoursResolver(utc_offset_hours=-7, overnight_cutoff_hour=6)


def day(full_date: str, hours: str) -> dict:
    return {"day_of_week": "", "date": "", "full_date": full_date, "hours": hours}


# ── Parsing ──────────────────────────────────────────────────────────────────


def test_parse_full_form():
    assert parse_hours_range("11 am–10 pm") == (hm(11), hm(22))
    assert parse_hours_range("11:30 AM - 9:30 PM") == (hm(11, 30), hm(21, 30))


def test_parse_twelve_oclock():
    assert parse_hours_range("12 am–12 pm") == (0, hm(12))


def test_parse_elided_start_takes_end_meridiem():
    assert parse_hours_range("4–10 pm") == (hm(16), hm(22))
    assert parse_hours_range("4-10pm") == (hm(16), hm(22))
    assert parse_hours_range("11–2 pm") == (hm(11), hm(14))
    assert parse_hours_range("12–10 pm") == (hm(12), hm(22))


def test_parse_unrecognised():
    assert parse_hours_range("Invalid format") is None
    assert parse_hours_range("") is None


def test_parse_rejects_bad_clock_values():
    with pytest.raises(ValueError):
        parse_hours_range("13 am–2 pm")


# ── is_open_at ───────────────────────────────────────────────────────────────


def test_daytime_boundaries_are_inclusive(resolver):
    hours = [day("2025-09-30", "11 am–10 pm")]
    assert resolver.is_open_at(hours, "2025-09-30", hm(10, 59)) is False
    assert resolver.is_open_at(hours, "2025-09-30", hm(11)) is True
    assert resolver.is_open_at(hours, "2025-09-30", hm(22)) is True
    assert resolver.is_open_at(hours, "2025-09-30", hm(22, 1)) is False


@pytest.mark.parametrize("text", ["Closed", "closed", "CLOSED today", "Temporarily closed"])
def test_closed_anywhere_in_text(resolver, text):
    hours = [day("2025-09-30", text)]
    for minutes in (0, hm(12), hm(23, 59)):
        assert resolver.is_open_at(hours, "2025-09-30", minutes) is False


def test_overnight_range(resolver):
    hours = [day("2025-09-30", "11 pm–2 am")]
    assert resolver.is_open_at(hours, "2025-09-30", hm(23, 30)) is True
    assert resolver.is_open_at(hours, "2025-09-30", hm(15)) is False
    # next calendar day falls back to the previous date's tail
    assert resolver.is_open_at(hours, "2025-10-01", hm(1, 30)) is True
    assert resolver.is_open_at(hours, "2025-10-01", hm(2)) is True
    assert resolver.is_open_at(hours, "2025-10-01", hm(3)) is False


def test_previous_day_tail_needs_overnight_range(resolver):
    hours = [day("2025-09-30", "11 am–10 pm")]
    assert resolver.is_open_at(hours, "2025-10-01", hm(1)) is False


def test_own_entry_wins_over_previous_day_tail(resolver):
    hours = [day("2025-09-30", "11 pm–2 am"), day("2025-10-01", "Closed")]
    assert resolver.is_open_at(hours, "2025-10-01", hm(1, 30)) is False


def test_elided_range(resolver):
    hours = [day("2025-09-30", "4–10 pm")]
    assert resolver.is_open_at(hours, "2025-09-30", hm(18)) is True
    assert resolver.is_open_at(hours, "2025-09-30", hm(15)) is False


def test_elided_range_crossing_noon(resolver):
    hours = [day("2025-09-30", "11–2 pm")]
    assert resolver.is_open_at(hours, "2025-09-30", hm(8)) is False
    assert resolver.is_open_at(hours, "2025-09-30", hm(12)) is True
    assert resolver.is_open_at(hours, "2025-09-30", hm(23, 30)) is False


def test_minutes_in_both_boundaries(resolver):
    hours = [day("2025-09-30", "11:30 am–9:30 pm")]
    assert resolver.is_open_at(hours, "2025-09-30", hm(11, 29)) is False
    assert resolver.is_open_at(hours, "2025-09-30", hm(11, 30)) is True
    assert resolver.is_open_at(hours, "2025-09-30", hm(21, 30)) is True
    assert resolver.is_open_at(hours, "2025-09-30", hm(21, 31)) is False


def test_unreadable_input_is_closed(resolver):
    assert resolver.is_open_at([day("2025-09-30", "Invalid format")], "2025-09-30", hm(12)) is False
    assert resolver.is_open_at([day("2025-09-30", "13 am–2 pm")], "2025-09-30", hm(12)) is False
    assert resolver.is_open_at([], "2025-09-30", hm(12)) is False
    assert resolver.is_open_at(None, "2025-09-30", hm(12)) is False
    assert resolver.is_open_at([day("2025-09-30", "11 am–10 pm")], "not-a-date", hm(1)) is False


def test_missing_date_is_closed(resolver):
    hours = [day("2025-09-30", "11 am–10 pm")]
    assert resolver.is_open_at(hours, "2025-10-02", hm(12)) is False


def test_accepts_date_time_and_hour_models(resolver):
    hours = [HourEntry(day_of_week="Tue", date="Sep 30", full_date="2025-09-30", hours="11 am–10 pm")]
    assert resolver.is_open_at(hours, date(2025, 9, 30), time(12, 0)) is True
    assert resolver.is_open_at(hours, date(2025, 9, 30), time(23, 0)) is False


# ── is_open_now (fixed UTC-7 civil clock) ────────────────────────────────────


def test_open_now_converts_utc_to_civil_time(resolver):
    hours = [day("2025-09-30", "11 am–10 pm")]
    # 22:00Z is 15:00 civil
    assert resolver.is_open_now(hours, datetime(2025, 9, 30, 22, 0, tzinfo=timezone.utc)) is True
    # 06:00Z is 23:00 civil on the previous day
    assert resolver.is_open_now(hours, datetime(2025, 10, 1, 6, 0, tzinfo=timezone.utc)) is False


def test_open_now_crosses_civil_date(resolver):
    hours = [day("2025-09-30", "4–10 pm")]
    # 2025-10-01T01:00Z is 2025-09-30 18:00 civil
    assert resolver.is_open_now(hours, datetime(2025, 10, 1, 1, 0, tzinfo=timezone.utc)) is True


def test_open_now_overnight_tail(resolver):
    hours = [day("2025-10-03", "11 pm–2 am")]
    # 2025-10-04T07:30Z is 2025-10-04 00:30 civil
    assert resolver.is_open_now(hours, datetime(2025, 10, 4, 7, 30, tzinfo=timezone.utc)) is True


def test_naive_instant_is_read_as_utc(resolver):
    hours = [day("2025-09-30", "11 am–10 pm")]
    assert resolver.is_open_now(hours, datetime(2025, 9, 30, 22, 0)) is True


def test_offset_is_configurable():
    hours = [day("2025-09-30", "11 am–10 pm")]
    utc = HoursResolver(utc_offset_hours=0)
    assert utc.is_open_now(hours, datetime(2025, 9, 30, 22, 0, tzinfo=timezone.utc)) is True
    assert utc.is_open_now(hours, datetime(2025, 9, 30, 23, 0, tzinfo=timezone.utc)) is False
