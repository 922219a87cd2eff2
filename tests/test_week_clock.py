"""Tests for week anchors, window predicates and DST handling."""

from datetime import date, datetime, timedelta, timezone

import pandas as pd
import pytest

from coaching.domain.values import PolicyOffsets
from coaching.errors import InvalidInputError
from coaching.services.week_clock import (
    anchors,
    anchors_for_week,
    is_checkin_late,
    is_checkin_open,
    is_checkin_visible,
    is_checkout_late,
    is_checkout_open,
    is_late,
    is_week_closed,
    monday_of,
    week_of,
    weeks_between,
)

CHICAGO = "America/Chicago"
ANCHOR_FIELDS = (
    "week_start_utc",
    "checkin_open_utc",
    "checkin_visible_utc",
    "checkin_due_utc",
    "checkout_open_utc",
    "checkout_due_utc",
    "week_end_utc",
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def local(ts: str, tz: str = CHICAGO) -> pd.Timestamp:
    return pd.Timestamp(ts).tz_localize(tz)


def assert_ordered(week):
    values = [getattr(week, name) for name in ANCHOR_FIELDS]
    assert values == sorted(values)


def test_anchors_default_policy_standard_time():
    """Tuesday noon CST resolves to the week of Monday March 3rd."""
    week = anchors(local("2025-03-04 12:00"), CHICAGO)

    assert week.week_of == date(2025, 3, 3)
    assert week.timezone == CHICAGO
    assert week.week_start_utc == utc(2025, 3, 3, 6, 0)
    assert week.checkin_open_utc == utc(2025, 3, 3, 6, 1)
    assert week.checkin_visible_utc == utc(2025, 3, 3, 15, 0)
    assert week.checkin_due_utc == utc(2025, 3, 4, 20, 0)
    assert week.checkout_open_utc == utc(2025, 3, 6, 6, 1)
    assert week.checkout_due_utc == utc(2025, 3, 7, 23, 0)


def test_week_end_uses_offset_after_spring_forward():
    """DST starts Sunday March 9th 2025; week end is 23:59:59 CDT (UTC-5)."""
    week = anchors(local("2025-03-04 12:00"), CHICAGO)

    assert week.week_end_utc == utc(2025, 3, 10, 4, 59, 59)
    span = week.week_end_utc - week.week_start_utc
    assert timedelta(days=6) <= span <= timedelta(days=8)


def test_fall_back_week():
    """DST ends Sunday November 2nd 2025; Monday starts in CDT, Sunday ends in CST."""
    week = anchors(local("2025-10-29 08:00"), CHICAGO)

    assert week.week_of == date(2025, 10, 27)
    assert week.week_start_utc == utc(2025, 10, 27, 5, 0)
    assert week.week_end_utc == utc(2025, 11, 3, 5, 59, 59)
    assert_ordered(week)


def test_nonexistent_local_time_shifts_forward():
    """02:30 does not exist on the spring-forward Sunday."""
    week = anchors(local("2025-03-04 12:00"), CHICAGO, {"week_end": {"day_offset": 6, "time": "02:30"}})
    assert week.week_end_utc == utc(2025, 3, 9, 8, 0)


def test_week_start_is_local_monday_midnight():
    for tz in (CHICAGO, "Europe/London", "Australia/Sydney", "Asia/Kolkata"):
        week = anchors(pd.Timestamp("2025-06-18 10:00", tz="UTC"), tz)
        start = pd.Timestamp(week.week_start_utc).tz_convert(tz)
        assert start.weekday() == 0
        assert (start.hour, start.minute, start.second) == (0, 0, 0)
        assert start.date() == week.week_of


@pytest.mark.slow
@pytest.mark.parametrize("tz", [CHICAGO, "Europe/London", "Australia/Sydney", "Pacific/Auckland", "Asia/Kathmandu"])
def test_anchors_ordered_across_a_year(tz):
    """Sweep a year in 13-hour steps; every week is ordered and 6 to 8 days long."""
    now = pd.Timestamp("2025-01-01", tz="UTC")
    end = pd.Timestamp("2026-01-01", tz="UTC")
    while now < end:
        week = anchors(now, tz)
        assert_ordered(week)
        span = week.week_end_utc - week.week_start_utc
        assert timedelta(days=6) <= span <= timedelta(days=8)
        assert week.week_start_utc <= now.to_pydatetime() <= week.week_end_utc + timedelta(seconds=1)
        now += pd.Timedelta(hours=13)


def test_sunday_night_and_monday_morning_belong_to_different_weeks():
    assert week_of(local("2025-03-16 23:59:59"), CHICAGO) == date(2025, 3, 10)
    assert week_of(local("2025-03-17 00:00"), CHICAGO) == date(2025, 3, 17)


def test_week_of_uses_local_calendar():
    """Monday 03:00 UTC is still Sunday evening in Chicago."""
    assert week_of(utc(2025, 3, 17, 3, 0), CHICAGO) == date(2025, 3, 10)
    assert week_of(utc(2025, 3, 17, 3, 0), "Europe/London") == date(2025, 3, 17)


def test_partial_override_shifts_only_named_anchor():
    now = local("2025-03-04 12:00")
    base = anchors(now, CHICAGO)
    moved = anchors(now, CHICAGO, {"checkin_due": {"day_offset": 1, "time": "12:00"}})

    assert moved.checkin_due_utc == utc(2025, 3, 4, 18, 0)
    for name in ANCHOR_FIELDS:
        if name != "checkin_due_utc":
            assert getattr(moved, name) == getattr(base, name)


def test_policy_offsets_object_accepted():
    offsets = PolicyOffsets().with_overrides(checkout_due=(4, "12:00"))
    week = anchors(local("2025-03-04 12:00"), CHICAGO, offsets)
    assert week.checkout_due_utc == utc(2025, 3, 7, 18, 0)


def test_out_of_order_override_rejected():
    with pytest.raises(InvalidInputError):
        PolicyOffsets().with_overrides(checkin_due=(0, "00:00"))


def test_malformed_override_rejected():
    with pytest.raises(InvalidInputError):
        PolicyOffsets().with_overrides(checkin_due={"day_offset": 1, "time": "25:00"})
    with pytest.raises(InvalidInputError):
        PolicyOffsets().with_overrides(checkin_due={"day_offset": 9, "time": "12:00"})
    with pytest.raises(InvalidInputError):
        PolicyOffsets().with_overrides(lunch={"day_offset": 1, "time": "12:00"})


def test_unknown_timezone_rejected():
    with pytest.raises(InvalidInputError):
        anchors(utc(2025, 3, 4, 12), "Mars/Olympus_Mons")


def test_naive_instant_rejected():
    with pytest.raises(InvalidInputError):
        anchors(datetime(2025, 3, 4, 12), CHICAGO)


def test_malformed_instant_rejected():
    with pytest.raises(InvalidInputError):
        anchors("not a time", CHICAGO)
    with pytest.raises(InvalidInputError):
        anchors(None, CHICAGO)


def test_anchors_for_week_matches_anchors():
    assert anchors_for_week(date(2025, 3, 5), CHICAGO) == anchors(local("2025-03-04 12:00"), CHICAGO)


def test_predicates_flip_exactly_at_anchors():
    week = anchors(local("2025-03-04 12:00"), CHICAGO)
    second = timedelta(seconds=1)

    checks = [
        (is_checkin_open, week.checkin_open_utc),
        (is_checkin_visible, week.checkin_visible_utc),
        (is_checkin_late, week.checkin_due_utc),
        (is_checkout_open, week.checkout_open_utc),
        (is_checkout_late, week.checkout_due_utc),
        (is_week_closed, week.week_end_utc),
    ]
    for predicate, instant in checks:
        assert not predicate(instant - second, week)
        assert predicate(instant, week)


def test_is_late_is_strict():
    due = utc(2025, 3, 4, 20, 0)
    assert not is_late(due, due)
    assert is_late(due + timedelta(seconds=1), due)
    assert not is_late(None, due)


def test_monday_of_and_weeks_between():
    assert monday_of(date(2025, 3, 9)) == date(2025, 3, 3)
    assert monday_of(datetime(2025, 3, 3, 23, 0)) == date(2025, 3, 3)
    assert weeks_between(date(2024, 12, 2), date(2025, 3, 5)) == 13
    assert weeks_between(date(2025, 3, 5), date(2025, 3, 3)) == 0
