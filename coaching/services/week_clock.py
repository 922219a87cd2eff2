"""Week clock: coaching week boundaries for a location's timezone."""

from __future__ import annotations

from dataclasses import fields
from datetime import date, datetime, timedelta
from typing import Mapping, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pandas as pd

from coaching.domain.values import PolicyOffset, PolicyOffsets, WeekAnchors
from coaching.errors import InvalidInputError

OffsetsArg = Union[PolicyOffsets, Mapping, None]


def resolve_timezone(tz: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise InvalidInputError(f"Unknown timezone: {tz!r}") from e


def _as_instant(now) -> pd.Timestamp:
    try:
        ts = pd.Timestamp(now)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Malformed instant: {now!r}") from e
    if ts is pd.NaT:
        raise InvalidInputError("Instant must not be NaT")
    if ts.tzinfo is None:
        raise InvalidInputError(f"Instant must be timezone-aware: {now!r}")
    return ts


def _resolve_offsets(offsets: OffsetsArg) -> PolicyOffsets:
    if offsets is None:
        return PolicyOffsets()
    if isinstance(offsets, PolicyOffsets):
        return offsets
    return PolicyOffsets().with_overrides(**dict(offsets))


def monday_of(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def week_of(now, tz: str) -> date:
    """Local Monday (as a date) of the week containing ``now`` in ``tz``."""
    zone = resolve_timezone(tz)
    local = _as_instant(now).tz_convert(zone)
    return monday_of(local.date())


def weeks_between(earlier: date, later: date) -> int:
    """Whole weeks between the Mondays of two dates. Never negative."""
    days = (monday_of(later) - monday_of(earlier)).days
    return max(0, days // 7)


def localize(local_date: date, hour: int, minute: int, second: int, zone: ZoneInfo) -> datetime:
    """Attach ``zone`` to a local wall-clock time and return the UTC instant.

    Nonexistent times (spring forward) shift to the first valid instant;
    ambiguous times (fall back) resolve to the first occurrence.
    """
    naive = pd.Timestamp(datetime(local_date.year, local_date.month, local_date.day, hour, minute, second))
    aware = naive.tz_localize(zone, ambiguous=True, nonexistent="shift_forward")
    return aware.tz_convert("UTC").to_pydatetime()


def _resolve_offset(monday: date, offset: PolicyOffset, zone: ZoneInfo) -> datetime:
    hour, minute, second = offset.clock()
    return localize(monday + timedelta(days=offset.day_offset), hour, minute, second, zone)


def anchors(now, tz: str, offsets: OffsetsArg = None) -> WeekAnchors:
    """Derive the current coaching week's anchors for ``now`` in ``tz``.

    Offsets are applied to local calendar time first and converted to UTC
    last, so every boundary keeps its wall-clock meaning across DST changes.
    """
    zone = resolve_timezone(tz)
    policy = _resolve_offsets(offsets)
    monday = monday_of(_as_instant(now).tz_convert(zone).date())

    resolved = {f.name: _resolve_offset(monday, getattr(policy, f.name), zone) for f in fields(policy)}
    return WeekAnchors(
        week_of=monday,
        timezone=tz,
        week_start_utc=localize(monday, 0, 0, 0, zone),
        checkin_open_utc=resolved["checkin_open"],
        checkin_visible_utc=resolved["checkin_visible"],
        checkin_due_utc=resolved["checkin_due"],
        checkout_open_utc=resolved["checkout_open"],
        checkout_due_utc=resolved["checkout_due"],
        week_end_utc=resolved["week_end"],
    )


def anchors_for_week(week: date, tz: str, offsets: OffsetsArg = None) -> WeekAnchors:
    """Anchors for the week containing the local date ``week``."""
    zone = resolve_timezone(tz)
    noon = localize(monday_of(week), 12, 0, 0, zone)
    return anchors(noon, tz, offsets)


# Window predicates. "Due" and "late" are the same instant; there is no grace period.

def is_checkin_visible(now, week: WeekAnchors) -> bool:
    return _as_instant(now) >= week.checkin_visible_utc


def is_checkin_open(now, week: WeekAnchors) -> bool:
    return _as_instant(now) >= week.checkin_open_utc


def is_checkin_late(now, week: WeekAnchors) -> bool:
    return _as_instant(now) >= week.checkin_due_utc


def is_checkout_open(now, week: WeekAnchors) -> bool:
    return _as_instant(now) >= week.checkout_open_utc


def is_checkout_late(now, week: WeekAnchors) -> bool:
    return _as_instant(now) >= week.checkout_due_utc


def is_week_closed(now, week: WeekAnchors) -> bool:
    return _as_instant(now) >= week.week_end_utc


def is_late(submitted_at, due: datetime) -> bool:
    """A submission is late iff it was submitted strictly after its due instant."""
    if submitted_at is None:
        return False
    return _as_instant(submitted_at) > due
