"""Backfill detection: unresolved prior weeks since participation start."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, List, Mapping, Optional, Union

from coaching.domain.values import BackfillState, BackfillStatus, WeekStatus
from coaching.services.submission_status import week_status
from coaching.services.week_clock import monday_of


def _normalize_history(week_history: Mapping) -> Dict[date, WeekStatus]:
    """Map every history key to its Monday and every value to a WeekStatus.

    Values that are not already a WeekStatus are treated as that week's score rows.
    """
    by_week: Dict[date, WeekStatus] = {}
    grouped: Dict[date, list] = {}
    for key, value in week_history.items():
        monday = monday_of(key)
        if isinstance(value, WeekStatus):
            by_week[monday] = value
        else:
            grouped.setdefault(monday, []).extend(value)
    for monday, rows in grouped.items():
        by_week.setdefault(monday, week_status(rows))
    return by_week


def backfill_status(
    participation_start: Optional[Union[date, datetime]],
    week_history: Mapping,
    current_week: Union[date, datetime],
) -> BackfillStatus:
    """
    Decide whether a staff member still owes backfill for prior weeks.

    Args:
        participation_start: When the staff member started participating; None is indeterminate
        week_history: {week date: WeekStatus or that week's score rows}
        current_week: Any date in the current (in-progress) week, which is not checked

    Returns:
        BackfillStatus with tri-state completion and the unresolved weeks (newest first)
    """
    if participation_start is None:
        return BackfillStatus(state=BackfillState.INDETERMINATE, is_complete=None)

    start_week = monday_of(participation_start)
    statuses = _normalize_history(week_history)

    missing: List[date] = []
    checked = 0
    week = monday_of(current_week) - timedelta(days=7)
    while week >= start_week:
        checked += 1
        if statuses.get(week, WeekStatus.GREY) is not WeekStatus.GREEN:
            missing.append(week)
        week -= timedelta(days=7)

    if missing:
        return BackfillStatus(
            state=BackfillState.INCOMPLETE,
            is_complete=False,
            missing_weeks=tuple(missing),
            weeks_checked=checked,
        )
    return BackfillStatus(state=BackfillState.COMPLETE, is_complete=True, weeks_checked=checked)
