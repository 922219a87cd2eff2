"""Fold per-assignment score rows into one summary per staff member per week."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

from coaching.domain.values import ScoreRow, ScoreSource, StaffWeekSummary, WeekAnchors
from coaching.services.week_clock import is_late

_IDENTITY_FIELDS = (
    "staff_name",
    "staff_email",
    "role_id",
    "role_name",
    "location_id",
    "location_name",
    "organization_id",
    "organization_name",
)


def row_is_late(row: ScoreRow, anchors: Optional[WeekAnchors] = None) -> bool:
    """Stored lateness flags, plus live submissions past their due anchor when anchors are known."""
    if row.confidence_late or row.performance_late:
        return True
    if anchors is None:
        return False
    if row.confidence_source is ScoreSource.LIVE and is_late(row.confidence_submitted_at, anchors.checkin_due_utc):
        return True
    if row.performance_source is ScoreSource.LIVE and is_late(row.performance_submitted_at, anchors.checkout_due_utc):
        return True
    return False


def aggregate(
    rows: Iterable[ScoreRow],
    week_of: Optional[date],
    anchors: Optional[WeekAnchors] = None,
) -> List[StaffWeekSummary]:
    """
    Group score rows by staff member for one week.

    Args:
        rows: Score rows already scoped to the week
        week_of: Week the rows belong to (copied onto each summary)
        anchors: Optional week anchors used to flag late live submissions

    Returns:
        Summaries in order of each staff member's first row
    """
    groups: Dict[str, dict] = {}

    for row in rows:
        group = groups.get(row.staff_id)
        if group is None:
            group = {
                "identity": {name: getattr(row, name) for name in _IDENTITY_FIELDS},
                "assignment_count": 0,
                "conf_count": 0,
                "perf_count": 0,
                "has_any_late": False,
                "scores": [],
            }
            groups[row.staff_id] = group

        group["assignment_count"] += 1
        group["scores"].append(row)
        if row.confidence_score is not None:
            group["conf_count"] += 1
        if row.performance_score is not None:
            group["perf_count"] += 1
        if row_is_late(row, anchors):
            group["has_any_late"] = True

    summaries: List[StaffWeekSummary] = []
    for staff_id, group in groups.items():
        count = group["assignment_count"]
        is_complete = (
            count > 0
            and group["conf_count"] == count
            and group["perf_count"] == count
            and not group["has_any_late"]
        )
        summaries.append(
            StaffWeekSummary(
                staff_id=staff_id,
                week_of=week_of,
                assignment_count=count,
                conf_count=group["conf_count"],
                perf_count=group["perf_count"],
                has_any_late=group["has_any_late"],
                is_complete=is_complete,
                scores=tuple(group["scores"]),
                **group["identity"],
            )
        )
    return summaries
