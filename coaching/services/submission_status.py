"""Week status, row highlights and time-gated submission statistics."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from coaching.domain.values import (
    LocationWeekStats,
    RowHighlight,
    StaffWeekSummary,
    SubmissionGates,
    Tint,
    WeekAnchors,
    WeekStatus,
)
from coaching.errors import InvalidInputError
from coaching.services.week_clock import is_checkin_late, is_checkout_open

BEAT_CONFIDENCE = "Beat confidence"
LOW_CONFIDENCE = "Low confidence"
LOW_CONFIDENCE_MAX = 2
SCORE_KEYS = (("confidence_score", "performance_score"), ("confidence", "performance"))


def _scores(row) -> Tuple[Optional[int], Optional[int]]:
    if isinstance(row, Mapping):
        for conf_key, perf_key in SCORE_KEYS:
            if conf_key in row or perf_key in row:
                return row.get(conf_key), row.get(perf_key)
        raise InvalidInputError(f"Score row has no confidence or performance field: {dict(row)!r}")
    return row.confidence_score, row.performance_score


def week_status(rows: Iterable) -> WeekStatus:
    """Classify a week's score rows.

    Partial confidence with mixed performance stays GREY rather than
    being promoted to YELLOW.
    """
    pairs = [_scores(r) for r in rows]
    total = len(pairs)
    if total == 0:
        return WeekStatus.GREY

    conf_count = sum(1 for conf, _ in pairs if conf is not None)
    perf_count = sum(1 for _, perf in pairs if perf is not None)

    if conf_count == 0:
        return WeekStatus.GREY
    if perf_count == total:
        return WeekStatus.GREEN
    if conf_count == total:
        return WeekStatus.YELLOW
    return WeekStatus.GREY


def row_highlight(confidence: Optional[int], performance: Optional[int]) -> RowHighlight:
    if confidence is None:
        return RowHighlight(Tint.NEUTRAL, ())

    low = confidence <= LOW_CONFIDENCE_MAX
    beat = performance is not None and performance - confidence >= 1

    if beat:
        tags = (BEAT_CONFIDENCE, LOW_CONFIDENCE) if low else (BEAT_CONFIDENCE,)
        return RowHighlight(Tint.BEAT, tags)
    if low:
        return RowHighlight(Tint.LOW, (LOW_CONFIDENCE,))
    return RowHighlight(Tint.NEUTRAL, ())


def submission_gates(now, week: WeekAnchors) -> SubmissionGates:
    return SubmissionGates(
        is_past_checkin_due=is_checkin_late(now, week),
        is_checkout_open=is_checkout_open(now, week),
    )


def missing_counts(summaries: Sequence[StaffWeekSummary], gates: SubmissionGates) -> Tuple[int, int]:
    """Count staff missing confidence (after check-in due) and performance (after check-out opens)."""
    missing_conf = (
        sum(1 for s in summaries if s.conf_count < s.assignment_count) if gates.is_past_checkin_due else 0
    )
    missing_perf = (
        sum(1 for s in summaries if s.perf_count < s.assignment_count) if gates.is_checkout_open else 0
    )
    return missing_conf, missing_perf


def location_week_stats(summaries: Sequence[StaffWeekSummary], gates: SubmissionGates) -> LocationWeekStats:
    """
    Time-gated submission statistics for one location's week.

    Confidence slots count toward the rate once check-in is due; performance
    slots only once check-out has opened. When nothing is due yet the rate
    is 100 (everyone on track).
    """
    required = 0
    submitted = 0
    for s in summaries:
        if gates.is_past_checkin_due:
            required += s.assignment_count
            submitted += s.conf_count
        if gates.is_checkout_open:
            required += s.assignment_count
            submitted += s.perf_count
    rate = (submitted / required) * 100 if required > 0 else 100.0

    conf_values: List[int] = []
    perf_values: List[int] = []
    for s in summaries:
        for row in s.scores:
            if row.confidence_score is not None:
                conf_values.append(row.confidence_score)
            if row.performance_score is not None:
                perf_values.append(row.performance_score)

    missing_conf, missing_perf = missing_counts(summaries, gates)
    return LocationWeekStats(
        staff_count=len(summaries),
        submission_rate=rate,
        missing_conf_count=missing_conf,
        missing_perf_count=missing_perf,
        avg_confidence=sum(conf_values) / len(conf_values) if conf_values else 0.0,
        avg_performance=sum(perf_values) / len(perf_values) if perf_values else 0.0,
    )
