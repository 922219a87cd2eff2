"""Orchestrator - wires the data store to the coaching core for planning and reporting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List

import pandas as pd
from sqlalchemy.orm import Session

from coaching.config import CoachingConfig
from coaching.domain.models import WeeklySelection
from coaching.domain.repositories import (
    LocationRepository,
    ProMoveRepository,
    ScoreRepository,
    SelectionRepository,
    StaffRepository,
)
from coaching.domain.values import (
    BackfillStatus,
    LocationWeekStats,
    PolicyOffsets,
    SequencerResult,
    StaffWeekSummary,
    SubmissionGates,
    WeekAnchors,
    WeekStatus,
)
from coaching.services.aggregation import aggregate
from coaching.services.backfill import backfill_status
from coaching.services.candidates import build_candidates
from coaching.services.submission_status import location_week_stats, submission_gates, week_status
from coaching.services.week_clock import anchors, monday_of, week_of

from .sequencer import sequence


@dataclass(frozen=True)
class LocationWeekReport:
    location_id: str
    anchors: WeekAnchors
    status: WeekStatus
    summaries: List[StaffWeekSummary]
    gates: SubmissionGates
    stats: LocationWeekStats


def _location_offsets(cfg: CoachingConfig, overrides) -> PolicyOffsets:
    if not overrides:
        return cfg.policy_offsets
    return cfg.policy_offsets.with_overrides(**overrides)


def _prior_history(frames: List[pd.DataFrame], target: date) -> pd.DataFrame:
    frames = [f for f in frames if not f.empty]
    if not frames:
        return pd.DataFrame(columns=["skill_id", "week_of", "confidence_score"])
    history = pd.concat(frames, ignore_index=True)
    weeks = pd.to_datetime(history["week_of"]).dt.date.map(monday_of)
    return history[weeks < target].copy()


def plan_role_week(
    session: Session,
    role_id: int,
    week: date,
    cfg: CoachingConfig,
    persist: bool = True,
) -> SequencerResult:
    """
    Rank a role's active pro moves and select the week's picks.

    History is every rated assignment plus every persisted selection for the
    role strictly before the target week, so re-planning a week replaces it
    rather than cooling it down.

    Args:
        session: Database session
        role_id: Role whose catalog is ranked
        week: Any date in the target week
        cfg: CoachingConfig
        persist: If True, replace the stored selection for this role and week

    Returns:
        SequencerResult for the week
    """
    target = monday_of(week)
    print(f"[INFO] Planning role {role_id} for week of {target.isoformat()}")

    catalog = ProMoveRepository.catalog_frame(session, role_id)
    if catalog.empty:
        raise LookupError(f"No active pro moves for role {role_id}")

    history = _prior_history(
        [ScoreRepository.history_frame(session, role_id), SelectionRepository.history_frame(session, role_id)],
        target,
    )
    candidates = build_candidates(
        catalog,
        history,
        target,
        lookback_weeks=cfg.lookback_weeks,
        low_cutoff=cfg.low_cutoff,
        retest_window=cfg.retest_window_weeks,
        retest_low_share=cfg.retest_low_share,
    )
    print(f"[INFO] Built {len(candidates)} candidates from {len(history)} history rows")

    result = sequence(candidates, cfg.sequencer, week_of=target)
    for line in result.logs:
        print(f"[INFO] {line}")
    for skill_id, problem in result.excluded:
        print(f"[WARN] Skipped pro move {skill_id}: {problem}")

    if persist:
        deleted = SelectionRepository.delete_by_role_week(session, role_id, target)
        if deleted > 0:
            print(f"[INFO] Deleted {deleted} existing selections for role {role_id}, week {target}")
        SelectionRepository.bulk_create(
            session,
            [
                WeeklySelection(
                    role_id=role_id,
                    week_of=target,
                    pro_move_id=rec.skill_id,
                    display_order=i,
                    final_score=rec.final_score,
                    reason_code=rec.primary_reason_code.value,
                    forced_for_coverage=rec.forced_for_coverage,
                )
                for i, rec in enumerate(result.selected, start=1)
            ],
        )
        print(f"[INFO] Persisted {len(result.selected)} selections to database")

    print(f"[OK] Selected {[rec.skill_id for rec in result.selected]} for role {role_id}")
    return result


def location_week_report(session: Session, location_id: str, now, cfg: CoachingConfig) -> LocationWeekReport:
    """Anchors, per-staff summaries and time-gated stats for a location's current week."""
    location = LocationRepository.get_by_id(session, location_id)
    if location is None:
        raise LookupError(f"Unknown location {location_id}")

    offsets = _location_offsets(cfg, location.policy_overrides)
    week_anchors = anchors(now, location.timezone or cfg.timezone, offsets)
    rows = ScoreRepository.rows_for_week(session, week_anchors.week_of, location_id=location_id)
    summaries = aggregate(rows, week_anchors.week_of, week_anchors)
    gates = submission_gates(now, week_anchors)
    stats = location_week_stats(summaries, gates)

    print(
        f"[INFO] {location.name}: week of {week_anchors.week_of}, {stats.staff_count} staff, "
        f"{stats.submission_rate:.0f}% submitted"
    )
    return LocationWeekReport(
        location_id=location_id,
        anchors=week_anchors,
        status=week_status(rows),
        summaries=summaries,
        gates=gates,
        stats=stats,
    )


def staff_backfill_status(session: Session, staff_id: str, now, cfg: CoachingConfig) -> BackfillStatus:
    """Backfill status for one staff member as of ``now`` in their location's timezone."""
    staff = StaffRepository.get_by_id(session, staff_id)
    if staff is None:
        raise LookupError(f"Unknown staff {staff_id}")

    tz = staff.location.timezone if staff.location is not None and staff.location.timezone else cfg.timezone
    current = week_of(now, tz)

    history: Dict[date, list] = {}
    for row in ScoreRepository.rows_for_staff(session, staff_id):
        history.setdefault(row.week_of, []).append(row)

    status = backfill_status(staff.participation_start_at, history, current)
    if status.is_complete is None:
        print(f"[WARN] {staff.name} has no participation start; backfill is indeterminate")
    elif status.missing_weeks:
        print(f"[INFO] {staff.name} has {len(status.missing_weeks)} week(s) to backfill")
    return status
