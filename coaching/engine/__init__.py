"""Sequencing engine and orchestration."""

from .orchestrator import LocationWeekReport, location_week_report, plan_role_week, staff_backfill_status
from .sequencer import advance_week, plan_next_and_preview, sequence, simulate

__all__ = [
    "LocationWeekReport",
    "advance_week",
    "location_week_report",
    "plan_next_and_preview",
    "plan_role_week",
    "sequence",
    "simulate",
    "staff_backfill_status",
]
