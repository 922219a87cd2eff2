"""Pure services for weekly coaching logic."""

from .aggregation import aggregate
from .backfill import backfill_status
from .candidates import build_candidates
from .scoring import score_candidate
from .submission_status import location_week_stats, row_highlight, submission_gates, week_status
from .week_clock import anchors, week_of

__all__ = [
    "aggregate",
    "anchors",
    "backfill_status",
    "build_candidates",
    "location_week_stats",
    "row_highlight",
    "score_candidate",
    "submission_gates",
    "week_of",
    "week_status",
]
