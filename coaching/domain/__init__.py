"""Domain value objects, models and data access layer."""

from .models import Base, Domain, Location, ProMove, Staff, WeeklyScore, WeeklySelection
from .repositories import (
    LocationRepository,
    ProMoveRepository,
    ScoreRepository,
    SelectionRepository,
    StaffRepository,
)
from .values import (
    NEVER_PRACTICED,
    BackfillState,
    BackfillStatus,
    RankedRecommendation,
    ReasonCode,
    ScoreRow,
    ScoreSource,
    SkillCandidate,
    StaffWeekSummary,
    WeekAnchors,
    WeekStatus,
)

__all__ = [
    "Base",
    "Domain",
    "Location",
    "ProMove",
    "Staff",
    "WeeklyScore",
    "WeeklySelection",
    "LocationRepository",
    "ProMoveRepository",
    "ScoreRepository",
    "SelectionRepository",
    "StaffRepository",
    "NEVER_PRACTICED",
    "BackfillState",
    "BackfillStatus",
    "RankedRecommendation",
    "ReasonCode",
    "ScoreRow",
    "ScoreSource",
    "SkillCandidate",
    "StaffWeekSummary",
    "WeekAnchors",
    "WeekStatus",
]
