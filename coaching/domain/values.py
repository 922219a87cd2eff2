"""Immutable value objects passed between the coaching core and its collaborators."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from coaching.errors import InvalidInputError

# Sentinel for "never practiced" in SkillCandidate.last_practiced_weeks_ago
NEVER_PRACTICED = 999

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class WeekStatus(str, Enum):
    GREY = "grey"
    YELLOW = "yellow"
    GREEN = "green"


class ReasonCode(str, Enum):
    LOW_CONF = "LOW_CONF"
    RETEST = "RETEST"
    NEVER = "NEVER"
    STALE = "STALE"
    TIE = "TIE"


class ScoreSource(str, Enum):
    LIVE = "live"
    BACKFILL = "backfill"
    BACKFILL_HISTORICAL = "backfill_historical"


class Tint(str, Enum):
    NEUTRAL = "neutral"
    BEAT = "beat"  # tint A
    LOW = "low"  # tint B


class BackfillState(str, Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class PolicyOffset:
    """A local wall-clock point expressed relative to the week's Monday."""

    day_offset: int  # 0 = Monday
    time: str  # HH:MM or HH:MM:SS, local

    def __post_init__(self) -> None:
        if not isinstance(self.day_offset, int) or not 0 <= self.day_offset <= 6:
            raise InvalidInputError(f"day_offset must be 0..6, got {self.day_offset!r}")
        self.clock()

    def clock(self) -> Tuple[int, int, int]:
        """Parse ``time`` into (hour, minute, second)."""
        match = _TIME_RE.match(str(self.time))
        if not match:
            raise InvalidInputError(f"Malformed offset time: {self.time!r}")
        hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
        if hour > 23 or minute > 59 or second > 59:
            raise InvalidInputError(f"Offset time out of range: {self.time!r}")
        return hour, minute, second

    def sort_key(self) -> Tuple[int, int, int, int]:
        return (self.day_offset, *self.clock())


@dataclass(frozen=True)
class PolicyOffsets:
    """Submission window boundaries for one location. Defaults are the company-wide policy."""

    checkin_open: PolicyOffset = PolicyOffset(0, "00:01")
    checkin_visible: PolicyOffset = PolicyOffset(0, "09:00")
    checkin_due: PolicyOffset = PolicyOffset(1, "14:00")
    checkout_open: PolicyOffset = PolicyOffset(3, "00:01")
    checkout_due: PolicyOffset = PolicyOffset(4, "17:00")
    week_end: PolicyOffset = PolicyOffset(6, "23:59:59")

    def __post_init__(self) -> None:
        keys = [getattr(self, f.name).sort_key() for f in fields(self)]
        if keys != sorted(keys):
            raise InvalidInputError(
                "Policy offsets must be ordered checkin_open <= checkin_visible <= checkin_due "
                "<= checkout_open <= checkout_due <= week_end"
            )

    def with_overrides(self, **overrides) -> "PolicyOffsets":
        """Return a copy with some boundaries replaced.

        Values may be ``PolicyOffset`` objects, ``(day_offset, time)`` pairs or
        mappings with ``day_offset``/``time`` keys (the YAML shape).
        """
        names = {f.name for f in fields(self)}
        parsed = {}
        for name, value in overrides.items():
            if name not in names:
                raise InvalidInputError(f"Unknown policy offset: {name}")
            parsed[name] = coerce_offset(value)
        return replace(self, **parsed)


def coerce_offset(value) -> PolicyOffset:
    if isinstance(value, PolicyOffset):
        return value
    if isinstance(value, dict):
        try:
            return PolicyOffset(int(value["day_offset"]), str(value["time"]))
        except KeyError as e:
            raise InvalidInputError(f"Policy offset missing key {e}") from e
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return PolicyOffset(int(value[0]), str(value[1]))
    raise InvalidInputError(f"Cannot interpret policy offset: {value!r}")


@dataclass(frozen=True)
class WeekAnchors:
    """Absolute (UTC) boundaries of one coaching week at one location."""

    week_of: date
    timezone: str
    week_start_utc: datetime
    checkin_open_utc: datetime
    checkin_visible_utc: datetime
    checkin_due_utc: datetime
    checkout_open_utc: datetime
    checkout_due_utc: datetime
    week_end_utc: datetime


@dataclass(frozen=True)
class ScoreRow:
    """One (staff, week, skill) score record as returned by the data store."""

    staff_id: str
    week_of: Optional[date] = None
    skill_id: Optional[int] = None
    confidence_score: Optional[int] = None
    performance_score: Optional[int] = None
    confidence_late: bool = False
    performance_late: bool = False
    confidence_submitted_at: Optional[datetime] = None
    performance_submitted_at: Optional[datetime] = None
    confidence_source: ScoreSource = ScoreSource.LIVE
    performance_source: ScoreSource = ScoreSource.LIVE
    staff_name: Optional[str] = None
    staff_email: Optional[str] = None
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    domain_id: Optional[int] = None
    domain_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.staff_id is None or self.staff_id == "":
            raise InvalidInputError("ScoreRow requires a staff_id")
        for name in ("confidence_score", "performance_score"):
            value = getattr(self, name)
            if value is not None and not 1 <= value <= 4:
                raise InvalidInputError(f"{name} must be in 1..4, got {value!r}")


@dataclass(frozen=True)
class StaffWeekSummary:
    staff_id: str
    week_of: Optional[date]
    assignment_count: int
    conf_count: int
    perf_count: int
    has_any_late: bool
    is_complete: bool
    staff_name: Optional[str] = None
    staff_email: Optional[str] = None
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    scores: Tuple[ScoreRow, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class SkillCandidate:
    skill_id: Optional[int]
    domain_id: Optional[int]
    domain_name: Optional[str] = None
    last_practiced_weeks_ago: int = NEVER_PRACTICED
    low_confidence_share: Optional[float] = None  # fraction of recent ratings <= 2
    average_recent_confidence: Optional[float] = None
    retest_due: bool = False
    name: Optional[str] = None

    @property
    def never_practiced(self) -> bool:
        return self.last_practiced_weeks_ago >= NEVER_PRACTICED


@dataclass(frozen=True)
class RankedRecommendation:
    skill_id: int
    domain_id: int
    final_score: float
    primary_reason_code: ReasonCode
    primary_reason_value: Optional[float] = None
    domain_name: Optional[str] = None
    name: Optional[str] = None
    forced_for_coverage: bool = False


@dataclass(frozen=True)
class RowHighlight:
    tint: Tint
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BackfillStatus:
    state: BackfillState
    is_complete: Optional[bool]
    missing_weeks: Tuple[date, ...] = ()
    weeks_checked: int = 0


@dataclass(frozen=True)
class SubmissionGates:
    is_past_checkin_due: bool
    is_checkout_open: bool


@dataclass(frozen=True)
class LocationWeekStats:
    staff_count: int
    submission_rate: float
    missing_conf_count: int
    missing_perf_count: int
    avg_confidence: float
    avg_performance: float


@dataclass(frozen=True)
class SequencerResult:
    """Output of one sequencing run: full ranking plus the constrained weekly selection."""

    week_of: Optional[date]
    ranked: Tuple[RankedRecommendation, ...] = ()
    selected: Tuple[RankedRecommendation, ...] = ()
    cooldown_blocked: Tuple[int, ...] = ()
    forced_skill_ids: Tuple[int, ...] = ()
    excluded: Tuple[Tuple[Optional[int], str], ...] = ()  # (skill_id, reason)
    logs: Tuple[str, ...] = ()
