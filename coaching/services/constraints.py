"""Constraint checks for weekly skill selection."""

from __future__ import annotations

import math
from numbers import Integral, Real
from typing import Dict, Iterable, Optional

from coaching.config import SequencerConfig
from coaching.domain.values import SkillCandidate


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def candidate_problem(candidate: SkillCandidate) -> Optional[str]:
    """Return why a candidate cannot be scheduled, or None if it is structurally valid."""
    if candidate.skill_id is None:
        return "missing skill_id"
    if not _is_int(candidate.skill_id):
        return "skill_id is not an integer"
    if candidate.domain_id is None:
        return "missing domain"
    if not _is_int(candidate.domain_id):
        return "domain_id is not an integer"
    weeks = candidate.last_practiced_weeks_ago
    if not _is_int(weeks) or weeks < 0:
        return "invalid last_practiced_weeks_ago"
    share = candidate.low_confidence_share
    if share is not None:
        if not _is_number(share):
            return "low_confidence_share is not a number"
        if not 0.0 <= share <= 1.0:
            return "low_confidence_share outside 0..1"
    average = candidate.average_recent_confidence
    if average is not None and not _is_number(average):
        return "average_recent_confidence is not a number"
    return None


def passes_cooldown(candidate: SkillCandidate, cfg: SequencerConfig) -> bool:
    """A skill practiced within the cooldown window cannot be selected again this week."""
    return candidate.last_practiced_weeks_ago >= cfg.cooldown_weeks


def domain_weeks_since_selected(candidates: Iterable[SkillCandidate]) -> Dict[int, int]:
    """Weeks since any skill of each domain was last practiced (minimum over its skills)."""
    weeks: Dict[int, int] = {}
    for c in candidates:
        current = weeks.get(c.domain_id)
        if current is None or c.last_practiced_weeks_ago < current:
            weeks[c.domain_id] = c.last_practiced_weeks_ago
    return weeks


def lapsing_domains(candidates: Iterable[SkillCandidate], cfg: SequencerConfig) -> Dict[int, int]:
    """Domains whose coverage window lapses unless selected this week, with their weeks since selection."""
    weeks = domain_weeks_since_selected(candidates)
    return {d: w for d, w in weeks.items() if w >= cfg.coverage_window_weeks}


def required_distinct_domains(available_domains: int, cfg: SequencerConfig) -> int:
    """Distinct domains the selection must reach given what is available."""
    return min(cfg.min_distinct_domains, cfg.picks_per_week, available_domains)
