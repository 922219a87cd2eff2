"""NeedScore components and reason attribution for skill candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from coaching.config import SequencerConfig
from coaching.domain.values import NEVER_PRACTICED, ReasonCode, SkillCandidate

# Exact ties between labelled contributions resolve in this order
REASON_PRIORITY = (ReasonCode.LOW_CONF, ReasonCode.RETEST, ReasonCode.NEVER, ReasonCode.STALE)


@dataclass(frozen=True)
class ScoreBreakdown:
    low_confidence: float
    retest: float
    recency: float
    staleness: float
    final_score: float
    reason_code: ReasonCode
    reason_value: Optional[float]


def calculate_recency_score(weeks_since: int, cfg: SequencerConfig) -> float:
    """
    Recency in 0..1, non-decreasing in ``weeks_since``.

    Zero while inside the cooldown, then linear up to the horizon. A small
    long-tail trickle keeps very old skills drifting upward. Never-practiced
    skills get the maximum.
    """
    if weeks_since >= NEVER_PRACTICED:
        return 1.0

    cooldown = cfg.cooldown_weeks
    horizon = cfg.recency_horizon_weeks

    if weeks_since <= cooldown:
        base = 0.0
    elif weeks_since >= horizon:
        base = 1.0
    else:
        base = (weeks_since - cooldown) / (horizon - cooldown)

    trickle = min(weeks_since / cfg.trickle_weeks, 1.0) * cfg.trickle_weight
    return min(base + trickle, 1.0)


def calculate_low_confidence_pressure(low_confidence_share: Optional[float]) -> float:
    """Unknown confidence is never treated as safe."""
    if low_confidence_share is None:
        return 1.0
    return max(0.0, min(1.0, float(low_confidence_share)))


def is_stale(candidate: SkillCandidate, cfg: SequencerConfig) -> bool:
    """Was good, hasn't been touched: practiced long ago with high average confidence."""
    if candidate.never_practiced:
        return False
    if candidate.average_recent_confidence is None:
        return False
    return (
        candidate.last_practiced_weeks_ago >= cfg.stale_weeks
        and candidate.average_recent_confidence >= cfg.stale_confidence
    )


def attribute_reason(contributions: Dict[ReasonCode, float], cfg: SequencerConfig) -> ReasonCode:
    """Pick the highest labelled contribution; TIE when nothing contributes meaningfully."""
    best = max(REASON_PRIORITY, key=lambda code: (contributions.get(code, 0.0), -REASON_PRIORITY.index(code)))
    if contributions.get(best, 0.0) < cfg.min_reason_contribution:
        return ReasonCode.TIE
    return best


def score_candidate(candidate: SkillCandidate, cfg: SequencerConfig) -> ScoreBreakdown:
    """
    Calculate the NeedScore for one skill candidate.

    Higher score = more urgent to practice.

    Args:
        candidate: Skill to score
        cfg: Sequencer configuration (weights, bonuses, thresholds)

    Returns:
        ScoreBreakdown with component contributions, final score and primary reason
    """
    w = cfg.weights
    never = candidate.never_practiced
    stale = is_stale(candidate, cfg)

    low_conf = w.low_confidence * calculate_low_confidence_pressure(candidate.low_confidence_share)
    retest = cfg.retest_bonus if candidate.retest_due else 0.0
    recency = w.recency * calculate_recency_score(candidate.last_practiced_weeks_ago, cfg)
    staleness = w.staleness if stale else 0.0

    final_score = round(low_conf + retest + recency + staleness, 6)

    # Unknown confidence on a never-attempted skill is explained by "never", not by observed low confidence
    unknown_because_never = never and candidate.low_confidence_share is None
    contributions = {
        ReasonCode.LOW_CONF: 0.0 if unknown_because_never else low_conf,
        ReasonCode.RETEST: retest,
        ReasonCode.NEVER: (recency + (low_conf if unknown_because_never else 0.0)) if never else 0.0,
        ReasonCode.STALE: recency + staleness if stale else 0.0,
    }
    code = attribute_reason(contributions, cfg)

    value: Optional[float] = None
    if code is ReasonCode.LOW_CONF:
        value = candidate.low_confidence_share
    elif code is ReasonCode.STALE:
        value = float(candidate.last_practiced_weeks_ago)

    return ScoreBreakdown(
        low_confidence=low_conf,
        retest=retest,
        recency=recency,
        staleness=staleness,
        final_score=final_score,
        reason_code=code,
        reason_value=value,
    )
