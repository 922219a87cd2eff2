"""Configuration loading for the coaching scheduler (YAML)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional

import yaml

from coaching.domain.values import PolicyOffsets
from coaching.errors import InvalidInputError

DEFAULT_TIMEZONE = "America/Chicago"

PRESET_WEIGHTS: Dict[str, Dict[str, float]] = {
    "balanced": {"low_confidence": 0.65, "recency": 0.25, "staleness": 0.10},
    "confidence_recovery": {"low_confidence": 0.80, "recency": 0.15, "staleness": 0.05},
    "variety_first": {"low_confidence": 0.45, "recency": 0.40, "staleness": 0.15},
}


@dataclass(frozen=True)
class NeedScoreWeights:
    low_confidence: float = 0.65
    recency: float = 0.25
    staleness: float = 0.10

    def normalized(self) -> "NeedScoreWeights":
        total = self.low_confidence + self.recency + self.staleness
        if total <= 0:
            raise InvalidInputError("NeedScore weights must sum to a positive value")
        if abs(total - 1.0) <= 0.001:
            return self
        return NeedScoreWeights(
            low_confidence=self.low_confidence / total,
            recency=self.recency / total,
            staleness=self.staleness / total,
        )


@dataclass(frozen=True)
class SequencerConfig:
    weights: NeedScoreWeights = field(default_factory=NeedScoreWeights)
    retest_bonus: float = 0.30

    # Recency curve
    recency_horizon_weeks: int = 16
    trickle_weeks: int = 24
    trickle_weight: float = 0.20

    # Staleness: practiced long ago with high average confidence (1-4 scale)
    stale_weeks: int = 6
    stale_confidence: float = 3.0

    # Below this contribution no component explains the score
    min_reason_contribution: float = 0.05

    # Selection constraints
    cooldown_weeks: int = 2
    coverage_window_weeks: int = 4
    min_distinct_domains: int = 2
    picks_per_week: int = 3

    def __post_init__(self) -> None:
        for name in ("retest_bonus", "trickle_weight", "min_reason_contribution"):
            if getattr(self, name) < 0:
                raise InvalidInputError(f"{name} must be >= 0")
        for name in ("cooldown_weeks", "coverage_window_weeks", "min_distinct_domains"):
            if getattr(self, name) < 0:
                raise InvalidInputError(f"{name} must be >= 0")
        if self.picks_per_week < 1:
            raise InvalidInputError("picks_per_week must be >= 1")
        if self.recency_horizon_weeks <= self.cooldown_weeks:
            raise InvalidInputError("recency_horizon_weeks must exceed cooldown_weeks")
        if self.trickle_weeks < 1:
            raise InvalidInputError("trickle_weeks must be >= 1")
        # Store normalized weights so every consumer sees the same sum
        object.__setattr__(self, "weights", self.weights.normalized())

    def with_preset(self, preset: str) -> "SequencerConfig":
        if preset not in PRESET_WEIGHTS:
            raise InvalidInputError(f"Unknown preset {preset!r}; expected one of {sorted(PRESET_WEIGHTS)}")
        return replace(self, weights=NeedScoreWeights(**PRESET_WEIGHTS[preset]))


@dataclass(frozen=True)
class CoachingConfig:
    timezone: str = DEFAULT_TIMEZONE
    policy_offsets: PolicyOffsets = field(default_factory=PolicyOffsets)
    sequencer: SequencerConfig = field(default_factory=SequencerConfig)
    lookback_weeks: int = 9
    low_cutoff: int = 2
    retest_window_weeks: tuple = (2, 4)
    retest_low_share: float = 0.30


def _sequencer_from_dict(data: Dict) -> SequencerConfig:
    data = dict(data or {})
    preset = data.pop("preset", None)
    weights = data.pop("weights", None)
    known = {name for name in SequencerConfig.__dataclass_fields__ if name != "weights"}
    kwargs = {k: v for k, v in data.items() if k in known}
    if weights:
        kwargs["weights"] = NeedScoreWeights(
            **{k: float(v) for k, v in weights.items() if k in NeedScoreWeights.__dataclass_fields__}
        )
    cfg = SequencerConfig(**kwargs)
    if preset:
        cfg = cfg.with_preset(preset)
    return cfg


def config_from_dict(data: Optional[Dict]) -> CoachingConfig:
    """Build a CoachingConfig from a parsed YAML mapping. Unknown keys are ignored."""
    data = data or {}
    offsets = PolicyOffsets().with_overrides(**(data.get("policy_offsets") or {}))
    retest_window = tuple(data.get("retest_window_weeks", (2, 4)))
    if len(retest_window) != 2 or retest_window[0] > retest_window[1]:
        raise InvalidInputError(f"retest_window_weeks must be [min, max], got {retest_window!r}")
    return CoachingConfig(
        timezone=str(data.get("timezone", DEFAULT_TIMEZONE)),
        policy_offsets=offsets,
        sequencer=_sequencer_from_dict(data.get("sequencer")),
        lookback_weeks=int(data.get("lookback_weeks", 9)),
        low_cutoff=int(data.get("low_cutoff", 2)),
        retest_window_weeks=retest_window,
        retest_low_share=float(data.get("retest_low_share", 0.30)),
    )


def load_config(path: str | Path | None = None) -> CoachingConfig:
    """Load configuration from a YAML file. ``None`` returns the defaults."""
    if path is None:
        return CoachingConfig()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is not None and not isinstance(data, dict):
        raise InvalidInputError(f"Config root must be a mapping: {path}")
    return config_from_dict(data)
