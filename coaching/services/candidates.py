"""Build sequencer candidates from a skill catalog and practice history."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple

import pandas as pd

from coaching.domain.values import NEVER_PRACTICED, SkillCandidate
from coaching.errors import InvalidInputError
from coaching.services.week_clock import monday_of, weeks_between

CATALOG_COLUMNS = ("skill_id", "domain_id", "domain_name")
HISTORY_COLUMNS = ("skill_id", "week_of")


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = df.columns.str.lower().str.strip()
    return df


def _require(df: pd.DataFrame, columns, label: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise InvalidInputError(f"{label} is missing required columns: {missing}")


def _optional_int(value) -> Optional[int]:
    return int(value) if pd.notna(value) else None


def _skill_history_stats(
    skill_rows: pd.DataFrame,
    lookback_weeks: int,
    low_cutoff: int,
    retest_window: Tuple[int, int],
    retest_low_share: float,
) -> Dict:
    last_weeks_ago = int(skill_rows["weeks_ago"].min())

    window = skill_rows[skill_rows["weeks_ago"] <= lookback_weeks]
    rated = window["confidence_score"].dropna()
    share = float((rated <= low_cutoff).mean()) if len(rated) > 0 else None

    all_rated = skill_rows.dropna(subset=["confidence_score"])
    average = None
    if not all_rated.empty:
        latest = all_rated["weeks_ago"].min()
        average = float(all_rated[all_rated["weeks_ago"] == latest]["confidence_score"].mean())

    last_rated = skill_rows[skill_rows["weeks_ago"] == last_weeks_ago]["confidence_score"].dropna()
    was_low = len(last_rated) > 0 and float((last_rated <= low_cutoff).mean()) >= retest_low_share
    retest_due = bool(was_low and retest_window[0] <= last_weeks_ago <= retest_window[1])

    return {
        "last_practiced_weeks_ago": last_weeks_ago,
        "low_confidence_share": share,
        "average_recent_confidence": average,
        "retest_due": retest_due,
    }


def build_candidates(
    catalog_df: pd.DataFrame,
    history_df: Optional[pd.DataFrame],
    week_of: date,
    lookback_weeks: int = 9,
    low_cutoff: int = 2,
    retest_window: Tuple[int, int] = (2, 4),
    retest_low_share: float = 0.30,
) -> List[SkillCandidate]:
    """
    Derive one SkillCandidate per catalog skill as of ``week_of``.

    Args:
        catalog_df: Skills schedulable for the role (skill_id, domain_id, domain_name[, name])
        history_df: Practice history (skill_id, week_of[, confidence_score]); one row per rating
            or per selection. Rows after the target week are ignored.
        week_of: Target week (any date in it)
        lookback_weeks: Window for the low-confidence share
        low_cutoff: Ratings at or below this count as low confidence
        retest_window: (min, max) weeks since practice in which a low-confidence skill is re-tested
        retest_low_share: Share of low ratings in the last practiced week that calls for a retest

    Returns:
        Candidates in catalog order. Skills with no history are NEVER_PRACTICED.
    """
    catalog = _normalize_columns(catalog_df)
    _require(catalog, CATALOG_COLUMNS, "Catalog")
    target = monday_of(week_of)

    stats_by_skill: Dict[int, Dict] = {}
    if history_df is not None and not history_df.empty:
        history = _normalize_columns(history_df)
        _require(history, HISTORY_COLUMNS, "History")
        if "confidence_score" not in history.columns:
            history["confidence_score"] = float("nan")
        history = history.dropna(subset=["skill_id", "week_of"])
        history["week_of"] = pd.to_datetime(history["week_of"]).dt.date.map(monday_of)
        history = history[history["week_of"] <= target].copy()
        history["confidence_score"] = pd.to_numeric(history["confidence_score"], errors="coerce")
        history["weeks_ago"] = history["week_of"].map(lambda w: weeks_between(w, target))

        for skill_id, skill_rows in history.groupby("skill_id"):
            stats_by_skill[int(skill_id)] = _skill_history_stats(
                skill_rows, lookback_weeks, low_cutoff, retest_window, retest_low_share
            )

    candidates: List[SkillCandidate] = []
    for _, row in catalog.iterrows():
        skill_id = _optional_int(row["skill_id"])
        stats = stats_by_skill.get(skill_id, {}) if skill_id is not None else {}
        candidates.append(
            SkillCandidate(
                skill_id=skill_id,
                domain_id=_optional_int(row["domain_id"]),
                domain_name=str(row["domain_name"]) if pd.notna(row["domain_name"]) else None,
                name=str(row["name"]) if "name" in catalog.columns and pd.notna(row["name"]) else None,
                last_practiced_weeks_ago=stats.get("last_practiced_weeks_ago", NEVER_PRACTICED),
                low_confidence_share=stats.get("low_confidence_share"),
                average_recent_confidence=stats.get("average_recent_confidence"),
                retest_due=stats.get("retest_due", False),
            )
        )
    return candidates
