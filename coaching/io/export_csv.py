"""CSV export utilities for recommendations and week summaries."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from coaching.domain.values import RankedRecommendation, StaffWeekSummary

RECOMMENDATION_COLUMNS = [
    "rank",
    "skill_id",
    "name",
    "domain_id",
    "domain_name",
    "final_score",
    "primary_reason_code",
    "primary_reason_value",
    "forced_for_coverage",
]

SUMMARY_COLUMNS = [
    "staff_id",
    "staff_name",
    "role_name",
    "location_name",
    "week_of",
    "assignment_count",
    "conf_count",
    "perf_count",
    "has_any_late",
    "is_complete",
]


def export_recommendations_csv(recommendations: Iterable[RankedRecommendation], csv_path: str | Path) -> int:
    """
    Export ranked recommendations to CSV in rank order.

    Args:
        recommendations: Ranked or selected recommendations
        csv_path: Output path

    Returns:
        Number of rows written
    """
    rows = [
        {
            "rank": i,
            "skill_id": rec.skill_id,
            "name": rec.name,
            "domain_id": rec.domain_id,
            "domain_name": rec.domain_name,
            "final_score": round(rec.final_score, 4),
            "primary_reason_code": rec.primary_reason_code.value,
            "primary_reason_value": rec.primary_reason_value,
            "forced_for_coverage": rec.forced_for_coverage,
        }
        for i, rec in enumerate(recommendations, start=1)
    ]
    df = pd.DataFrame(rows, columns=RECOMMENDATION_COLUMNS)
    df.to_csv(csv_path, index=False)

    print(f"[INFO] Exported {len(df)} recommendations to {csv_path}")
    return len(df)


def export_summaries_csv(summaries: Iterable[StaffWeekSummary], csv_path: str | Path) -> int:
    """Export per-staff week summaries to CSV."""
    df = pd.DataFrame(
        [{column: getattr(s, column) for column in SUMMARY_COLUMNS} for s in summaries],
        columns=SUMMARY_COLUMNS,
    )
    df.to_csv(csv_path, index=False)

    print(f"[INFO] Exported {len(df)} staff summaries to {csv_path}")
    return len(df)
