"""CSV import utilities to load data into database."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from coaching.domain.models import Domain, Location, ProMove, Staff, WeeklyScore
from coaching.domain.repositories import LocationRepository, ProMoveRepository, ScoreRepository, StaffRepository
from coaching.domain.values import ScoreSource
from coaching.errors import InvalidInputError

TRUE_VALUES = ["TRUE", "T", "1", "YES", "Y"]


def _read(csv_path: str | Path, required: list, aliases: dict | None = None) -> pd.DataFrame:
    df = pd.read_csv(csv_path)

    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()
    if aliases:
        df.rename(columns=aliases, inplace=True)

    missing = [c for c in required if c not in df.columns]
    if missing:
        raise InvalidInputError(f"{csv_path} is missing required columns: {missing}")
    return df


def _opt_str(row, column: str) -> str | None:
    value = row.get(column)
    return str(value) if pd.notna(value) else None


def _opt_int(row, column: str) -> int | None:
    value = row.get(column)
    return int(value) if pd.notna(value) else None


def _flag(row, column: str, default: bool = False) -> bool:
    value = row.get(column)
    if value is None or pd.isna(value):
        return default
    return str(value).strip().upper() in TRUE_VALUES


def _score(row, column: str) -> int | None:
    value = _opt_int(row, column)
    if value is not None and not 1 <= value <= 4:
        raise InvalidInputError(f"{column} must be 1..4, got {value} (staff {row['staff_id']})")
    return value


def _source(row, column: str) -> str:
    value = _opt_str(row, column)
    try:
        return ScoreSource((value or "live").strip().lower()).value
    except ValueError as e:
        raise InvalidInputError(f"Unknown {column}: {value!r}") from e


def import_domains_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import competency domains from CSV into database.

    Args:
        session: Database session
        csv_path: Path to domains CSV (domain_id, name)

    Returns:
        Number of domains imported
    """
    df = _read(csv_path, ["domain_id", "name"], aliases={"domain_name": "name"})

    domains = [Domain(domain_id=int(row["domain_id"]), name=str(row["name"])) for _, row in df.iterrows()]

    ProMoveRepository.bulk_create_domains(session, domains)

    print(f"[INFO] Imported {len(domains)} domains from {csv_path}")
    return len(domains)


def import_pro_moves_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import the pro move catalog from CSV into database.

    Args:
        session: Database session
        csv_path: Path to pro moves CSV (pro_move_id, statement, role_id, domain_id[, active])

    Returns:
        Number of pro moves imported
    """
    df = _read(
        csv_path,
        ["pro_move_id", "statement", "role_id"],
        aliases={"action_id": "pro_move_id", "competency_id": "domain_id"},
    )

    moves = []
    for _, row in df.iterrows():
        moves.append(
            ProMove(
                pro_move_id=int(row["pro_move_id"]),
                statement=str(row["statement"]),
                role_id=int(row["role_id"]),
                domain_id=_opt_int(row, "domain_id"),
                active=_flag(row, "active", default=True),
            )
        )

    ProMoveRepository.bulk_create(session, moves)

    print(f"[INFO] Imported {len(moves)} pro moves from {csv_path}")
    return len(moves)


def import_locations_csv(session: Session, csv_path: str | Path, default_timezone: str = "America/Chicago") -> int:
    """
    Import locations from CSV into database.

    Args:
        session: Database session
        csv_path: Path to locations CSV (location_id, name[, timezone, organization_id, organization_name])
        default_timezone: Timezone for rows that leave it blank

    Returns:
        Number of locations imported
    """
    df = _read(csv_path, ["location_id", "name"])

    locations = []
    for _, row in df.iterrows():
        locations.append(
            Location(
                location_id=str(row["location_id"]),
                name=str(row["name"]),
                timezone=_opt_str(row, "timezone") or default_timezone,
                organization_id=_opt_str(row, "organization_id"),
                organization_name=_opt_str(row, "organization_name"),
            )
        )

    LocationRepository.bulk_create(session, locations)

    print(f"[INFO] Imported {len(locations)} locations from {csv_path}")
    return len(locations)


def import_staff_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import staff from CSV into database.

    Args:
        session: Database session
        csv_path: Path to staff CSV (staff_id, name, role_id[, email, role_name, location_id,
            participation_start_at])

    Returns:
        Number of staff imported
    """
    df = _read(csv_path, ["staff_id", "name", "role_id"])

    if "role_name" in df.columns:
        df["role_name"] = df["role_name"].str.upper()
    if "participation_start_at" in df.columns:
        df["participation_start_at"] = pd.to_datetime(df["participation_start_at"])

    staff = []
    for _, row in df.iterrows():
        start = row.get("participation_start_at")
        staff.append(
            Staff(
                staff_id=str(row["staff_id"]),
                name=str(row["name"]),
                email=_opt_str(row, "email"),
                role_id=int(row["role_id"]),
                role_name=_opt_str(row, "role_name"),
                location_id=_opt_str(row, "location_id"),
                participation_start_at=start.to_pydatetime() if pd.notna(start) else None,
            )
        )

    StaffRepository.bulk_create(session, staff)

    print(f"[INFO] Imported {len(staff)} staff from {csv_path}")
    return len(staff)


def import_scores_csv(session: Session, csv_path: str | Path, week_of: str | None = None) -> int:
    """
    Import weekly scores from CSV into database.

    Args:
        session: Database session
        csv_path: Path to scores CSV (staff_id, pro_move_id, week_of, confidence_score,
            performance_score, plus optional *_date, *_late and *_source columns)
        week_of: Optional Monday (YYYY-MM-DD) to filter

    Returns:
        Number of score rows imported
    """
    df = _read(csv_path, ["staff_id", "pro_move_id", "week_of"])

    # Convert dates; submission instants are stored as UTC
    df["week_of"] = pd.to_datetime(df["week_of"]).dt.date
    for column in ("confidence_date", "performance_date"):
        if column in df.columns:
            df[column] = pd.to_datetime(df[column], utc=True)

    # Filter by week if specified
    if week_of is not None:
        df = df[df["week_of"] == pd.Timestamp(week_of).date()].copy()

    # Deduplicate: keep the last row per assignment
    df = df.drop_duplicates(subset=["staff_id", "pro_move_id", "week_of"], keep="last")

    scores = []
    for _, row in df.iterrows():
        conf_date = row.get("confidence_date")
        perf_date = row.get("performance_date")
        scores.append(
            WeeklyScore(
                staff_id=str(row["staff_id"]),
                pro_move_id=int(row["pro_move_id"]),
                week_of=row["week_of"],
                confidence_score=_score(row, "confidence_score"),
                confidence_date=conf_date.to_pydatetime() if pd.notna(conf_date) else None,
                confidence_late=_flag(row, "confidence_late"),
                confidence_source=_source(row, "confidence_source"),
                performance_score=_score(row, "performance_score"),
                performance_date=perf_date.to_pydatetime() if pd.notna(perf_date) else None,
                performance_late=_flag(row, "performance_late"),
                performance_source=_source(row, "performance_source"),
            )
        )

    ScoreRepository.bulk_create(session, scores)

    print(f"[INFO] Imported {len(scores)} score rows from {csv_path}")
    return len(scores)
