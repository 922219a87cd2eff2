"""Repository classes for data access."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from .models import Domain, Location, ProMove, Staff, WeeklyScore, WeeklySelection
from .values import ScoreRow, ScoreSource


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored timestamps are UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_score_row(score: WeeklyScore) -> ScoreRow:
    staff = score.staff
    location = staff.location
    move = score.pro_move
    return ScoreRow(
        staff_id=staff.staff_id,
        staff_name=staff.name,
        staff_email=staff.email,
        role_id=staff.role_id,
        role_name=staff.role_name,
        location_id=location.location_id if location else None,
        location_name=location.name if location else None,
        organization_id=location.organization_id if location else None,
        organization_name=location.organization_name if location else None,
        week_of=score.week_of,
        skill_id=score.pro_move_id,
        domain_id=move.domain_id if move else None,
        domain_name=move.domain.name if move and move.domain else None,
        confidence_score=score.confidence_score,
        performance_score=score.performance_score,
        confidence_late=bool(score.confidence_late),
        performance_late=bool(score.performance_late),
        confidence_submitted_at=_aware(score.confidence_date),
        performance_submitted_at=_aware(score.performance_date),
        confidence_source=ScoreSource(score.confidence_source or "live"),
        performance_source=ScoreSource(score.performance_source or "live"),
    )


class LocationRepository:
    """Repository for location data access."""

    @staticmethod
    def get_by_id(session: Session, location_id: str) -> Optional[Location]:
        return session.query(Location).filter(Location.location_id == location_id).first()

    @staticmethod
    def bulk_create(session: Session, locations: List[Location]) -> None:
        session.add_all(locations)
        session.commit()


class StaffRepository:
    """Repository for staff data access."""

    @staticmethod
    def get_by_id(session: Session, staff_id: str) -> Optional[Staff]:
        return session.query(Staff).filter(Staff.staff_id == staff_id).first()

    @staticmethod
    def get_by_location(session: Session, location_id: str) -> List[Staff]:
        return session.query(Staff).filter(Staff.location_id == location_id).order_by(Staff.name).all()

    @staticmethod
    def bulk_create(session: Session, staff: List[Staff]) -> None:
        session.add_all(staff)
        session.commit()


class ProMoveRepository:
    """Repository for the skill catalog."""

    @staticmethod
    def get_active_for_role(session: Session, role_id: int) -> List[ProMove]:
        return (
            session.query(ProMove)
            .filter(ProMove.role_id == role_id, ProMove.active.is_(True))
            .order_by(ProMove.pro_move_id)
            .all()
        )

    @staticmethod
    def catalog_frame(session: Session, role_id: int) -> pd.DataFrame:
        """Active pro moves for a role as a candidate catalog (skill_id, domain_id, domain_name, name)."""
        moves = ProMoveRepository.get_active_for_role(session, role_id)
        return pd.DataFrame(
            [
                {
                    "skill_id": m.pro_move_id,
                    "domain_id": m.domain_id,
                    "domain_name": m.domain.name if m.domain else None,
                    "name": m.statement,
                }
                for m in moves
            ],
            columns=["skill_id", "domain_id", "domain_name", "name"],
        )

    @staticmethod
    def bulk_create_domains(session: Session, domains: List[Domain]) -> None:
        session.add_all(domains)
        session.commit()

    @staticmethod
    def bulk_create(session: Session, moves: List[ProMove]) -> None:
        session.add_all(moves)
        session.commit()


class ScoreRepository:
    """Repository for weekly score data access."""

    @staticmethod
    def rows_for_week(session: Session, week_of: date, location_id: str | None = None) -> List[ScoreRow]:
        """Score rows for one week, optionally scoped to a location, ordered by staff then skill."""
        query = session.query(WeeklyScore).join(Staff).filter(WeeklyScore.week_of == week_of)
        if location_id is not None:
            query = query.filter(Staff.location_id == location_id)
        scores = query.order_by(Staff.name, WeeklyScore.staff_id, WeeklyScore.pro_move_id).all()
        return [_to_score_row(s) for s in scores]

    @staticmethod
    def rows_for_staff(session: Session, staff_id: str) -> List[ScoreRow]:
        scores = (
            session.query(WeeklyScore)
            .filter(WeeklyScore.staff_id == staff_id)
            .order_by(WeeklyScore.week_of, WeeklyScore.pro_move_id)
            .all()
        )
        return [_to_score_row(s) for s in scores]

    @staticmethod
    def history_frame(session: Session, role_id: int) -> pd.DataFrame:
        """Confidence ratings for a role's staff as (skill_id, week_of, confidence_score)."""
        rows = (
            session.query(WeeklyScore.pro_move_id, WeeklyScore.week_of, WeeklyScore.confidence_score)
            .join(Staff)
            .filter(Staff.role_id == role_id)
            .all()
        )
        return pd.DataFrame(
            [{"skill_id": r[0], "week_of": r[1], "confidence_score": r[2]} for r in rows],
            columns=["skill_id", "week_of", "confidence_score"],
        )

    @staticmethod
    def bulk_create(session: Session, scores: List[WeeklyScore]) -> None:
        session.add_all(scores)
        session.commit()


class SelectionRepository:
    """Repository for persisted sequencer picks."""

    @staticmethod
    def get_by_role_week(session: Session, role_id: int, week_of: date) -> List[WeeklySelection]:
        return (
            session.query(WeeklySelection)
            .filter(WeeklySelection.role_id == role_id, WeeklySelection.week_of == week_of)
            .order_by(WeeklySelection.display_order)
            .all()
        )

    @staticmethod
    def history_frame(session: Session, role_id: int) -> pd.DataFrame:
        """Past selections as practice history rows without a rating."""
        rows = (
            session.query(WeeklySelection.pro_move_id, WeeklySelection.week_of)
            .filter(WeeklySelection.role_id == role_id)
            .all()
        )
        return pd.DataFrame(
            [{"skill_id": r[0], "week_of": r[1], "confidence_score": None} for r in rows],
            columns=["skill_id", "week_of", "confidence_score"],
        )

    @staticmethod
    def bulk_create(session: Session, selections: List[WeeklySelection]) -> None:
        session.add_all(selections)
        session.commit()

    @staticmethod
    def delete_by_role_week(session: Session, role_id: int, week_of: date) -> int:
        """Delete a role's selection for a week. Returns number of deleted rows."""
        count = (
            session.query(WeeklySelection)
            .filter(WeeklySelection.role_id == role_id, WeeklySelection.week_of == week_of)
            .delete(synchronize_session=False)
        )
        session.commit()
        return count
