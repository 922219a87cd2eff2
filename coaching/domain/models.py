"""SQLAlchemy models for the coaching data store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Location(Base):
    """A site with its own timezone and optional submission deadline overrides."""

    __tablename__ = "locations"

    location_id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    timezone = Column(String(64), nullable=False, default="America/Chicago")
    organization_id = Column(String(64), nullable=True)
    organization_name = Column(String(200), nullable=True)
    policy_overrides = Column(JSON, nullable=True)  # {"checkin_due": {"day_offset": 1, "time": "12:00"}}

    staff = relationship("Staff", back_populates="location")

    def __repr__(self) -> str:
        return f"<Location(id={self.location_id}, name='{self.name}', tz='{self.timezone}')>"


class Staff(Base):
    __tablename__ = "staff"

    staff_id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    role_id = Column(Integer, nullable=False)
    role_name = Column(String(50), nullable=True)
    location_id = Column(String(64), ForeignKey("locations.location_id"), nullable=True)
    participation_start_at = Column(DateTime, nullable=True)  # None = not yet eligible

    location = relationship("Location", back_populates="staff")
    scores = relationship("WeeklyScore", back_populates="staff")

    def __repr__(self) -> str:
        return f"<Staff(id={self.staff_id}, name='{self.name}', role={self.role_id})>"


class Domain(Base):
    __tablename__ = "domains"

    domain_id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    pro_moves = relationship("ProMove", back_populates="domain")

    def __repr__(self) -> str:
        return f"<Domain(id={self.domain_id}, name='{self.name}')>"


class ProMove(Base):
    """A schedulable skill for one role."""

    __tablename__ = "pro_moves"

    pro_move_id = Column(Integer, primary_key=True)
    statement = Column(Text, nullable=False)
    role_id = Column(Integer, nullable=False)
    domain_id = Column(Integer, ForeignKey("domains.domain_id"), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    domain = relationship("Domain", back_populates="pro_moves")

    def __repr__(self) -> str:
        return f"<ProMove(id={self.pro_move_id}, role={self.role_id}, domain={self.domain_id})>"


class WeeklyScore(Base):
    """Confidence (check-in) and performance (check-out) for one assigned skill in one week."""

    __tablename__ = "weekly_scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    staff_id = Column(String(64), ForeignKey("staff.staff_id"), nullable=False)
    pro_move_id = Column(Integer, ForeignKey("pro_moves.pro_move_id"), nullable=False)
    week_of = Column(Date, nullable=False)  # local Monday

    confidence_score = Column(Integer, nullable=True)  # 1-4
    confidence_date = Column(DateTime(timezone=True), nullable=True)
    confidence_late = Column(Boolean, nullable=False, default=False)
    confidence_source = Column(String(32), nullable=False, default="live")

    performance_score = Column(Integer, nullable=True)  # 1-4
    performance_date = Column(DateTime(timezone=True), nullable=True)
    performance_late = Column(Boolean, nullable=False, default=False)
    performance_source = Column(String(32), nullable=False, default="live")

    staff = relationship("Staff", back_populates="scores")
    pro_move = relationship("ProMove")

    def __repr__(self) -> str:
        return (
            f"<WeeklyScore(staff={self.staff_id}, move={self.pro_move_id}, week={self.week_of}, "
            f"conf={self.confidence_score}, perf={self.performance_score})>"
        )


class WeeklySelection(Base):
    """A sequencer pick persisted for a role's week."""

    __tablename__ = "weekly_selections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, nullable=False)
    week_of = Column(Date, nullable=False)
    pro_move_id = Column(Integer, ForeignKey("pro_moves.pro_move_id"), nullable=False)
    display_order = Column(Integer, nullable=False)
    final_score = Column(Float, nullable=False)
    reason_code = Column(String(16), nullable=False)
    forced_for_coverage = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    pro_move = relationship("ProMove")

    def __repr__(self) -> str:
        return f"<WeeklySelection(role={self.role_id}, week={self.week_of}, move={self.pro_move_id})>"
