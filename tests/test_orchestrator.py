"""Tests for repositories and orchestration over an in-memory database."""

from datetime import date, datetime, timezone

import pandas as pd
import pytest

from coaching.config import CoachingConfig
from coaching.domain.models import Domain, Location, ProMove, Staff, WeeklyScore
from coaching.domain.repositories import ProMoveRepository, ScoreRepository, SelectionRepository
from coaching.domain.values import BackfillState, ReasonCode, WeekStatus
from coaching.engine.orchestrator import location_week_report, plan_role_week, staff_backfill_status

WEEK = date(2025, 3, 3)
WEDNESDAY = pd.Timestamp("2025-03-05 12:00", tz="America/Chicago")


@pytest.fixture
def seeded(db_session):
    """One location, three domains, six active moves for role 1 and two staff."""
    db_session.add(
        Location(
            location_id="loc-1",
            name="Northside",
            timezone="America/Chicago",
            organization_id="org-1",
            organization_name="Acme Dental",
        )
    )
    db_session.add_all(
        [Domain(domain_id=1, name="Clinical"), Domain(domain_id=2, name="Clerical"), Domain(domain_id=3, name="Cultural")]
    )
    db_session.add_all(
        [
            ProMove(pro_move_id=101, statement="Greet by name", role_id=1, domain_id=1),
            ProMove(pro_move_id=102, statement="Confirm history", role_id=1, domain_id=1),
            ProMove(pro_move_id=103, statement="Verify insurance", role_id=1, domain_id=2),
            ProMove(pro_move_id=104, statement="Schedule follow-up", role_id=1, domain_id=2),
            ProMove(pro_move_id=105, statement="Thank the patient", role_id=1, domain_id=3),
            ProMove(pro_move_id=106, statement="Share the plan", role_id=1, domain_id=3),
            ProMove(pro_move_id=107, statement="Retired move", role_id=1, domain_id=3, active=False),
            ProMove(pro_move_id=201, statement="Other role", role_id=2, domain_id=1),
        ]
    )
    db_session.add_all(
        [
            Staff(
                staff_id="s1",
                name="Ana",
                email="ana@example.com",
                role_id=1,
                role_name="DFI",
                location_id="loc-1",
                participation_start_at=datetime(2025, 2, 17, 9, 0),
            ),
            Staff(staff_id="s2", name="Ben", role_id=1, role_name="DFI", location_id="loc-1"),
        ]
    )
    db_session.add_all(
        [
            # Current week: Ana rated both, Ben has not checked in
            WeeklyScore(
                staff_id="s1",
                pro_move_id=101,
                week_of=WEEK,
                confidence_score=3,
                confidence_date=datetime(2025, 3, 4, 15, 0, tzinfo=timezone.utc),
            ),
            WeeklyScore(
                staff_id="s1",
                pro_move_id=103,
                week_of=WEEK,
                confidence_score=2,
                confidence_date=datetime(2025, 3, 4, 21, 0, tzinfo=timezone.utc),
            ),
            WeeklyScore(staff_id="s2", pro_move_id=101, week_of=WEEK),
            # Ana completed the week of Feb 17 and skipped Feb 24
            WeeklyScore(staff_id="s1", pro_move_id=102, week_of=date(2025, 2, 17), confidence_score=1, performance_score=3),
            WeeklyScore(staff_id="s1", pro_move_id=104, week_of=date(2025, 2, 17), confidence_score=2, performance_score=2),
        ]
    )
    db_session.commit()
    return db_session


def test_rows_for_week_carry_identity(seeded):
    rows = ScoreRepository.rows_for_week(seeded, WEEK, location_id="loc-1")

    assert [(r.staff_id, r.skill_id) for r in rows] == [("s1", 101), ("s1", 103), ("s2", 101)]
    first = rows[0]
    assert first.staff_name == "Ana"
    assert first.location_name == "Northside"
    assert first.organization_name == "Acme Dental"
    assert first.domain_name == "Clinical"
    assert first.confidence_submitted_at.tzinfo is not None


def test_catalog_frame_only_active_moves_for_role(seeded):
    catalog = ProMoveRepository.catalog_frame(seeded, 1)
    assert list(catalog["skill_id"]) == [101, 102, 103, 104, 105, 106]
    assert list(catalog.columns) == ["skill_id", "domain_id", "domain_name", "name"]


def test_history_frame(seeded):
    history = ScoreRepository.history_frame(seeded, 1)
    assert len(history) == 5
    assert set(history["skill_id"]) == {101, 102, 103, 104}


def test_plan_role_week_persists_selection(seeded):
    cfg = CoachingConfig()
    result = plan_role_week(seeded, 1, date(2025, 3, 12), cfg)

    assert result.week_of == date(2025, 3, 10)
    # 101 and 103 were assigned last week; Cultural (105, 106) was never practiced
    ranked = {r.skill_id: r for r in result.ranked}
    assert ranked[102].primary_reason_code is ReasonCode.LOW_CONF
    assert ranked[105].primary_reason_code is ReasonCode.NEVER
    assert [r.skill_id for r in result.selected] == [102, 104, 105]
    assert result.selected[2].forced_for_coverage is True
    assert set(result.cooldown_blocked) == {101, 103}

    stored = SelectionRepository.get_by_role_week(seeded, 1, date(2025, 3, 10))
    assert [s.pro_move_id for s in stored] == [r.skill_id for r in result.selected]
    assert [s.display_order for s in stored] == [1, 2, 3]


def test_replanning_a_week_replaces_it(seeded):
    cfg = CoachingConfig()
    first = plan_role_week(seeded, 1, date(2025, 3, 10), cfg)
    second = plan_role_week(seeded, 1, date(2025, 3, 10), cfg)

    assert first.selected == second.selected
    assert len(SelectionRepository.get_by_role_week(seeded, 1, date(2025, 3, 10))) == 3


def test_selection_history_feeds_cooldown(seeded):
    cfg = CoachingConfig()
    week_one = plan_role_week(seeded, 1, date(2025, 3, 10), cfg)
    week_two = plan_role_week(seeded, 1, date(2025, 3, 17), cfg)

    assert not {r.skill_id for r in week_one.selected} & {r.skill_id for r in week_two.selected}


def test_plan_without_persist(seeded):
    plan_role_week(seeded, 1, date(2025, 3, 10), CoachingConfig(), persist=False)
    assert SelectionRepository.get_by_role_week(seeded, 1, date(2025, 3, 10)) == []


def test_plan_unknown_role(seeded):
    with pytest.raises(LookupError):
        plan_role_week(seeded, 99, WEEK, CoachingConfig())


def test_location_week_report(seeded):
    report = location_week_report(seeded, "loc-1", WEDNESDAY, CoachingConfig())

    assert report.anchors.week_of == WEEK
    assert report.status is WeekStatus.GREY
    assert [s.staff_id for s in report.summaries] == ["s1", "s2"]
    assert report.gates.is_past_checkin_due is True
    assert report.gates.is_checkout_open is False

    ana, ben = report.summaries
    # Second check-in landed at 21:00 UTC, after the 20:00 UTC due time
    assert ana.has_any_late is True
    assert ben.conf_count == 0

    assert report.stats.staff_count == 2
    assert report.stats.missing_conf_count == 1
    assert report.stats.missing_perf_count == 0
    assert round(report.stats.submission_rate, 2) == 66.67


def test_location_overrides_move_due_time(seeded):
    location = seeded.get(Location, "loc-1")
    location.policy_overrides = {"checkin_due": {"day_offset": 1, "time": "16:00"}}
    seeded.commit()

    report = location_week_report(seeded, "loc-1", WEDNESDAY, CoachingConfig())
    assert report.anchors.checkin_due_utc == datetime(2025, 3, 4, 22, 0, tzinfo=timezone.utc)
    assert report.summaries[0].has_any_late is False


def test_location_unknown(seeded):
    with pytest.raises(LookupError):
        location_week_report(seeded, "nowhere", WEDNESDAY, CoachingConfig())


def test_staff_backfill_status(seeded):
    status = staff_backfill_status(seeded, "s1", WEDNESDAY, CoachingConfig())

    assert status.state is BackfillState.INCOMPLETE
    assert status.missing_weeks == (date(2025, 2, 24),)
    assert status.weeks_checked == 2


def test_staff_backfill_indeterminate(seeded):
    status = staff_backfill_status(seeded, "s2", WEDNESDAY, CoachingConfig())
    assert status.state is BackfillState.INDETERMINATE
    assert status.is_complete is None


def test_staff_unknown(seeded):
    with pytest.raises(LookupError):
        staff_backfill_status(seeded, "nobody", WEDNESDAY, CoachingConfig())
