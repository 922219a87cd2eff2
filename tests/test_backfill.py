"""Tests for backfill detection."""

from datetime import date, datetime

from coaching.domain.values import BackfillState, ScoreRow, WeekStatus
from coaching.services.backfill import backfill_status

CURRENT = date(2025, 3, 5)  # Wednesday, week of March 3rd


def test_indeterminate_without_start():
    status = backfill_status(None, {}, CURRENT)
    assert status.state is BackfillState.INDETERMINATE
    assert status.is_complete is None
    assert status.missing_weeks == ()


def test_start_in_current_week_has_nothing_to_check():
    status = backfill_status(date(2025, 3, 3), {}, CURRENT)
    assert status.state is BackfillState.COMPLETE
    assert status.is_complete is True
    assert status.weeks_checked == 0


def test_current_week_is_not_checked():
    history = {date(2025, 2, 24): WeekStatus.GREEN, date(2025, 3, 3): WeekStatus.GREY}
    status = backfill_status(date(2025, 2, 24), history, CURRENT)
    assert status.is_complete is True
    assert status.weeks_checked == 1


def test_missing_and_yellow_weeks_need_backfill():
    history = {
        date(2025, 2, 24): WeekStatus.GREEN,
        date(2025, 2, 17): WeekStatus.YELLOW,
    }
    status = backfill_status(date(2025, 2, 10), history, CURRENT)

    assert status.state is BackfillState.INCOMPLETE
    assert status.is_complete is False
    assert status.missing_weeks == (date(2025, 2, 17), date(2025, 2, 10))
    assert status.weeks_checked == 3


def test_start_mid_week_aligns_to_monday():
    history = {date(2025, 2, 24): WeekStatus.GREEN}
    status = backfill_status(datetime(2025, 2, 26, 15, 30), history, CURRENT)
    assert status.is_complete is True
    assert status.weeks_checked == 1


def test_history_as_score_rows():
    history = {
        date(2025, 2, 24): [
            ScoreRow(staff_id="s1", confidence_score=3, performance_score=4),
            ScoreRow(staff_id="s1", confidence_score=2, performance_score=2),
        ],
        # Keys inside a week map to its Monday
        date(2025, 2, 19): [ScoreRow(staff_id="s1", confidence_score=3, performance_score=None)],
    }
    status = backfill_status(date(2025, 2, 17), history, CURRENT)
    assert status.missing_weeks == (date(2025, 2, 17),)
