"""Tests for building sequencer candidates from catalog and history frames."""

from datetime import date

import pandas as pd
import pytest

from coaching.domain.values import NEVER_PRACTICED
from coaching.errors import InvalidInputError
from coaching.services.candidates import build_candidates

TARGET = date(2025, 3, 3)


@pytest.fixture
def catalog():
    return pd.DataFrame(
        {
            "Skill_ID": [1, 2, 3],
            "domain_id": [10, 10, 20],
            "domain_name": ["Clinical", "Clinical", "Clerical"],
            "name": ["Greet by name", "Confirm history", "Schedule follow-up"],
        }
    )


@pytest.fixture
def history():
    return pd.DataFrame(
        {
            "skill_id": [1, 1, 1, 2, 2, 1],
            "week_of": ["2025-02-17", "2025-02-18", "2025-02-17", "2024-12-02", "2024-12-02", "2025-03-10"],
            "confidence_score": [1, 2, 4, 4, 4, 1],
        }
    )


def test_build_candidates(catalog, history):
    candidates = {c.skill_id: c for c in build_candidates(catalog, history, TARGET)}

    recent = candidates[1]
    assert recent.last_practiced_weeks_ago == 2
    assert recent.low_confidence_share == pytest.approx(2 / 3)
    assert recent.average_recent_confidence == pytest.approx(7 / 3)
    assert recent.retest_due is True
    assert recent.name == "Greet by name"

    old = candidates[2]
    assert old.last_practiced_weeks_ago == 13
    # All ratings fall outside the 9-week lookback
    assert old.low_confidence_share is None
    assert old.average_recent_confidence == 4.0
    assert old.retest_due is False

    never = candidates[3]
    assert never.last_practiced_weeks_ago == NEVER_PRACTICED
    assert never.never_practiced
    assert never.domain_name == "Clerical"


def test_catalog_order_preserved(catalog, history):
    assert [c.skill_id for c in build_candidates(catalog, history, TARGET)] == [1, 2, 3]


def test_rows_after_target_ignored(catalog, history):
    candidates = build_candidates(catalog, history, date(2025, 2, 24))
    assert candidates[0].last_practiced_weeks_ago == 1
    assert candidates[0].retest_due is False


def test_selection_history_without_ratings(catalog):
    selections = pd.DataFrame({"skill_id": [3], "week_of": [date(2025, 2, 24)]})
    candidates = build_candidates(catalog, selections, TARGET)
    assert candidates[2].last_practiced_weeks_ago == 1
    assert candidates[2].low_confidence_share is None


def test_no_history(catalog):
    candidates = build_candidates(catalog, None, TARGET)
    assert all(c.never_practiced for c in candidates)


def test_missing_catalog_column_raises():
    with pytest.raises(InvalidInputError):
        build_candidates(pd.DataFrame({"skill_id": [1]}), None, TARGET)


def test_missing_domain_kept_for_exclusion(history):
    catalog = pd.DataFrame({"skill_id": [1], "domain_id": [None], "domain_name": [None]})
    candidate = build_candidates(catalog, history, TARGET)[0]
    assert candidate.domain_id is None
