from datetime import timedelta

import pytest

from tournament_scheduler.models import TimeInterval
from tournament_scheduler.schedule import INFEASIBLE_CONSTRAINT_NAME, Schedule
from tournament_scheduler.types import ConstraintViolation, Severity

from .conftest import BASE_TIME, make_match, place


def warning(penalty: float) -> ConstraintViolation:
    return ConstraintViolation(
        constraint_name="Balanced Kickoff Times",
        description="too many early matches",
        severity=Severity.WARNING,
        is_hard_constraint=False,
        penalty=penalty,
    )


def test_new_schedule_is_feasible_and_empty():
    schedule = Schedule("Cup")
    assert schedule.is_feasible
    assert schedule.scheduled_match_count == 0
    assert schedule.violations == []
    assert schedule.total_penalty == 0


def test_duplicate_match_rejected():
    schedule = Schedule()
    match = make_match("M1", "A", "B")
    place(schedule, match, BASE_TIME)
    with pytest.raises(ValueError):
        place(schedule, match, BASE_TIME + timedelta(hours=1))


def test_remove_unknown_match_is_noop():
    schedule = Schedule()
    place(schedule, make_match("M1", "A", "B"), BASE_TIME)
    schedule.remove_match("nope")
    schedule.remove_match("M1")
    assert len(schedule) == 0
    assert "M1" not in schedule

    place(schedule, make_match("M2", "C", "D"), BASE_TIME)
    schedule.clear_matches()
    assert schedule.scheduled_matches == []


def test_critical_violation_makes_schedule_infeasible():
    schedule = Schedule()
    schedule.add_violation(warning(0.5))
    assert schedule.is_feasible

    schedule.mark_infeasible("no room")
    assert not schedule.is_feasible
    assert schedule.critical_violation_count == 1
    assert schedule.warning_violation_count == 1
    assert schedule.hard_violations[0].constraint_name == INFEASIBLE_CONSTRAINT_NAME


def test_clear_violations_restores_feasibility():
    schedule = Schedule()
    schedule.mark_infeasible("no room")
    schedule.clear_violations()
    assert schedule.is_feasible
    assert schedule.violations == []


def test_total_penalty_counts_soft_violations_only():
    schedule = Schedule()
    schedule.add_violation(warning(0.25))
    schedule.add_violation(warning(0.5))
    schedule.mark_infeasible("no room")
    assert schedule.total_penalty == pytest.approx(0.75)
    assert len(schedule.soft_violations) == 2


def test_queries():
    schedule = Schedule()
    place(schedule, make_match("M1", "A", "B"), BASE_TIME, field_id="F1")
    place(schedule, make_match("M2", "C", "D"), BASE_TIME, field_id="F2")
    place(schedule, make_match("M3", "A", "C"), BASE_TIME + timedelta(hours=2), field_id="F1")

    assert [e.match_id for e in schedule.matches_for_participant("A")] == ["M1", "M3"]
    assert [e.match_id for e in schedule.matches_on_field("F2")] == ["M2"]
    window = TimeInterval(BASE_TIME + timedelta(minutes=30), BASE_TIME + timedelta(hours=1))
    assert {e.match_id for e in schedule.matches_during(window)} == {"M1", "M2"}


def test_violation_requires_description():
    with pytest.raises(ValueError):
        ConstraintViolation("Rule", "", Severity.CRITICAL)


def test_violation_string():
    violation = ConstraintViolation(
        "Minimum Rest Time", "too little rest", Severity.CRITICAL, affected_entity_ids=("A", "M1")
    )
    assert str(violation) == "[CRITICAL] Minimum Rest Time: too little rest (Affected entities: 2)"
