from datetime import timedelta

from tournament_scheduler.backtracking_scheduler import BacktrackingScheduler
from tournament_scheduler.constraints import NoSimultaneousMatchesConstraint
from tournament_scheduler.schedule import Schedule
from tournament_scheduler.schedule_printer import (
    format_schedule_for_printing,
    format_violation_report,
    print_schedule,
)

from .conftest import BASE_TIME, make_match, make_slots, place


def test_empty_schedule():
    assert format_schedule_for_printing(Schedule()) == "No matches scheduled"


def test_matches_sorted_by_start_and_grouped_by_day(four_team_context):
    schedule = Schedule()
    place(schedule, make_match("M2", "C", "D"), BASE_TIME + timedelta(days=1))
    place(schedule, make_match("M1", "A", "B"), BASE_TIME)

    text = format_schedule_for_printing(schedule, four_team_context)
    lines = text.splitlines()

    assert lines[0] == "Matches scheduled: 2"
    assert "Saturday 2025-06-07" in lines[2]
    assert lines[3] == "  09:00-10:00 [Main Pitch] M1: Alpha vs Bravo (round_robin, round 1)"
    assert "Sunday 2025-06-08" in lines[4]
    assert "Charlie vs Delta" in lines[5]


def test_violation_report():
    schedule = Schedule()
    schedule.mark_infeasible("no room left")

    report = format_violation_report(schedule)

    assert "Status: ❌ Infeasible" in report
    assert "1 critical, 0 warning, 1 total" in report
    assert "[CRITICAL] Infeasible Schedule: no room left" in report
    assert report.endswith("Total soft penalty: 0.00")


def test_print_schedule(capsys, round_robin_matches, six_hourly_slots, four_team_context):
    schedule = BacktrackingScheduler().schedule(
        round_robin_matches, six_hourly_slots, [NoSimultaneousMatchesConstraint()], four_team_context
    )

    print_schedule(schedule, four_team_context)

    out = capsys.readouterr().out
    assert "📅 Spring Cup" in out
    assert "Status: ✅ Feasible" in out
    assert "Search: 0 backtracks, 6 assignments tried" in out
