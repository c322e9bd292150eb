"""
Schedule printing and formatting utilities.

This module contains functions for formatting a tournament schedule and its
violation report as readable text with emojis and time stamps.
"""

from .models import TournamentContext
from .schedule import Schedule
from .types import Severity

_SEVERITY_EMOJI = {
    Severity.CRITICAL: "❌",
    Severity.WARNING: "⚠️",
    Severity.INFO: "ℹ️",
}


def format_schedule_for_printing(
    schedule: Schedule, context: TournamentContext | None = None
) -> str:
    """Format the placed matches by start time, one line per match."""
    if not schedule.scheduled_matches:
        return "No matches scheduled"

    def participant(pid: str) -> str:
        return context.participant_name(pid) if context else pid

    def field(fid: str) -> str:
        return context.field_name(fid) if context else fid

    entries = sorted(schedule, key=lambda e: (e.start, e.field_id, e.match_id))
    lines: list[str] = []
    lines.append(f"Matches scheduled: {schedule.scheduled_match_count}")
    lines.append("-" * 80)

    current_day = None
    for entry in entries:
        day = entry.start.date()
        if day != current_day:
            lines.append(f"📆 {day.strftime('%A %Y-%m-%d')}")
            current_day = day

        match = entry.match
        time_str = f"{entry.start.strftime('%H:%M')}-{entry.end.strftime('%H:%M')}"
        group_str = f" group {match.group}" if match.group else ""
        lines.append(
            f"  {time_str} [{field(entry.field_id)}] {match.id}: "
            f"{participant(match.team_a)} vs {participant(match.team_b)} "
            f"({match.stage.value}, round {match.round_number}{group_str})"
        )

    return "\n".join(lines)


def format_violation_report(schedule: Schedule) -> str:
    """Format feasibility, every violation and the total soft penalty."""
    lines: list[str] = []
    status = "✅ Feasible" if schedule.is_feasible else "❌ Infeasible"
    lines.append(f"Status: {status}")
    lines.append(
        f"Violations: {schedule.critical_violation_count} critical, "
        f"{schedule.warning_violation_count} warning, {len(schedule.violations)} total"
    )
    for violation in schedule.violations:
        lines.append(f"  {_SEVERITY_EMOJI[violation.severity]} {violation}")
    lines.append(f"Total soft penalty: {schedule.total_penalty:.2f}")

    if schedule.search_stats:
        stats = schedule.search_stats
        lines.append(
            f"Search: {stats['backtracks']} backtracks, "
            f"{stats['assignments_tried']} assignments tried in {stats['elapsed_seconds']:.2f}s"
        )
    return "\n".join(lines)


def print_schedule(
    schedule: Schedule,
    context: TournamentContext | None = None,
    title: str | None = None,
) -> None:
    """Print a formatted schedule followed by its violation report."""
    print(f"\n📅 {title or schedule.tournament_name or 'Schedule'}")
    print(format_schedule_for_printing(schedule, context))
    print()
    print(format_violation_report(schedule))
