"""
The Schedule aggregate produced by a scheduling run.

A Schedule owns the list of placed matches and the violations recorded
against it. It starts out feasible and becomes infeasible as soon as a
Critical violation is added.
"""

from collections.abc import Iterator
from typing import Any

from .models import Assignment, Match, TimeInterval
from .types import ConstraintViolation, ScheduledMatch, Severity

INFEASIBLE_CONSTRAINT_NAME = "Infeasible Schedule"


class Schedule:
    def __init__(self, tournament_name: str | None = None) -> None:
        self.tournament_name = tournament_name
        self._entries: dict[str, ScheduledMatch] = {}
        self._violations: list[ConstraintViolation] = []
        self.is_feasible = True
        self.search_stats: dict[str, Any] | None = None

    @property
    def scheduled_matches(self) -> list[ScheduledMatch]:
        """Placed matches in the order they were added."""
        return list(self._entries.values())

    @property
    def violations(self) -> list[ConstraintViolation]:
        return list(self._violations)

    def __iter__(self) -> Iterator[ScheduledMatch]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._entries

    def get(self, match_id: str) -> ScheduledMatch | None:
        return self._entries.get(match_id)

    def add_match(self, match: Match, assignment: Assignment) -> ScheduledMatch:
        if match.id in self._entries:
            raise ValueError(f"Match with ID {match.id} already exists in the schedule")
        entry = ScheduledMatch(match=match, assignment=assignment)
        self._entries[match.id] = entry
        return entry

    def remove_match(self, match_id: str) -> None:
        self._entries.pop(match_id, None)

    def clear_matches(self) -> None:
        self._entries.clear()

    def add_violation(self, violation: ConstraintViolation) -> None:
        self._violations.append(violation)
        if violation.severity == Severity.CRITICAL:
            self.is_feasible = False

    def clear_violations(self) -> None:
        self._violations.clear()
        self.is_feasible = True

    def mark_infeasible(self, reason: str) -> None:
        self.add_violation(
            ConstraintViolation(
                constraint_name=INFEASIBLE_CONSTRAINT_NAME,
                description=reason,
                severity=Severity.CRITICAL,
                is_hard_constraint=True,
                penalty=0.0,
            )
        )

    def matches_for_participant(self, participant_id: str) -> list[ScheduledMatch]:
        return [e for e in self._entries.values() if e.match.involves(participant_id)]

    def matches_on_field(self, field_id: str) -> list[ScheduledMatch]:
        return [e for e in self._entries.values() if e.field_id == field_id]

    def matches_during(self, interval: TimeInterval) -> list[ScheduledMatch]:
        return [e for e in self._entries.values() if e.assignment.interval.overlaps(interval)]

    @property
    def scheduled_match_count(self) -> int:
        return len(self._entries)

    @property
    def critical_violation_count(self) -> int:
        return sum(1 for v in self._violations if v.severity == Severity.CRITICAL)

    @property
    def warning_violation_count(self) -> int:
        return sum(1 for v in self._violations if v.severity == Severity.WARNING)

    @property
    def hard_violations(self) -> list[ConstraintViolation]:
        return [v for v in self._violations if v.is_hard_constraint]

    @property
    def soft_violations(self) -> list[ConstraintViolation]:
        return [v for v in self._violations if not v.is_hard_constraint]

    @property
    def total_penalty(self) -> float:
        """Sum of penalties over recorded soft violations."""
        return sum(v.penalty for v in self._violations if not v.is_hard_constraint)

    def __repr__(self) -> str:
        return (
            f"Schedule({self.scheduled_match_count} scheduled, "
            f"{self.critical_violation_count} critical violations, "
            f"feasible={self.is_feasible})"
        )
