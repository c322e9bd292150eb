"""
Scheduling constraints.

Every constraint is a pure function of (schedule, tournament context): it
never keeps state between calls, so the search can evaluate it as often as
it likes. Hard constraints report Critical violations; soft constraints
report Warning/Info violations carrying a penalty scaled by their weight.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import time, timedelta

from .models import InvalidInputError, MissingContextError, TournamentContext
from .schedule import Schedule
from .types import ConstraintType, ConstraintViolation, ScheduledMatch, Severity

EARLY_KICKOFF = time(10, 0)
LATE_KICKOFF = time(18, 0)
KICKOFF_IMBALANCE_RATIO = 0.6


class Constraint(ABC):
    """A single scheduling rule."""

    name: str = ""
    constraint_type: ConstraintType
    weight: float = 1.0
    requires_context: bool = False

    @property
    def is_hard(self) -> bool:
        return self.constraint_type == ConstraintType.HARD

    @abstractmethod
    def evaluate(
        self, schedule: Schedule, context: TournamentContext | None
    ) -> list[ConstraintViolation]:
        """Return the violations of this rule (empty when satisfied)."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, weight={self.weight})"


class HardConstraint(Constraint):
    constraint_type = ConstraintType.HARD

    def _violation(self, description: str, affected: list[str]) -> ConstraintViolation:
        return ConstraintViolation(
            constraint_name=self.name,
            description=description,
            severity=Severity.CRITICAL,
            is_hard_constraint=True,
            penalty=0.0,
            affected_entity_ids=tuple(affected),
        )


class SoftConstraint(Constraint):
    constraint_type = ConstraintType.SOFT

    def __init__(self, weight: float) -> None:
        if weight < 0:
            raise InvalidInputError(f"{self.name} weight cannot be negative, got {weight}")
        self.weight = weight

    def _violation(
        self,
        description: str,
        penalty: float,
        affected: list[str],
        severity: Severity = Severity.WARNING,
    ) -> ConstraintViolation:
        return ConstraintViolation(
            constraint_name=self.name,
            description=description,
            severity=severity,
            is_hard_constraint=False,
            penalty=penalty,
            affected_entity_ids=tuple(affected),
        )


def _by_start(entries: list[ScheduledMatch]) -> list[ScheduledMatch]:
    return sorted(entries, key=lambda e: (e.start, e.end, e.match_id))


def group_by_participant(schedule: Schedule) -> dict[str, list[ScheduledMatch]]:
    """Map each participant to its scheduled matches, ordered by start time."""
    by_participant: dict[str, list[ScheduledMatch]] = defaultdict(list)
    for entry in schedule:
        for participant_id in entry.match.participants:
            by_participant[participant_id].append(entry)
    return {pid: _by_start(entries) for pid, entries in by_participant.items()}


def _participant_name(context: TournamentContext | None, participant_id: str) -> str:
    return context.participant_name(participant_id) if context else participant_id


def _field_name(context: TournamentContext | None, field_id: str) -> str:
    return context.field_name(field_id) if context else field_id


def _overlapping_pairs(
    entries: list[ScheduledMatch],
) -> list[tuple[ScheduledMatch, ScheduledMatch]]:
    """Find overlapping pairs among start-ordered entries.

    Each entry is compared against the latest-ending entry seen so far, so an
    overlap hidden behind a shorter match in between is still found.
    """
    pairs: list[tuple[ScheduledMatch, ScheduledMatch]] = []
    latest: ScheduledMatch | None = None
    for entry in entries:
        if latest is not None and entry.start < latest.end:
            pairs.append((latest, entry))
        if latest is None or entry.end > latest.end:
            latest = entry
    return pairs


def _fmt(moment) -> str:
    return moment.strftime("%Y-%m-%d %H:%M")


# ============================================================================
# Hard constraints
# ============================================================================


class NoSimultaneousMatchesConstraint(HardConstraint):
    """A participant cannot play two matches at overlapping times, on any field."""

    name = "No Simultaneous Matches"

    def evaluate(self, schedule, context):
        violations: list[ConstraintViolation] = []
        for participant_id, entries in group_by_participant(schedule).items():
            for current, following in _overlapping_pairs(entries):
                name = _participant_name(context, participant_id)
                violations.append(
                    self._violation(
                        f"Participant '{name}' has overlapping matches at "
                        f"{_fmt(current.start)} and {_fmt(following.start)}",
                        [participant_id, current.match_id, following.match_id],
                    )
                )
        return violations


class OneMatchPerSlotConstraint(HardConstraint):
    """A field hosts at most one match at a time."""

    name = "One Match Per Slot"

    def evaluate(self, schedule, context):
        violations: list[ConstraintViolation] = []
        by_field: dict[str, list[ScheduledMatch]] = defaultdict(list)
        for entry in schedule:
            by_field[entry.field_id].append(entry)

        for field_id, entries in by_field.items():
            for current, following in _overlapping_pairs(_by_start(entries)):
                violations.append(
                    self._violation(
                        f"Field '{_field_name(context, field_id)}' has overlapping matches at "
                        f"{_fmt(current.start)} and {_fmt(following.start)}",
                        [field_id, current.match_id, following.match_id],
                    )
                )
        return violations


class MinimumRestTimeConstraint(HardConstraint):
    """Consecutive matches of a participant must be separated by a minimum rest."""

    name = "Minimum Rest Time"

    def __init__(self, minimum_rest: timedelta) -> None:
        if minimum_rest < timedelta(0):
            raise InvalidInputError(f"Minimum rest time cannot be negative, got {minimum_rest}")
        self.minimum_rest = minimum_rest

    def evaluate(self, schedule, context):
        violations: list[ConstraintViolation] = []
        required_hours = self.minimum_rest.total_seconds() / 3600

        for participant_id, entries in group_by_participant(schedule).items():
            for current, following in zip(entries, entries[1:]):
                # Overlapping matches leave no rest at all
                rest = max(following.start - current.end, timedelta(0))
                if rest >= self.minimum_rest:
                    continue
                name = _participant_name(context, participant_id)
                violations.append(
                    self._violation(
                        f"Participant '{name}' has insufficient rest time "
                        f"({rest.total_seconds() / 3600:.1f}h) between matches. "
                        f"Minimum required: {required_hours:.1f}h. "
                        f"Matches at {_fmt(current.start)} and {_fmt(following.start)}",
                        [participant_id, current.match_id, following.match_id],
                    )
                )
        return violations

    def __repr__(self) -> str:
        return f"MinimumRestTimeConstraint(minimum_rest={self.minimum_rest})"


class StageDependencyConstraint(HardConstraint):
    """A match may only start once all of its prerequisite matches have ended."""

    name = "Stage Dependency"

    def evaluate(self, schedule, context):
        violations: list[ConstraintViolation] = []
        for entry in schedule:
            for prerequisite_id in entry.match.prerequisite_ids:
                prerequisite = schedule.get(prerequisite_id)
                if prerequisite is None:
                    violations.append(
                        self._violation(
                            f"Match {entry.match_id} depends on match {prerequisite_id} "
                            f"which is not scheduled",
                            [entry.match_id, prerequisite_id],
                        )
                    )
                elif prerequisite.end > entry.start:
                    violations.append(
                        self._violation(
                            f"Match {entry.match_id} at {_fmt(entry.start)} depends on match "
                            f"{prerequisite_id} at {_fmt(prerequisite.start)} which ends at "
                            f"{_fmt(prerequisite.end)}",
                            [entry.match_id, prerequisite_id],
                        )
                    )
        return violations


# ============================================================================
# Soft constraints
# ============================================================================


class BalancedKickoffTimesConstraint(SoftConstraint):
    """Discourage a participant from always playing early in the morning or late at night."""

    name = "Balanced Kickoff Times"

    def __init__(self, weight: float = 0.5) -> None:
        super().__init__(weight)

    def evaluate(self, schedule, context):
        violations: list[ConstraintViolation] = []
        for participant_id, entries in group_by_participant(schedule).items():
            total = len(entries)
            if total < 2:
                continue

            early = sum(1 for e in entries if e.start.time() < EARLY_KICKOFF)
            late = sum(1 for e in entries if e.start.time() >= LATE_KICKOFF)
            name = _participant_name(context, participant_id)

            for label, count in (("early", early), ("late", late)):
                ratio = count / total
                if ratio > KICKOFF_IMBALANCE_RATIO:
                    violations.append(
                        self._violation(
                            f"Participant '{name}' has {count} out of {total} {label} matches "
                            f"({ratio:.0%})",
                            self.weight * abs(ratio - 0.5),
                            [participant_id],
                        )
                    )
        return violations


class MinimizeFieldChangesConstraint(SoftConstraint):
    name = "Minimize Field Changes"

    def __init__(self, weight: float = 0.3) -> None:
        super().__init__(weight)

    def evaluate(self, schedule, context):
        violations: list[ConstraintViolation] = []
        for participant_id, entries in group_by_participant(schedule).items():
            if len(entries) < 2:
                continue
            changes = sum(
                1 for current, following in zip(entries, entries[1:])
                if current.field_id != following.field_id
            )
            if changes > len(entries) / 2:
                name = _participant_name(context, participant_id)
                violations.append(
                    self._violation(
                        f"Participant '{name}' changes fields {changes} times "
                        f"across {len(entries)} matches",
                        self.weight * changes,
                        [participant_id],
                    )
                )
        return violations


class OpponentSpacingConstraint(SoftConstraint):
    """Spread repeated meetings between the same two participants."""

    name = "Opponent Spacing"

    def __init__(self, minimum_spacing: timedelta | None = None, weight: float = 0.4) -> None:
        super().__init__(weight)
        self.minimum_spacing = minimum_spacing if minimum_spacing is not None else timedelta(days=3)
        if self.minimum_spacing < timedelta(0):
            raise InvalidInputError(
                f"Opponent spacing cannot be negative, got {self.minimum_spacing}"
            )

    def evaluate(self, schedule, context):
        violations: list[ConstraintViolation] = []
        by_pair: dict[tuple[str, str], list[ScheduledMatch]] = defaultdict(list)
        for entry in schedule:
            by_pair[entry.match.opponent_pair()].append(entry)

        minimum_days = self.minimum_spacing.total_seconds() / 86400
        for (first, second), entries in by_pair.items():
            if len(entries) < 2:
                continue
            entries = _by_start(entries)
            for current, following in zip(entries, entries[1:]):
                gap = current.assignment.interval.time_between(following.assignment.interval)
                if gap is None or gap >= self.minimum_spacing:
                    continue
                actual_days = gap.total_seconds() / 86400
                violations.append(
                    self._violation(
                        f"Matches between '{_participant_name(context, first)}' and "
                        f"'{_participant_name(context, second)}' are scheduled only "
                        f"{actual_days:.1f} days apart (recommended: {minimum_days:.0f} days)",
                        self.weight * (minimum_days - actual_days),
                        [first, second, current.match_id, following.match_id],
                        severity=Severity.INFO,
                    )
                )
        return violations


class SeededTeamSeparationConstraint(SoftConstraint):
    """Keep the top seeds from meeting each other in early rounds.

    Seeds come from the tournament context, so this constraint cannot run
    without one.
    """

    name = "Seeded Team Separation"
    requires_context = True

    def __init__(
        self, top_seeds: int = 4, early_round_threshold: int = 3, weight: float = 0.6
    ) -> None:
        super().__init__(weight)
        if top_seeds < 1:
            raise InvalidInputError(f"Number of top seeds must be positive, got {top_seeds}")
        if early_round_threshold < 1:
            raise InvalidInputError(
                f"Early round threshold must be positive, got {early_round_threshold}"
            )
        self.top_seeds = top_seeds
        self.early_round_threshold = early_round_threshold

    def evaluate(self, schedule, context):
        if context is None:
            raise MissingContextError(f"{self.name} needs a tournament context with seeds")

        violations: list[ConstraintViolation] = []
        top_seeded = {p.id: p for p in context.seeded_participants()[: self.top_seeds]}
        if len(top_seeded) < 2:
            return violations

        for entry in schedule:
            match = entry.match
            if match.round_number > self.early_round_threshold:
                continue
            if match.team_a in top_seeded and match.team_b in top_seeded:
                team_a = top_seeded[match.team_a]
                team_b = top_seeded[match.team_b]
                violations.append(
                    self._violation(
                        f"Top seeded participants '{team_a.name}' (seed {team_a.seed}) and "
                        f"'{team_b.name}' (seed {team_b.seed}) meet in early round "
                        f"{match.round_number}",
                        self.weight * (10 - match.round_number),
                        [match.id, team_a.id, team_b.id],
                    )
                )
        return violations
