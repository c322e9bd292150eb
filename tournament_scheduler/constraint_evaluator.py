"""
Constraint registry and evaluator.

The registry partitions constraints into hard and soft buckets at
registration time; the evaluator runs them against a schedule and answers
the questions the search asks.
"""

from collections.abc import Iterable

from .constraints import Constraint
from .models import InvalidInputError, Match, TournamentContext
from .schedule import Schedule
from .types import ConstraintType, ConstraintViolation


class ConstraintRegistry:
    """Ordered hard and soft constraint buckets.

    Registering the same instance twice runs it twice.
    """

    def __init__(self) -> None:
        self._hard: list[Constraint] = []
        self._soft: list[Constraint] = []

    @property
    def hard_constraints(self) -> list[Constraint]:
        return list(self._hard)

    @property
    def soft_constraints(self) -> list[Constraint]:
        return list(self._soft)

    @property
    def all_constraints(self) -> list[Constraint]:
        return self._hard + self._soft

    def register(self, constraint: Constraint) -> None:
        if constraint is None:
            raise InvalidInputError("Cannot register a None constraint")
        if constraint.constraint_type == ConstraintType.HARD:
            self._hard.append(constraint)
        else:
            self._soft.append(constraint)

    def register_all(self, constraints: Iterable[Constraint]) -> None:
        for constraint in constraints:
            self.register(constraint)

    def clear(self) -> None:
        self._hard.clear()
        self._soft.clear()

    def __len__(self) -> int:
        return len(self._hard) + len(self._soft)


class ConstraintEvaluator:
    def __init__(
        self, registry: ConstraintRegistry, context: TournamentContext | None = None
    ) -> None:
        if registry is None:
            raise InvalidInputError("Constraint evaluator needs a registry")
        self.registry = registry
        self.context = context

    def evaluate(self, schedule: Schedule) -> list[ConstraintViolation]:
        """Run every constraint, hard first, and collect all violations."""
        violations: list[ConstraintViolation] = []
        for constraint in self.registry.all_constraints:
            violations.extend(constraint.evaluate(schedule, self.context))
        return violations

    def satisfies_hard_constraints(self, schedule: Schedule) -> bool:
        return not self._any_hard_violation(schedule)

    def violates_hard_constraints(self, schedule: Schedule, match: Match) -> bool:
        """Check whether the schedule, after placing `match`, breaks a hard rule.

        The whole schedule is evaluated, not just `match`; the caller relies on
        every earlier placement having been clean to attribute a violation to
        the latest one.
        """
        if match is None:
            raise InvalidInputError("violates_hard_constraints needs the match just placed")
        return self._any_hard_violation(schedule)

    def calculate_total_penalty(self, schedule: Schedule) -> float:
        """Sum of penalties reported by soft constraints."""
        return sum(
            violation.penalty
            for constraint in self.registry.soft_constraints
            for violation in constraint.evaluate(schedule, self.context)
        )

    def _any_hard_violation(self, schedule: Schedule) -> bool:
        for constraint in self.registry.hard_constraints:
            if constraint.evaluate(schedule, self.context):
                return True
        return False
