"""
Type definitions for the tournament scheduler.

This module contains shared type definitions used across the scheduler modules.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .models import Assignment, InvalidInputError, Match


class ConstraintType(Enum):
    HARD = "hard"
    SOFT = "soft"


class Severity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ConstraintViolation:
    """A single rule broken by a schedule.

    `penalty` only carries meaning for soft violations; `affected_entity_ids`
    is for diagnostics and is never used by the search.
    """

    constraint_name: str
    description: str
    severity: Severity
    is_hard_constraint: bool = True
    penalty: float = 0.0
    affected_entity_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.constraint_name or not self.constraint_name.strip():
            raise InvalidInputError("Constraint name cannot be empty")
        if not self.description or not self.description.strip():
            raise InvalidInputError("Violation description cannot be empty")

    def __str__(self) -> str:
        entity_info = (
            f" (Affected entities: {len(self.affected_entity_ids)})"
            if self.affected_entity_ids
            else ""
        )
        return f"[{self.severity.name}] {self.constraint_name}: {self.description}{entity_info}"


@dataclass(frozen=True)
class ScheduledMatch:
    """A match together with the slot it was placed in."""

    match: Match
    assignment: Assignment

    @property
    def match_id(self) -> str:
        return self.match.id

    @property
    def field_id(self) -> str:
        return self.assignment.field_id

    @property
    def start(self) -> datetime:
        return self.assignment.interval.start

    @property
    def end(self) -> datetime:
        return self.assignment.interval.end
