from .models import (
    Assignment,
    Field,
    InvalidInputError,
    Match,
    MatchStage,
    MissingContextError,
    Participant,
    SchedulingError,
    Slot,
    TimeInterval,
    TournamentContext,
)
from .types import ConstraintType, ConstraintViolation, ScheduledMatch, Severity
from .schedule import Schedule
from .constraints import (
    BalancedKickoffTimesConstraint,
    Constraint,
    HardConstraint,
    MinimizeFieldChangesConstraint,
    MinimumRestTimeConstraint,
    NoSimultaneousMatchesConstraint,
    OneMatchPerSlotConstraint,
    OpponentSpacingConstraint,
    SeededTeamSeparationConstraint,
    SoftConstraint,
    StageDependencyConstraint,
)
from .constraint_evaluator import ConstraintEvaluator, ConstraintRegistry
from .cancellation import CancellationToken
from .backtracking_scheduler import BacktrackingScheduler, ValueOrdering, schedule_matches
from .slot_generation import SlotRules, generate_slots

__all__ = [
    "Assignment",
    "BacktrackingScheduler",
    "BalancedKickoffTimesConstraint",
    "CancellationToken",
    "Constraint",
    "ConstraintEvaluator",
    "ConstraintRegistry",
    "ConstraintType",
    "ConstraintViolation",
    "Field",
    "HardConstraint",
    "InvalidInputError",
    "Match",
    "MatchStage",
    "MinimizeFieldChangesConstraint",
    "MinimumRestTimeConstraint",
    "MissingContextError",
    "NoSimultaneousMatchesConstraint",
    "OneMatchPerSlotConstraint",
    "OpponentSpacingConstraint",
    "Participant",
    "Schedule",
    "ScheduledMatch",
    "SchedulingError",
    "SeededTeamSeparationConstraint",
    "Severity",
    "Slot",
    "SlotRules",
    "SoftConstraint",
    "StageDependencyConstraint",
    "TimeInterval",
    "TournamentContext",
    "ValueOrdering",
    "generate_slots",
    "schedule_matches",
]
