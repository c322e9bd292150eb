"""Configuration for the tournament scheduler."""

import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

from .backtracking_scheduler import ValueOrdering
from .constraints import (
    BalancedKickoffTimesConstraint,
    Constraint,
    MinimizeFieldChangesConstraint,
    MinimumRestTimeConstraint,
    NoSimultaneousMatchesConstraint,
    OneMatchPerSlotConstraint,
    OpponentSpacingConstraint,
    SeededTeamSeparationConstraint,
    StageDependencyConstraint,
)
from .models import InvalidInputError, TournamentContext

# Load .env file if present
load_dotenv()

ENV_PREFIX = "TOURNAMENT_SCHEDULER_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_float(name: str, default: float) -> float:
    raw = _env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        raise InvalidInputError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise InvalidInputError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


def _env_optional_float(name: str) -> float | None:
    raw = _env(name, "")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise InvalidInputError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class SchedulerConfig:
    """Rules and weights used to build the constraint list."""

    minimum_rest_minutes: int = 0
    balanced_kickoff_weight: float = 0.5
    field_change_weight: float = 0.3
    opponent_spacing_weight: float = 0.4
    opponent_spacing_days: float = 3.0
    seed_separation_weight: float = 0.6
    top_seeds: int = 4
    early_round_threshold: int = 3
    value_ordering: ValueOrdering = ValueOrdering.FLAT
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.minimum_rest_minutes < 0:
            raise InvalidInputError(
                f"Minimum rest cannot be negative, got {self.minimum_rest_minutes}"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise InvalidInputError(f"Timeout must be positive, got {self.timeout_seconds}")

    @classmethod
    def from_env(cls) -> "SchedulerConfig":
        """Load configuration from environment variables."""
        ordering = _env("VALUE_ORDERING", ValueOrdering.FLAT.value).lower()
        try:
            value_ordering = ValueOrdering(ordering)
        except ValueError:
            raise InvalidInputError(
                f"{ENV_PREFIX}VALUE_ORDERING must be one of "
                f"{', '.join(v.value for v in ValueOrdering)}, got {ordering!r}"
            ) from None

        return cls(
            minimum_rest_minutes=_env_int("MIN_REST_MINUTES", 0),
            balanced_kickoff_weight=_env_float("KICKOFF_WEIGHT", 0.5),
            field_change_weight=_env_float("FIELD_CHANGE_WEIGHT", 0.3),
            opponent_spacing_weight=_env_float("OPPONENT_SPACING_WEIGHT", 0.4),
            opponent_spacing_days=_env_float("OPPONENT_SPACING_DAYS", 3.0),
            seed_separation_weight=_env_float("SEED_SEPARATION_WEIGHT", 0.6),
            top_seeds=_env_int("TOP_SEEDS", 4),
            early_round_threshold=_env_int("EARLY_ROUND_THRESHOLD", 3),
            value_ordering=value_ordering,
            timeout_seconds=_env_optional_float("TIMEOUT_SECONDS"),
        )


def build_constraints(
    config: SchedulerConfig, context: TournamentContext | None = None
) -> list[Constraint]:
    """
    Turn a configuration into the constraint list handed to the scheduler.

    Hard constraints are always present (minimum rest only when a rest is
    configured). Soft constraints are added when their weight is positive;
    seeded separation additionally needs a context with seeded participants.
    """
    constraints: list[Constraint] = [
        NoSimultaneousMatchesConstraint(),
        OneMatchPerSlotConstraint(),
        StageDependencyConstraint(),
    ]
    if config.minimum_rest_minutes > 0:
        constraints.append(
            MinimumRestTimeConstraint(timedelta(minutes=config.minimum_rest_minutes))
        )

    if config.balanced_kickoff_weight > 0:
        constraints.append(BalancedKickoffTimesConstraint(config.balanced_kickoff_weight))
    if config.field_change_weight > 0:
        constraints.append(MinimizeFieldChangesConstraint(config.field_change_weight))
    if config.opponent_spacing_weight > 0:
        constraints.append(
            OpponentSpacingConstraint(
                timedelta(days=config.opponent_spacing_days), config.opponent_spacing_weight
            )
        )
    if (
        config.seed_separation_weight > 0
        and context is not None
        and context.seeded_participants()
    ):
        constraints.append(
            SeededTeamSeparationConstraint(
                config.top_seeds, config.early_round_threshold, config.seed_separation_weight
            )
        )
    return constraints
