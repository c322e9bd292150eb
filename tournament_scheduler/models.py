from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class SchedulingError(Exception):
    """Base class for scheduling errors."""

    pass


class InvalidInputError(SchedulingError, ValueError):
    """Raised when a match, slot or constraint parameter is malformed."""

    pass


class MissingContextError(SchedulingError):
    """Raised when a constraint needs the tournament context but none was given."""

    pass


class MatchStage(Enum):
    GROUP_STAGE = "group_stage"
    ROUND_OF_32 = "round_of_32"
    ROUND_OF_16 = "round_of_16"
    QUARTER_FINAL = "quarter_final"
    SEMI_FINAL = "semi_final"
    THIRD_PLACE = "third_place"
    FINAL = "final"
    ROUND_ROBIN = "round_robin"


# Stages played as knockout rounds, in bracket order
KNOCKOUT_STAGES: tuple[MatchStage, ...] = (
    MatchStage.ROUND_OF_32,
    MatchStage.ROUND_OF_16,
    MatchStage.QUARTER_FINAL,
    MatchStage.SEMI_FINAL,
    MatchStage.THIRD_PLACE,
    MatchStage.FINAL,
)


def is_knockout_stage(stage: MatchStage) -> bool:
    """Check if a stage belongs to the knockout bracket."""
    return stage in KNOCKOUT_STAGES


@dataclass(frozen=True)
class TimeInterval:
    """Half-open time interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidInputError(
                f"End time ({self.end}) must be after start time ({self.start})"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and self.end > other.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def time_between(self, other: "TimeInterval") -> timedelta | None:
        """Gap between two intervals, or None when they overlap."""
        if self.overlaps(other):
            return None
        if self.end <= other.start:
            return other.start - self.end
        return self.start - other.end


@dataclass(frozen=True)
class Slot:
    """A candidate (field, time interval) pair a match can be placed in.

    Slots are plain values: the scheduler identifies them by their position
    in the slot sequence it was given, never by mutating them.
    """

    field_id: str
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not self.field_id:
            raise InvalidInputError("Slot field id cannot be empty")
        if self.end <= self.start:
            raise InvalidInputError(
                f"Slot on field {self.field_id} ends ({self.end}) before it starts ({self.start})"
            )

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)

    def overlaps_in_time(self, other: "Slot") -> bool:
        return self.start < other.end and self.end > other.start

    def is_on_same_field(self, other: "Slot") -> bool:
        return self.field_id == other.field_id

    def conflicts_with(self, other: "Slot") -> bool:
        """Two slots conflict when they share a field and overlap in time."""
        return self.is_on_same_field(other) and self.overlaps_in_time(other)


@dataclass(frozen=True)
class Assignment:
    """Where and when a match has been placed.

    The slot index, field and interval are always set together.
    """

    slot_index: int
    field_id: str
    interval: TimeInterval

    @classmethod
    def for_slot(cls, slot_index: int, slot: Slot) -> "Assignment":
        return cls(slot_index=slot_index, field_id=slot.field_id, interval=slot.interval)


@dataclass(frozen=True)
class Match:
    id: str
    team_a: str
    team_b: str
    stage: MatchStage
    round_number: int
    group: str | None = None
    prerequisite_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidInputError("Match id cannot be empty")
        if not self.team_a or not self.team_b:
            raise InvalidInputError(f"Match {self.id} must name two participants")
        if self.team_a == self.team_b:
            raise InvalidInputError(
                f"Match {self.id}: participant {self.team_a} cannot play against itself"
            )
        if self.round_number < 1:
            raise InvalidInputError(
                f"Match {self.id}: round number must be positive, got {self.round_number}"
            )
        # Keep first occurrence order, drop repeats
        object.__setattr__(
            self, "prerequisite_ids", tuple(dict.fromkeys(self.prerequisite_ids))
        )

    @property
    def participants(self) -> tuple[str, str]:
        return (self.team_a, self.team_b)

    def involves(self, participant_id: str) -> bool:
        return participant_id == self.team_a or participant_id == self.team_b

    def shares_participant(self, other: "Match") -> bool:
        return self.involves(other.team_a) or self.involves(other.team_b)

    def opponent_pair(self) -> tuple[str, str]:
        """Participants as an order-independent key."""
        return (self.team_a, self.team_b) if self.team_a < self.team_b else (self.team_b, self.team_a)


@dataclass(frozen=True)
class Participant:
    id: str
    name: str
    seed: int | None = None
    club: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidInputError("Participant name cannot be empty")
        if self.seed is not None and self.seed < 1:
            raise InvalidInputError(
                f"Seed for {self.name} must be a positive integer, got {self.seed}"
            )


@dataclass(frozen=True)
class Field:
    id: str
    name: str
    availability_windows: tuple[TimeInterval, ...] = ()

    def is_available_during(self, interval: TimeInterval) -> bool:
        """A field without windows is always available."""
        if not self.availability_windows:
            return True
        return any(
            window.start <= interval.start and interval.end <= window.end
            for window in self.availability_windows
        )


@dataclass(frozen=True)
class TournamentContext:
    """Read-only roster consulted by constraints for names and seeds."""

    name: str
    participants: tuple[Participant, ...] = ()
    fields: tuple[Field, ...] = ()
    _participants_by_id: dict[str, Participant] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _fields_by_id: dict[str, Field] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        seen_names: set[str] = set()
        for participant in self.participants:
            if participant.id in self._participants_by_id:
                raise InvalidInputError(f"Duplicate participant id: {participant.id}")
            if participant.name.lower() in seen_names:
                raise InvalidInputError(f"Duplicate participant name: {participant.name}")
            seen_names.add(participant.name.lower())
            self._participants_by_id[participant.id] = participant
        for f in self.fields:
            if f.id in self._fields_by_id:
                raise InvalidInputError(f"Duplicate field id: {f.id}")
            self._fields_by_id[f.id] = f

    def get_participant(self, participant_id: str) -> Participant | None:
        return self._participants_by_id.get(participant_id)

    def get_field(self, field_id: str) -> Field | None:
        return self._fields_by_id.get(field_id)

    def participant_name(self, participant_id: str) -> str:
        participant = self._participants_by_id.get(participant_id)
        return participant.name if participant else participant_id

    def field_name(self, field_id: str) -> str:
        f = self._fields_by_id.get(field_id)
        return f.name if f else field_id

    def seeded_participants(self) -> list[Participant]:
        """Participants with a seed, best seed first."""
        return sorted(
            (p for p in self.participants if p.seed is not None),
            key=lambda p: p.seed,  # type: ignore[arg-type, return-value]
        )
