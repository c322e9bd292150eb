"""
Pydantic DTOs for the problem file and the CSV schedule export.

A problem file is JSON describing the roster, the fields and their
availability, the matches to place and the slot rules. Everything read from
disk goes through these models before it becomes domain objects.
"""

from datetime import date, datetime, time
from pathlib import Path
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from . import models
from .models import MatchStage, TournamentContext
from .slot_generation import SlotRules, generate_slots
from .types import ScheduledMatch


def _parse_stage(v: str | MatchStage) -> MatchStage:
    """Accept a stage by value ('quarter_final') or by name ('QUARTER_FINAL')."""
    if isinstance(v, MatchStage):
        return v
    if isinstance(v, str):
        key = v.strip()
        try:
            return MatchStage(key.lower())
        except ValueError:
            try:
                return MatchStage[key.upper()]
            except KeyError:
                pass
    raise ValueError(
        f"Unknown match stage: {v!r}. Expected one of {', '.join(s.value for s in MatchStage)}"
    )


class WindowIn(BaseModel):
    """A period during which a field can host matches."""

    start: datetime
    end: datetime

    @model_validator(mode='after')
    def validate_range(self) -> Self:
        if self.end <= self.start:
            raise ValueError(f"end ({self.end}) must be after start ({self.start})")
        return self

    def to_domain(self) -> models.TimeInterval:
        return models.TimeInterval(self.start, self.end)


class ParticipantIn(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    seed: int | None = Field(default=None, ge=1)
    club: str | None = None

    def to_domain(self) -> models.Participant:
        return models.Participant(id=self.id, name=self.name.strip(), seed=self.seed, club=self.club)


class FieldIn(BaseModel):
    id: str = Field(min_length=1)
    name: str | None = Field(default=None, description="Display name, defaults to the id")
    windows: list[WindowIn] = Field(default_factory=list)

    def to_domain(self) -> models.Field:
        return models.Field(
            id=self.id,
            name=self.name or self.id,
            availability_windows=tuple(w.to_domain() for w in self.windows),
        )


class MatchIn(BaseModel):
    id: str = Field(min_length=1)
    team_a: str = Field(min_length=1)
    team_b: str = Field(min_length=1)
    stage: MatchStage = MatchStage.GROUP_STAGE
    round: int = Field(default=1, ge=1)
    group: str | None = None
    prerequisites: list[str] = Field(
        default_factory=list,
        description="Ids of matches that must finish before this one starts",
    )

    @field_validator('stage', mode='before')
    @classmethod
    def parse_stage(cls, v: str | MatchStage) -> MatchStage:
        return _parse_stage(v)

    @model_validator(mode='after')
    def validate_teams(self) -> Self:
        if self.team_a == self.team_b:
            raise ValueError(f"Match {self.id}: {self.team_a} cannot play against itself")
        if self.id in self.prerequisites:
            raise ValueError(f"Match {self.id} cannot depend on itself")
        return self

    def to_domain(self) -> models.Match:
        return models.Match(
            id=self.id,
            team_a=self.team_a,
            team_b=self.team_b,
            stage=self.stage,
            round_number=self.round,
            group=self.group,
            prerequisite_ids=tuple(self.prerequisites),
        )


class SlotIn(BaseModel):
    """An explicit slot, bypassing generation from field windows."""

    field_id: str = Field(min_length=1)
    start: datetime
    end: datetime

    @model_validator(mode='after')
    def validate_range(self) -> Self:
        if self.end <= self.start:
            raise ValueError(
                f"Slot on {self.field_id}: end ({self.end}) must be after start ({self.start})"
            )
        return self

    def to_domain(self) -> models.Slot:
        return models.Slot(field_id=self.field_id, start=self.start, end=self.end)


class RulesIn(BaseModel):
    match_duration_minutes: int = Field(default=60, gt=0)
    buffer_minutes: int = Field(default=0, ge=0)
    minimum_rest_minutes: int | None = Field(
        default=None, ge=0, description="Overrides the configured minimum rest when set"
    )

    def to_slot_rules(self) -> SlotRules:
        return SlotRules(self.match_duration_minutes, self.buffer_minutes)


class ProblemDefinition(BaseModel):
    """A complete scheduling problem as read from a JSON file."""

    name: str = Field(default="Tournament", min_length=1)
    participants: list[ParticipantIn] = Field(default_factory=list)
    fields: list[FieldIn] = Field(default_factory=list)
    matches: list[MatchIn] = Field(default_factory=list)
    slots: list[SlotIn] | None = Field(
        default=None, description="Explicit slots; generated from field windows when omitted"
    )
    rules: RulesIn = Field(default_factory=RulesIn)

    @model_validator(mode='after')
    def validate_references(self) -> Self:
        """Ensure ids are unique and every reference points at something declared."""
        match_ids = [m.id for m in self.matches]
        duplicates = sorted({mid for mid in match_ids if match_ids.count(mid) > 1})
        if duplicates:
            raise ValueError(f"Duplicate match ids: {', '.join(duplicates)}")

        if self.participants:
            known = {p.id for p in self.participants}
            for m in self.matches:
                unknown = [t for t in (m.team_a, m.team_b) if t not in known]
                if unknown:
                    raise ValueError(f"Match {m.id} references unknown participants: {', '.join(unknown)}")

        known_matches = set(match_ids)
        for m in self.matches:
            missing = [p for p in m.prerequisites if p not in known_matches]
            if missing:
                raise ValueError(f"Match {m.id} depends on unknown matches: {', '.join(missing)}")

        if self.slots is not None and self.fields:
            field_ids = {f.id for f in self.fields}
            for s in self.slots:
                if s.field_id not in field_ids:
                    raise ValueError(f"Slot references unknown field: {s.field_id}")
        return self

    @classmethod
    def from_file(cls, path: Path) -> 'ProblemDefinition':
        """Load and validate a problem file."""
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    def to_context(self) -> TournamentContext:
        return TournamentContext(
            name=self.name,
            participants=tuple(p.to_domain() for p in self.participants),
            fields=tuple(f.to_domain() for f in self.fields),
        )

    def to_matches(self) -> list[models.Match]:
        return [m.to_domain() for m in self.matches]

    def to_slots(self) -> list[models.Slot]:
        """Explicit slots when given, otherwise slots generated from the field windows."""
        if self.slots is not None:
            return [s.to_domain() for s in self.slots]
        return generate_slots([f.to_domain() for f in self.fields], self.rules.to_slot_rules())


class ScheduledMatchRow(BaseModel):
    """A single scheduled match in the CSV export."""

    match_id: str
    stage: MatchStage
    round: int = Field(ge=1)
    group: str | None = None
    team_a: str = Field(description="Display name of the first participant")
    team_b: str = Field(description="Display name of the second participant")
    field: str = Field(description="Display name of the field")
    date: date
    start_time: time
    end_time: time

    @classmethod
    def from_scheduled_match(
        cls, entry: ScheduledMatch, context: TournamentContext | None = None
    ) -> 'ScheduledMatchRow':
        match = entry.match
        team_a, team_b = match.team_a, match.team_b
        field_name = entry.field_id
        if context is not None:
            team_a = context.participant_name(team_a)
            team_b = context.participant_name(team_b)
            field_name = context.field_name(field_name)

        return cls(
            match_id=match.id,
            stage=match.stage,
            round=match.round_number,
            group=match.group,
            team_a=team_a,
            team_b=team_b,
            field=field_name,
            date=entry.start.date(),
            start_time=entry.start.time(),
            end_time=entry.end.time(),
        )

    def to_csv_dict(self) -> dict[str, str]:
        """Convert to dictionary for CSV writing."""
        return {
            'match_id': self.match_id,
            'stage': self.stage.value,
            'round': str(self.round),
            'group': self.group or '',
            'team_a': self.team_a,
            'team_b': self.team_b,
            'field': self.field,
            'date': self.date.strftime('%Y-%m-%d'),
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
        }


CSV_FIELDNAMES = list(ScheduledMatchRow.model_fields.keys())
