import os
from datetime import datetime, timedelta

import pytest

from tournament_scheduler.models import (
    Assignment,
    Field,
    Match,
    MatchStage,
    Participant,
    Slot,
    TimeInterval,
    TournamentContext,
)
from tournament_scheduler.schedule import Schedule

BASE_TIME = datetime(2025, 6, 7, 9, 0)


def make_slots(
    count: int,
    field_id: str = "F1",
    start: datetime = BASE_TIME,
    minutes: int = 60,
    gap_minutes: int = 0,
) -> list[Slot]:
    """Back-to-back slots on a single field."""
    slots = []
    current = start
    for _ in range(count):
        slots.append(Slot(field_id, current, current + timedelta(minutes=minutes)))
        current += timedelta(minutes=minutes + gap_minutes)
    return slots


def make_match(
    match_id: str,
    team_a: str,
    team_b: str,
    round_number: int = 1,
    stage: MatchStage = MatchStage.ROUND_ROBIN,
    prerequisites: tuple[str, ...] = (),
) -> Match:
    return Match(
        id=match_id,
        team_a=team_a,
        team_b=team_b,
        stage=stage,
        round_number=round_number,
        prerequisite_ids=prerequisites,
    )


def place(schedule: Schedule, match: Match, start: datetime, minutes: int = 60, field_id: str = "F1"):
    """Put a match straight into a schedule, bypassing the search."""
    slot = Slot(field_id, start, start + timedelta(minutes=minutes))
    return schedule.add_match(match, Assignment.for_slot(0, slot))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's TOURNAMENT_SCHEDULER_* settings out of the tests."""
    for key in list(os.environ):
        if key.startswith("TOURNAMENT_SCHEDULER_"):
            monkeypatch.delenv(key)


@pytest.fixture
def four_team_context() -> TournamentContext:
    day = TimeInterval(BASE_TIME, BASE_TIME + timedelta(hours=6))
    return TournamentContext(
        name="Spring Cup",
        participants=(
            Participant("A", "Alpha", seed=1),
            Participant("B", "Bravo", seed=2),
            Participant("C", "Charlie", seed=3),
            Participant("D", "Delta"),
        ),
        fields=(Field("F1", "Main Pitch", (day,)),),
    )


@pytest.fixture
def round_robin_matches() -> list[Match]:
    """All six pairings of A, B, C and D."""
    return [
        make_match("M1", "A", "B", 1),
        make_match("M2", "C", "D", 1),
        make_match("M3", "A", "C", 2),
        make_match("M4", "B", "D", 2),
        make_match("M5", "A", "D", 3),
        make_match("M6", "B", "C", 3),
    ]


@pytest.fixture
def six_hourly_slots() -> list[Slot]:
    return make_slots(6)


@pytest.fixture
def problem_data() -> dict:
    """A four team round robin problem file, slots generated from one window."""
    return {
        "name": "Spring Cup",
        "participants": [
            {"id": "A", "name": "Alpha", "seed": 1},
            {"id": "B", "name": "Bravo", "seed": 2},
            {"id": "C", "name": "Charlie"},
            {"id": "D", "name": "Delta", "club": "Harbour FC"},
        ],
        "fields": [
            {
                "id": "F1",
                "name": "Main Pitch",
                "windows": [{"start": "2025-06-07T09:00:00", "end": "2025-06-07T15:00:00"}],
            }
        ],
        "matches": [
            {"id": "M1", "team_a": "A", "team_b": "B", "stage": "round_robin", "round": 1},
            {"id": "M2", "team_a": "C", "team_b": "D", "stage": "round_robin", "round": 1},
            {"id": "M3", "team_a": "A", "team_b": "C", "stage": "round_robin", "round": 2},
            {"id": "M4", "team_a": "B", "team_b": "D", "stage": "round_robin", "round": 2},
            {"id": "M5", "team_a": "A", "team_b": "D", "stage": "round_robin", "round": 3},
            {"id": "M6", "team_a": "B", "team_b": "C", "stage": "round_robin", "round": 3},
        ],
        "rules": {"match_duration_minutes": 60},
    }
