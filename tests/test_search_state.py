import pytest

from tournament_scheduler.search_state import SearchState

from .conftest import make_match, make_slots


@pytest.fixture
def state() -> SearchState:
    matches = [make_match("M1", "A", "B"), make_match("M2", "A", "C"), make_match("M3", "C", "D")]
    return SearchState(matches, make_slots(3))


def test_assign_and_unassign(state):
    state.assign(0, 1)
    assert state.is_assigned(0)
    assert state.assignment_of(0) == 1
    assert state.is_slot_used(1)
    assert state.assigned_count == 1
    assert state.assignments == {0: 1}

    assert state.unassign(0) == 1
    assert not state.is_slot_used(1)
    assert state.unassign(0) is None


def test_slot_cannot_be_used_twice(state):
    state.assign(0, 0)
    with pytest.raises(ValueError):
        state.assign(2, 0)
    with pytest.raises(ValueError):
        state.assign(0, 1)


def test_remaining_slots_exclude_used(state):
    state.assign(0, 0)
    assert state.remaining_slots(1) == [1, 2]
    assert state.remaining_count(2) == 2
    assert state.feasible_slots(1) == frozenset({0, 1, 2})


def test_prune_and_restore(state):
    removed = state.prune_overlapping(1, make_slots(3)[0].interval)
    assert removed == {0}
    assert state.remaining_slots(1) == [1, 2]

    state.restore_feasible_slots(1, removed)
    assert state.remaining_slots(1) == [0, 1, 2]


def test_remove_feasible_slot(state):
    assert state.remove_feasible_slot(2, 1)
    assert not state.remove_feasible_slot(2, 1)
    assert state.remaining_slots(2) == [0, 2]


def test_participant_tracking(state):
    state.assign(0, 0)
    assert [s.start.hour for s in state.participant_slots("A")] == [9]
    assert [s.start.hour for s in state.participant_slots("B")] == [9]
    assert state.participant_slots("C") == []

    state.unassign(0)
    assert state.participant_slots("A") == []
