"""
Mutable bookkeeping for one backtracking run.

Matches and slots are addressed by their position in the sequences the
scheduler was given. The state records which slots are consumed, which
slots each pending match may still take (pruned by forward checking), and
which slots each participant currently occupies. It lives for exactly one
scheduling call.
"""

from collections.abc import Iterable, Sequence

from .models import Match, Slot, TimeInterval


class SearchState:
    def __init__(self, matches: Sequence[Match], slots: Sequence[Slot]) -> None:
        self._matches = list(matches)
        self._slots = list(slots)
        self._used_slots: set[int] = set()
        self._assignments: dict[int, int] = {}
        self._feasible: list[set[int]] = [set(range(len(self._slots))) for _ in self._matches]
        self._participant_slots: dict[str, list[int]] = {}
        for match in self._matches:
            for participant_id in match.participants:
                self._participant_slots.setdefault(participant_id, [])

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def assign(self, match_index: int, slot_index: int) -> None:
        if match_index in self._assignments:
            raise ValueError(f"Match {self._matches[match_index].id} is already assigned")
        if slot_index in self._used_slots:
            raise ValueError(f"Slot {slot_index} is already in use")

        self._assignments[match_index] = slot_index
        self._used_slots.add(slot_index)
        for participant_id in self._matches[match_index].participants:
            self._participant_slots[participant_id].append(slot_index)

    def unassign(self, match_index: int) -> int | None:
        """Undo an assignment and return the slot it freed."""
        slot_index = self._assignments.pop(match_index, None)
        if slot_index is None:
            return None
        self._used_slots.discard(slot_index)
        for participant_id in self._matches[match_index].participants:
            self._participant_slots[participant_id].remove(slot_index)
        return slot_index

    def assignment_of(self, match_index: int) -> int | None:
        return self._assignments.get(match_index)

    def is_assigned(self, match_index: int) -> bool:
        return match_index in self._assignments

    @property
    def assigned_count(self) -> int:
        return len(self._assignments)

    @property
    def assignments(self) -> dict[int, int]:
        return dict(self._assignments)

    # ------------------------------------------------------------------
    # Slot usage
    # ------------------------------------------------------------------

    def is_slot_used(self, slot_index: int) -> bool:
        return slot_index in self._used_slots

    @property
    def used_slots(self) -> frozenset[int]:
        return frozenset(self._used_slots)

    # ------------------------------------------------------------------
    # Feasible slots (forward checking)
    # ------------------------------------------------------------------

    def feasible_slots(self, match_index: int) -> frozenset[int]:
        """Slots still believed feasible for a match, used or not."""
        return frozenset(self._feasible[match_index])

    def remaining_slots(self, match_index: int) -> list[int]:
        """Feasible slots not consumed by another assignment, in slot order."""
        return sorted(self._feasible[match_index] - self._used_slots)

    def remaining_count(self, match_index: int) -> int:
        return len(self._feasible[match_index] - self._used_slots)

    def remove_feasible_slot(self, match_index: int, slot_index: int) -> bool:
        if slot_index in self._feasible[match_index]:
            self._feasible[match_index].discard(slot_index)
            return True
        return False

    def prune_overlapping(self, match_index: int, interval: TimeInterval) -> set[int]:
        """Drop every feasible slot overlapping `interval`; return what was dropped."""
        removed = {
            slot_index
            for slot_index in self._feasible[match_index]
            if self._slots[slot_index].start < interval.end
            and self._slots[slot_index].end > interval.start
        }
        self._feasible[match_index] -= removed
        return removed

    def restore_feasible_slots(self, match_index: int, slot_indices: Iterable[int]) -> None:
        self._feasible[match_index].update(slot_indices)

    # ------------------------------------------------------------------
    # Participant schedules
    # ------------------------------------------------------------------

    def participant_slots(self, participant_id: str) -> list[Slot]:
        return [self._slots[i] for i in self._participant_slots.get(participant_id, [])]
