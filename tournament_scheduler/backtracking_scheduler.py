"""
Backtracking constraint-satisfaction scheduler.

Places matches into slots so that every hard constraint holds, using
most-constrained-variable (MRV) selection, least-constraining-value (LCV)
slot ordering and forward checking. The search runs on an explicit stack of
frames rather than Python recursion, so deep match lists cannot exhaust the
interpreter's recursion limit.

The search is deterministic: the same matches, slots, constraints and
context always produce the same assignments and the same backtrack count.
"""

import asyncio
import bisect
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from .cancellation import CancellationToken
from .constraint_evaluator import ConstraintEvaluator, ConstraintRegistry
from .constraints import Constraint
from .models import (
    Assignment,
    InvalidInputError,
    Match,
    MissingContextError,
    Slot,
    TournamentContext,
)
from .schedule import Schedule
from .search_state import SearchState

logger = logging.getLogger(__name__)

INFEASIBLE_REASON = "Unable to find a valid schedule satisfying all hard constraints"
CANCELLED_REASON = "Scheduling was cancelled before a valid schedule was found"


class ValueOrdering(Enum):
    """How candidate slots are ranked for the selected match.

    FLAT counts +1 per pending match plus +1 per pending match sharing a
    participant, which ranks every slot equally and leaves slot order as the
    tie-break. OVERLAP counts the feasible slots of pending matches the
    candidate would actually take away.
    """

    FLAT = "flat"
    OVERLAP = "overlap"


@dataclass
class _Frame:
    """One level of the search: a selected match and its ordered candidate slots."""

    match_index: int
    candidates: list[int]
    position: int = 0
    slot_index: int | None = None
    pruned: dict[int, set[int]] = field(default_factory=dict)


class BacktrackingScheduler:
    def __init__(self, value_ordering: ValueOrdering = ValueOrdering.FLAT) -> None:
        self.value_ordering = value_ordering
        self.backtrack_count = 0

    def schedule(
        self,
        matches: Sequence[Match],
        slots: Sequence[Slot],
        constraints: Sequence[Constraint],
        context: TournamentContext | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Schedule:
        """
        Assign every match to a slot without breaking a hard constraint.

        Args:
            matches: Matches to place; may be empty
            slots: Candidate slots; a slot's identity is its position here
            constraints: Hard and soft constraints, in any mix
            context: Roster consulted by constraints for names and seeds
            cancellation: Cooperative stop signal, checked throughout the search

        Returns:
            The Schedule, feasible or not, with every violation of the final
            placement attached. Infeasibility and cancellation are reported
            through the Schedule and never raised.

        Raises:
            InvalidInputError: If a required collection is missing or malformed
        """
        run = _SearchRun.create(matches, slots, constraints, context, self.value_ordering)
        token = cancellation if cancellation is not None else CancellationToken()

        logger.info(
            f"Starting backtracking scheduler with {len(run.matches)} matches "
            f"and {len(run.slots)} slots"
        )
        started = time.monotonic()
        success = run.search(token)
        elapsed = time.monotonic() - started
        self.backtrack_count = run.backtracks

        schedule = run.schedule
        logger.info(
            f"Backtracking completed: success={success}, "
            f"scheduled={schedule.scheduled_match_count}, backtracks={run.backtracks}"
        )

        if not success:
            if run.cancelled:
                logger.warning(f"Scheduling cancelled after {run.backtracks} backtracks")
                schedule.mark_infeasible(CANCELLED_REASON)
            else:
                logger.warning(f"Failed to schedule matches after {run.backtracks} backtracks")
                schedule.mark_infeasible(INFEASIBLE_REASON)

        for violation in run.evaluator.evaluate(schedule):
            schedule.add_violation(violation)

        schedule.search_stats = {
            "backtracks": run.backtracks,
            "assignments_tried": run.assignments_tried,
            "elapsed_seconds": elapsed,
            "cancelled": run.cancelled,
            "value_ordering": self.value_ordering.value,
        }
        return schedule

    async def schedule_async(
        self,
        matches: Sequence[Match],
        slots: Sequence[Slot],
        constraints: Sequence[Constraint],
        context: TournamentContext | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Schedule:
        """Run `schedule` on a worker thread so the event loop is not blocked."""
        return await asyncio.to_thread(
            self.schedule, matches, slots, constraints, context, cancellation
        )


class _SearchRun:
    """Private working memory of a single scheduling call."""

    def __init__(
        self,
        matches: list[Match],
        slots: list[Slot],
        evaluator: ConstraintEvaluator,
        schedule: Schedule,
        value_ordering: ValueOrdering,
    ) -> None:
        self.matches = matches
        self.slots = slots
        self.evaluator = evaluator
        self.schedule = schedule
        self.value_ordering = value_ordering
        self.state = SearchState(matches, slots)
        self.unassigned: list[int] = list(range(len(matches)))
        self.backtracks = 0
        self.assignments_tried = 0
        self.cancelled = False

        index_by_id = {m.id: i for i, m in enumerate(matches)}
        # Prerequisites outside the match list can never be placed; the stage
        # dependency constraint reports them, the search does not wait on them
        self.prerequisites: list[list[int]] = [
            [index_by_id[pid] for pid in m.prerequisite_ids if pid in index_by_id]
            for m in matches
        ]

    @classmethod
    def create(
        cls,
        matches: Sequence[Match],
        slots: Sequence[Slot],
        constraints: Sequence[Constraint],
        context: TournamentContext | None,
        value_ordering: ValueOrdering,
    ) -> "_SearchRun":
        if matches is None:
            raise InvalidInputError("matches cannot be None")
        if slots is None:
            raise InvalidInputError("slots cannot be None")
        if constraints is None:
            raise InvalidInputError("constraints cannot be None")

        match_list = list(matches)
        slot_list = list(slots)
        seen: set[str] = set()
        for match in match_list:
            if not isinstance(match, Match):
                raise InvalidInputError(f"Expected a Match, got {type(match).__name__}")
            if match.id in seen:
                raise InvalidInputError(f"Duplicate match id: {match.id}")
            seen.add(match.id)
        for slot in slot_list:
            if not isinstance(slot, Slot):
                raise InvalidInputError(f"Expected a Slot, got {type(slot).__name__}")

        registry = ConstraintRegistry()
        registry.register_all(constraints)
        if context is None:
            for constraint in registry.all_constraints:
                if constraint.requires_context:
                    raise MissingContextError(f"{constraint.name} needs a tournament context")
        evaluator = ConstraintEvaluator(registry, context)
        schedule = Schedule(context.name if context else None)
        return cls(match_list, slot_list, evaluator, schedule, value_ordering)

    # ------------------------------------------------------------------
    # Search loop
    # ------------------------------------------------------------------

    def search(self, token: CancellationToken) -> bool:
        stack: list[_Frame] = []
        descend = True

        while True:
            if descend:
                if token.cancelled:
                    self._unwind(stack)
                    return False

                if not self.unassigned:
                    if self.evaluator.satisfies_hard_constraints(self.schedule):
                        return True
                    logger.debug("All matches placed but hard constraints fail; backtracking")
                    if not stack:
                        return False
                else:
                    match_index = self._select_most_constrained()
                    if match_index is not None:
                        self.unassigned.remove(match_index)
                        stack.append(_Frame(match_index, self._order_slots(match_index)))
                    elif not stack:
                        return False

            frame = stack[-1]
            if frame.slot_index is not None:
                # The subtree below the current tentative assignment failed
                self._undo(frame)
                self.backtracks += 1

            descend = False
            while frame.position < len(frame.candidates):
                if token.cancelled:
                    self._unwind(stack)
                    return False

                slot_index = frame.candidates[frame.position]
                frame.position += 1
                if self.state.is_slot_used(slot_index):
                    continue

                self._assign(frame, slot_index)
                match = self.matches[frame.match_index]
                if not self.evaluator.violates_hard_constraints(
                    self.schedule, match
                ) and self._forward_check(frame):
                    descend = True
                    break

                self._undo(frame)
                self.backtracks += 1

            if descend:
                continue

            # Every candidate failed: hand the match back and fail upwards
            stack.pop()
            bisect.insort(self.unassigned, frame.match_index)
            if not stack:
                return False

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------

    def _select_most_constrained(self) -> int | None:
        """Pick the pending match with the fewest remaining slots (MRV).

        Only matches whose prerequisites are already placed are eligible. Any
        pending match left without slots makes this branch a dead end, as does
        having more pending matches than free slots.
        """
        free_slots = len(self.slots) - self.state.assigned_count
        if len(self.unassigned) > free_slots:
            logger.debug(f"{len(self.unassigned)} pending matches but only {free_slots} free slots")
            return None

        selected: int | None = None
        fewest = None
        for match_index in self.unassigned:
            remaining = self.state.remaining_count(match_index)
            if remaining == 0:
                logger.debug(f"Match {self.matches[match_index].id} has no feasible slots left")
                return None
            if not self._prerequisites_placed(match_index):
                continue
            if fewest is None or remaining < fewest:
                fewest = remaining
                selected = match_index

        if selected is None:
            logger.debug("No pending match has all of its prerequisites placed")
        return selected

    def _prerequisites_placed(self, match_index: int) -> bool:
        return all(self.state.is_assigned(i) for i in self.prerequisites[match_index])

    def _order_slots(self, match_index: int) -> list[int]:
        """Rank the match's remaining slots, least constraining first (LCV).

        The sort is stable, so equal impacts keep slot order.
        """
        candidates = self.state.remaining_slots(match_index)
        if self.value_ordering == ValueOrdering.OVERLAP:
            impacts = {s: self._overlap_impact(match_index, s) for s in candidates}
        else:
            impact = self._flat_impact(match_index)
            impacts = {s: impact for s in candidates}
        return sorted(candidates, key=lambda s: impacts[s])

    def _flat_impact(self, match_index: int) -> int:
        match = self.matches[match_index]
        impact = 0
        for other_index in self.unassigned:
            if other_index == match_index:
                continue
            if self.matches[other_index].shares_participant(match):
                impact += 1
            impact += 1
        return impact

    def _overlap_impact(self, match_index: int, slot_index: int) -> int:
        match = self.matches[match_index]
        slot = self.slots[slot_index]
        impact = 0
        for other_index in self.unassigned:
            if other_index == match_index:
                continue
            shares = self.matches[other_index].shares_participant(match)
            for candidate in self.state.remaining_slots(other_index):
                if candidate == slot_index:
                    impact += 1
                elif shares and self.slots[candidate].overlaps_in_time(slot):
                    impact += 1
        return impact

    def _forward_check(self, frame: _Frame) -> bool:
        """Prune overlapping slots from pending matches sharing a participant.

        Fails as soon as one of them is left with no remaining slot. Pruned
        slots are recorded on the frame so undoing the assignment restores them.
        """
        assigned = self.matches[frame.match_index]
        interval = self.slots[frame.slot_index].interval  # type: ignore[index]

        for other_index in self.unassigned:
            if not self.matches[other_index].shares_participant(assigned):
                continue
            removed = self.state.prune_overlapping(other_index, interval)
            if removed:
                frame.pruned[other_index] = removed
            if self.state.remaining_count(other_index) == 0:
                logger.debug(
                    f"Forward check: placing {assigned.id} leaves "
                    f"{self.matches[other_index].id} without slots"
                )
                return False
        return True

    # ------------------------------------------------------------------
    # Apply / retract
    # ------------------------------------------------------------------

    def _assign(self, frame: _Frame, slot_index: int) -> None:
        match = self.matches[frame.match_index]
        self.state.assign(frame.match_index, slot_index)
        self.schedule.add_match(match, Assignment.for_slot(slot_index, self.slots[slot_index]))
        frame.slot_index = slot_index
        self.assignments_tried += 1

    def _undo(self, frame: _Frame) -> None:
        for other_index, removed in frame.pruned.items():
            self.state.restore_feasible_slots(other_index, removed)
        frame.pruned = {}
        self.state.unassign(frame.match_index)
        self.schedule.remove_match(self.matches[frame.match_index].id)
        frame.slot_index = None

    def _unwind(self, stack: list[_Frame]) -> None:
        """Retract every tentative placement after a cancellation."""
        self.cancelled = True
        while stack:
            frame = stack.pop()
            if frame.slot_index is not None:
                self._undo(frame)
            bisect.insort(self.unassigned, frame.match_index)


def schedule_matches(
    matches: Sequence[Match],
    slots: Sequence[Slot],
    constraints: Sequence[Constraint],
    context: TournamentContext | None = None,
    timeout_seconds: float | None = None,
    value_ordering: ValueOrdering = ValueOrdering.FLAT,
) -> Schedule:
    """
    Convenience entry point: schedule with an optional wall-clock limit.

    A timeout is expressed as a cancellation token with a deadline; running
    out of time yields an infeasible schedule rather than an error.
    """
    token = CancellationToken.with_timeout(timeout_seconds) if timeout_seconds else None
    return BacktrackingScheduler(value_ordering).schedule(
        matches, slots, constraints, context, token
    )
