"""
Slot generation from field availability windows.

Each availability window is cut into back-to-back slots of the match
duration, with a buffer between consecutive slots.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from .models import Field, InvalidInputError, Slot


@dataclass(frozen=True)
class SlotRules:
    match_duration_minutes: int
    buffer_minutes: int = 0

    def __post_init__(self) -> None:
        if self.match_duration_minutes <= 0:
            raise InvalidInputError(
                f"Match duration must be positive, got {self.match_duration_minutes}"
            )
        if self.buffer_minutes < 0:
            raise InvalidInputError(f"Buffer cannot be negative, got {self.buffer_minutes}")


def generate_slots(fields: Sequence[Field], rules: SlotRules) -> list[Slot]:
    """
    Enumerate candidate slots for every field.

    Slots are emitted field by field, window by window, in chronological
    order. A slot is only emitted if the whole match fits inside the window;
    the buffer after the last slot may run past the window end.

    Args:
        fields: Fields with their availability windows
        rules: Match duration and buffer between matches

    Returns:
        List of slots, in field order then start time
    """
    match_length = timedelta(minutes=rules.match_duration_minutes)
    buffer = timedelta(minutes=rules.buffer_minutes)

    slots: list[Slot] = []
    for f in fields:
        for window in sorted(f.availability_windows, key=lambda w: w.start):
            current_start = window.start
            while current_start + match_length <= window.end:
                slot = Slot(field_id=f.id, start=current_start, end=current_start + match_length)
                slots.append(slot)
                current_start = slot.end + buffer
    return slots
