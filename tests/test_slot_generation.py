from datetime import timedelta

import pytest

from tournament_scheduler.models import Field, InvalidInputError, TimeInterval
from tournament_scheduler.slot_generation import SlotRules, generate_slots

from .conftest import BASE_TIME


def window(start_hour: int, end_hour: int, day: int = 0) -> TimeInterval:
    start = BASE_TIME.replace(hour=start_hour) + timedelta(days=day)
    return TimeInterval(start, start.replace(hour=end_hour))


def test_back_to_back_slots_fill_the_window():
    slots = generate_slots([Field("F1", "Pitch", (window(9, 12),))], SlotRules(60))
    assert [(s.start.hour, s.end.hour) for s in slots] == [(9, 10), (10, 11), (11, 12)]


def test_buffer_between_slots():
    slots = generate_slots([Field("F1", "Pitch", (window(9, 12),))], SlotRules(60, 15))
    assert [s.start.strftime("%H:%M") for s in slots] == ["09:00", "10:15"]


def test_partial_slot_is_dropped():
    slots = generate_slots([Field("F1", "Pitch", (window(9, 11),))], SlotRules(90))
    assert len(slots) == 1


def test_fields_then_windows_in_order():
    fields = [
        Field("F1", "North", (window(14, 16), window(9, 10))),
        Field("F2", "South", (window(9, 10, day=1),)),
    ]
    slots = generate_slots(fields, SlotRules(60))
    assert [(s.field_id, s.start.hour) for s in slots] == [
        ("F1", 9), ("F1", 14), ("F1", 15), ("F2", 9),
    ]


def test_field_without_windows_yields_nothing():
    assert generate_slots([Field("F1", "Pitch")], SlotRules(60)) == []


@pytest.mark.parametrize("duration,buffer", [(0, 0), (-30, 0), (60, -5)])
def test_invalid_rules(duration, buffer):
    with pytest.raises(InvalidInputError):
        SlotRules(duration, buffer)
