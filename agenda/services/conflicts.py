"""Slot conflict detection within a day partition."""

from collections.abc import Iterable

from agenda.models.appointment import Appointment
from agenda.utils.calendar import normalize_time


def is_slot_occupied(partition: Iterable[Appointment], time_of_day: str, exclude_id: str | None = None) -> bool:
    """Check whether another active appointment holds a time slot.

    Only identical ``HH:MM`` values collide; appointments have no duration,
    so 09:00 and 09:01 never conflict. CANCELLED and AVAILABLE entries do not
    hold their slot.

    Args:
        partition: Appointments of one practitioner's day
        time_of_day: Candidate time, normalized before comparison
        exclude_id: Appointment to ignore, typically the one being edited

    Returns:
        True if the slot is taken by another active appointment
    """
    wanted = normalize_time(time_of_day)
    return any(
        apt.time_of_day == wanted and apt.holds_slot and apt.id != exclude_id
        for apt in partition
    )


def occupied_times(partition: Iterable[Appointment]) -> set[str]:
    """Get the set of times held by active appointments."""
    return {apt.time_of_day for apt in partition if apt.holds_slot}
