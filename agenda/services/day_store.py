"""Day partition store: appointments keyed by practitioner and calendar day."""

from dataclasses import replace
from datetime import UTC, date, datetime
from typing import Any

from agenda.exceptions import AppointmentNotFound
from agenda.models.appointment import Appointment
from agenda.utils.calendar import day_key
from agenda.utils.logging import get_logger

logger = get_logger(__name__)

PartitionKey = tuple[str, int]


class DayPartitionStore:
    """In-memory appointment store partitioned by (practitioner, day).

    Partitions are created lazily and kept sorted by time of day. A secondary
    id index maps each appointment id to the partition currently holding it,
    so lookups without a known day do not scan every partition.

    Records are immutable, so readers always get a consistent snapshot.
    """

    def __init__(self):
        """Initialize an empty store."""
        self._partitions: dict[PartitionKey, list[Appointment]] = {}
        self._index: dict[str, PartitionKey] = {}

    def get_day(self, practitioner_id: str, day: date) -> tuple[Appointment, ...]:
        """Get a day's appointments ordered by time of day.

        Args:
            practitioner_id: Owning practitioner
            day: Calendar day

        Returns:
            Snapshot of the partition, empty if the day has no appointments
        """
        return tuple(self._partitions.get((practitioner_id, day_key(day)), ()))

    def find_by_id(self, appointment_id: str) -> Appointment | None:
        """Find an appointment regardless of the day holding it."""
        key = self._index.get(appointment_id)
        if key is None:
            return None
        return self._find_in(key, appointment_id)

    def upsert(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment or replace one with the same id in its day.

        Raises:
            ValueError: If the id is already stored under a different partition;
                use move_across_days for day changes
        """
        key = (appointment.practitioner_id, day_key(appointment.calendar_day))
        current_key = self._index.get(appointment.id)
        if current_key is not None and current_key != key:
            raise ValueError(f"Appointment {appointment.id} belongs to another day; move it instead of upserting")

        partition = self._partitions.setdefault(key, [])
        partition[:] = [apt for apt in partition if apt.id != appointment.id]
        partition.append(appointment)
        partition.sort(key=lambda apt: apt.time_of_day)
        self._index[appointment.id] = key
        return appointment

    def remove(self, practitioner_id: str, day: date, appointment_id: str) -> bool:
        """Remove one appointment from a day.

        Returns:
            True if removed, False if it was not in that day
        """
        key = (practitioner_id, day_key(day))
        partition = self._partitions.get(key)
        if not partition or self._index.get(appointment_id) != key:
            return False

        partition[:] = [apt for apt in partition if apt.id != appointment_id]
        del self._index[appointment_id]
        return True

    def move_across_days(self, appointment_id: str, from_day: date, to_day: date, **changes: Any) -> Appointment:
        """Move an appointment to another day, applying field changes.

        The mutated record is built before either partition is touched, and
        both partitions plus the index are updated without yielding, so the
        appointment is never visible in neither or both days.

        Raises:
            AppointmentNotFound: If the appointment is not in from_day
        """
        existing = self.find_by_id(appointment_id)
        if existing is None or existing.calendar_day != from_day:
            raise AppointmentNotFound(appointment_id, from_day)
        if {"id", "practitioner_id"} & changes.keys():
            raise ValueError("Appointment id and practitioner cannot change")

        fields = {"updated_at": datetime.now(UTC), **changes, "calendar_day": to_day}
        moved = replace(existing, **fields)

        from_key = (existing.practitioner_id, day_key(from_day))
        to_key = (existing.practitioner_id, day_key(to_day))

        source = self._partitions[from_key]
        source[:] = [apt for apt in source if apt.id != appointment_id]

        target = self._partitions.setdefault(to_key, [])
        target[:] = [apt for apt in target if apt.id != appointment_id]
        target.append(moved)
        target.sort(key=lambda apt: apt.time_of_day)
        self._index[appointment_id] = to_key

        logger.debug(f"Moved {appointment_id} from {from_day.isoformat()} to {to_day.isoformat()}")
        return moved

    def clear(self) -> None:
        """Drop every partition."""
        self._partitions.clear()
        self._index.clear()

    def count(self) -> int:
        """Total number of stored appointments."""
        return len(self._index)

    def _find_in(self, key: PartitionKey, appointment_id: str) -> Appointment | None:
        for appointment in self._partitions.get(key, ()):
            if appointment.id == appointment_id:
                return appointment
        return None
