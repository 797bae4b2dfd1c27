"""Appointment lifecycle: create, update, move, status changes and removal."""

import asyncio
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime

from cuid2 import cuid_wrapper

from agenda.exceptions import AppointmentNotFound, SlotOccupied
from agenda.models.appointment import Appointment, AppointmentStatus, PatientRef
from agenda.services.conflicts import is_slot_occupied
from agenda.services.day_store import DayPartitionStore
from agenda.services.patients import PatientResolver
from agenda.utils.calendar import normalize_time
from agenda.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

CANONICAL_TRANSITIONS: dict[AppointmentStatus, set[AppointmentStatus]] = {
    AppointmentStatus.NEW: {AppointmentStatus.CONFIRMED, AppointmentStatus.PENDING, AppointmentStatus.CANCELLED},
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.FINISHED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {AppointmentStatus.FINISHED, AppointmentStatus.CANCELLED},
    AppointmentStatus.FINISHED: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.AVAILABLE: set(),
}


def is_canonical_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """Whether a status change follows the usual appointment flow.

    FINISHED and CANCELLED are reachable from any state. Other changes are
    still allowed by update_status, they are only logged as unusual.
    """
    if new in (AppointmentStatus.FINISHED, AppointmentStatus.CANCELLED):
        return True
    return new in CANONICAL_TRANSITIONS[current]


@dataclass(frozen=True)
class AppointmentChanges:
    """Editable appointment fields; None leaves a field unchanged."""

    time_of_day: str | None = None
    reason: str | None = None
    notes: str | None = None
    patient_ref: PatientRef | None = None


class AppointmentLifecycleManager:
    """Single entry point for every appointment write.

    Writes for one practitioner are serialized with a per-practitioner lock so
    the conflict check and the write that follows it cannot interleave with
    another booking. Patient references are resolved before the lock is
    taken, so a slow directory does not hold up other writes. Every check runs before the store is touched, so a
    failed operation leaves no partial change.
    """

    def __init__(self, store: DayPartitionStore, resolver: PatientResolver):
        """Initialize with the store it owns and the patient resolver."""
        self.store = store
        self.resolver = resolver
        self._locks: dict[str, asyncio.Lock] = {}

    async def create(
        self,
        practitioner_id: str,
        day: date,
        time_of_day: str,
        patient_ref: PatientRef,
        reason: str,
        notes: str | None = None,
    ) -> Appointment:
        """Book a new appointment.

        Args:
            practitioner_id: Calendar owner
            day: Calendar day
            time_of_day: Requested time, any H:MM form
            patient_ref: Patient id or free text to resolve
            reason: Reason for the visit
            notes: Optional notes

        Returns:
            The created appointment with status NEW

        Raises:
            PatientNotFound: If the patient reference does not resolve
            SlotOccupied: If another active appointment holds the slot
            ValueError: If the time of day is invalid
        """
        slot = normalize_time(time_of_day)
        patient_id = await self.resolver.resolve(patient_ref)

        async with self._write_lock(practitioner_id):
            if is_slot_occupied(self.store.get_day(practitioner_id, day), slot):
                logger.warning(f"Rejected booking for {practitioner_id}: {day.isoformat()} {slot} is taken")
                raise SlotOccupied(practitioner_id, day, slot)

            appointment = Appointment(
                id=cuid(),
                practitioner_id=practitioner_id,
                patient_id=patient_id,
                calendar_day=day,
                time_of_day=slot,
                reason=reason,
                notes=notes,
                status=AppointmentStatus.NEW,
            )
            self.store.upsert(appointment)

        logger.info(f"Created appointment {appointment.id} for patient {patient_id} on {day.isoformat()} {slot}")
        return appointment

    async def update_in_place(
        self,
        practitioner_id: str,
        appointment_id: str,
        day: date,
        changes: AppointmentChanges,
    ) -> Appointment:
        """Edit an appointment without changing its day.

        The slot is re-checked only when the time actually changes, and the
        appointment never conflicts with itself.

        Raises:
            AppointmentNotFound: If the appointment is not in that day
            SlotOccupied: If the new time is taken
            PatientNotFound: If a new patient reference does not resolve
        """
        new_patient_id = await self._resolve_change(changes)

        async with self._write_lock(practitioner_id):
            existing = self._locate_in_day(practitioner_id, appointment_id, day)
            fields = self._prepare_fields(existing, changes, new_patient_id)

            new_slot = fields.get("time_of_day", existing.time_of_day)
            if new_slot != existing.time_of_day and existing.holds_slot:
                partition = self.store.get_day(practitioner_id, day)
                if is_slot_occupied(partition, new_slot, exclude_id=appointment_id):
                    logger.warning(f"Rejected edit of {appointment_id}: {day.isoformat()} {new_slot} is taken")
                    raise SlotOccupied(practitioner_id, day, new_slot)

            updated = self.store.upsert(replace(existing, **fields, updated_at=datetime.now(UTC)))

        logger.info(f"Updated appointment {appointment_id} ({', '.join(sorted(fields)) or 'no changes'})")
        return updated

    async def move(
        self,
        practitioner_id: str,
        appointment_id: str,
        to_day: date,
        time_of_day: str | None = None,
        from_day: date | None = None,
        changes: AppointmentChanges | None = None,
    ) -> Appointment:
        """Reschedule an appointment to another day.

        Args:
            practitioner_id: Calendar owner
            appointment_id: Appointment to move
            to_day: Destination day
            time_of_day: Destination time, defaults to the current time
            from_day: Day currently holding the appointment, if known
            changes: Other fields to change with the move

        Raises:
            AppointmentNotFound: If the appointment cannot be located
            SlotOccupied: If the destination slot is taken
            PatientNotFound: If a new patient reference does not resolve
        """
        changes = changes or AppointmentChanges()
        if time_of_day is not None:
            changes = replace(changes, time_of_day=time_of_day)
        new_patient_id = await self._resolve_change(changes)

        async with self._write_lock(practitioner_id):
            if from_day is not None:
                existing = self._locate_in_day(practitioner_id, appointment_id, from_day)
            else:
                existing = self._locate_anywhere(practitioner_id, appointment_id)

            fields = self._prepare_fields(existing, changes, new_patient_id)
            slot = fields.get("time_of_day", existing.time_of_day)

            destination = self.store.get_day(practitioner_id, to_day)
            if existing.holds_slot and is_slot_occupied(destination, slot, exclude_id=appointment_id):
                logger.warning(f"Rejected move of {appointment_id}: {to_day.isoformat()} {slot} is taken")
                raise SlotOccupied(practitioner_id, to_day, slot)

            moved = self.store.move_across_days(appointment_id, existing.calendar_day, to_day, **fields)

        logger.info(
            f"Moved appointment {appointment_id} from {existing.calendar_day.isoformat()} {existing.time_of_day} "
            f"to {to_day.isoformat()} {slot}"
        )
        return moved

    async def update_status(
        self,
        practitioner_id: str,
        appointment_id: str,
        status: AppointmentStatus,
        day: date | None = None,
    ) -> Appointment:
        """Set an appointment's status.

        No slot check runs; cancelling simply stops the appointment from
        holding its slot.

        Raises:
            AppointmentNotFound: If the appointment cannot be located
        """
        async with self._write_lock(practitioner_id):
            if day is not None:
                existing = self._locate_in_day(practitioner_id, appointment_id, day)
            else:
                existing = self._locate_anywhere(practitioner_id, appointment_id)

            if existing.status == status:
                return existing

            if not is_canonical_transition(existing.status, status):
                logger.info(f"Unusual status change for {appointment_id}: {existing.status} -> {status}")

            updated = self.store.upsert(replace(existing, status=status, updated_at=datetime.now(UTC)))

        logger.info(f"Appointment {appointment_id} status {existing.status} -> {status}")
        return updated

    async def cancel(self, practitioner_id: str, appointment_id: str, day: date | None = None) -> Appointment:
        """Cancel an appointment, keeping it on record and freeing its slot."""
        return await self.update_status(practitioner_id, appointment_id, AppointmentStatus.CANCELLED, day)

    async def delete(self, practitioner_id: str, appointment_id: str, day: date) -> None:
        """Remove an appointment entered by mistake.

        Raises:
            AppointmentNotFound: If the appointment is not in that day
        """
        async with self._write_lock(practitioner_id):
            self._locate_in_day(practitioner_id, appointment_id, day)
            self.store.remove(practitioner_id, day, appointment_id)

        logger.info(f"Deleted appointment {appointment_id} from {day.isoformat()}")

    async def _resolve_change(self, changes: AppointmentChanges) -> int | None:
        if changes.patient_ref is None:
            return None
        return await self.resolver.resolve(changes.patient_ref)

    def _prepare_fields(self, existing: Appointment, changes: AppointmentChanges, patient_id: int | None) -> dict:
        """Validate changes and turn them into record fields."""
        fields: dict = {}
        if changes.time_of_day is not None:
            fields["time_of_day"] = normalize_time(changes.time_of_day)
        if changes.reason is not None:
            fields["reason"] = changes.reason
        if changes.notes is not None:
            fields["notes"] = changes.notes
        if patient_id is not None and patient_id != existing.patient_id:
            fields["patient_id"] = patient_id
        return fields

    def _locate_in_day(self, practitioner_id: str, appointment_id: str, day: date) -> Appointment:
        for appointment in self.store.get_day(practitioner_id, day):
            if appointment.id == appointment_id:
                return appointment
        raise AppointmentNotFound(appointment_id, day)

    def _locate_anywhere(self, practitioner_id: str, appointment_id: str) -> Appointment:
        appointment = self.store.find_by_id(appointment_id)
        if appointment is None or appointment.practitioner_id != practitioner_id:
            raise AppointmentNotFound(appointment_id)
        return appointment

    def _write_lock(self, practitioner_id: str) -> asyncio.Lock:
        return self._locks.setdefault(practitioner_id, asyncio.Lock())
