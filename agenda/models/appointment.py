"""Appointment data models."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum


class AppointmentStatus(StrEnum):
    """Appointment status.

    Canonical flow is NEW -> CONFIRMED | PENDING -> FINISHED | CANCELLED.
    AVAILABLE marks an open, bookable slot rather than a real appointment.
    """

    NEW = "NEW"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"
    AVAILABLE = "AVAILABLE"

    @property
    def holds_slot(self) -> bool:
        """Whether an appointment in this status occupies its time slot."""
        return self not in (AppointmentStatus.CANCELLED, AppointmentStatus.AVAILABLE)


@dataclass(frozen=True)
class PatientId:
    """Patient reference that is already a canonical directory id."""

    id: int

    def __str__(self) -> str:
        return str(self.id)


@dataclass(frozen=True)
class PatientText:
    """Patient reference given as free text (name, phone or document)."""

    text: str

    def __str__(self) -> str:
        return self.text


PatientRef = PatientId | PatientText


def parse_patient_ref(value: int | str | PatientId | PatientText) -> PatientRef:
    """Convert boundary input into a tagged patient reference.

    Integers and all-digit strings are canonical ids; anything else is text
    that must be resolved against the directory.
    """
    if isinstance(value, PatientId | PatientText):
        return value
    if isinstance(value, bool):
        raise ValueError("Patient reference cannot be a boolean")
    if isinstance(value, int):
        return PatientId(value)

    text = value.strip()
    if not text:
        raise ValueError("Patient reference cannot be empty")
    if text.isdigit():
        return PatientId(int(text))
    return PatientText(text)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Appointment:
    """A booked (or placeholder) slot in one practitioner's day."""

    id: str
    practitioner_id: str
    patient_id: int
    calendar_day: date
    time_of_day: str  # normalized HH:MM
    reason: str
    status: AppointmentStatus = AppointmentStatus.NEW
    notes: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def holds_slot(self) -> bool:
        """Whether this appointment blocks its slot for other bookings."""
        return self.status.holds_slot

    def as_dict(self) -> dict:
        """Return the appointment as a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "practitioner_id": self.practitioner_id,
            "patient_id": self.patient_id,
            "calendar_day": self.calendar_day.isoformat(),
            "time_of_day": self.time_of_day,
            "reason": self.reason,
            "notes": self.notes,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
