"""Scheduling errors."""

from datetime import date


class SchedulingError(Exception):
    """Base exception for agenda scheduling errors."""


class SlotOccupied(SchedulingError):
    """Raised when another active appointment already holds the requested slot."""

    def __init__(self, practitioner_id: str, day: date, time_of_day: str):
        self.practitioner_id = practitioner_id
        self.day = day
        self.time_of_day = time_of_day
        super().__init__(f"Slot {day.isoformat()} {time_of_day} is already booked for practitioner {practitioner_id}")


class PatientNotFound(SchedulingError):
    """Raised when a patient reference cannot be resolved to a canonical id."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"No patient matches reference {reference!r}")


class AppointmentNotFound(SchedulingError):
    """Raised when an appointment id is not in the expected (or any) day."""

    def __init__(self, appointment_id: str, day: date | None = None):
        self.appointment_id = appointment_id
        self.day = day
        where = f" on {day.isoformat()}" if day else ""
        super().__init__(f"Appointment {appointment_id} not found{where}")


class DirectoryUnavailable(SchedulingError):
    """Raised when the patient directory cannot be reached in time."""
