"""Request and response models for the agenda API."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from agenda.models.appointment import AppointmentStatus

PatientRefField = Field(
    ...,
    description="Canonical patient id, or the patient's full name / phone / id document",
    examples=[42, "Ana Gómez"],
)


class CreateAppointmentRequest(BaseModel):
    """Request to book an appointment."""

    day: date
    time_of_day: str = Field(..., description="Time of day, HH:MM (24h)", examples=["10:30"])
    patient: int | str = PatientRefField
    reason: str = Field(..., min_length=1)
    notes: str | None = None


class UpdateAppointmentRequest(BaseModel):
    """Request to edit an appointment within its current day."""

    day: date
    time_of_day: str | None = None
    patient: int | str | None = None
    reason: str | None = None
    notes: str | None = None


class MoveAppointmentRequest(BaseModel):
    """Request to move an appointment to another day."""

    to_day: date
    from_day: date | None = None
    time_of_day: str | None = None
    patient: int | str | None = None
    reason: str | None = None
    notes: str | None = None


class StatusUpdateRequest(BaseModel):
    """Request to change an appointment's status."""

    status: AppointmentStatus
    day: date | None = None


class CancelRequest(BaseModel):
    """Request to cancel an appointment."""

    day: date | None = None


class AppointmentResponse(BaseModel):
    """An appointment as returned by the API."""

    id: str
    practitioner_id: str
    patient_id: int
    patient_name: str | None = None
    calendar_day: date
    time_of_day: str
    reason: str
    notes: str | None = None
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime


class DayViewResponse(BaseModel):
    """A practitioner's day in time order."""

    practitioner_id: str
    day: date
    appointments: list[AppointmentResponse]


class DaySummaryResponse(BaseModel):
    """Appointment counts for a practitioner's day."""

    practitioner_id: str
    day: date
    total: int
    by_status: dict[str, int]
    available_slots: int
    busy_times: list[str]


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
