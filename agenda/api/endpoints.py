"""API endpoints for the agenda service."""

from datetime import UTC, date, datetime

from fastapi import APIRouter, HTTPException, Request, Response

from agenda import __version__
from agenda.exceptions import AppointmentNotFound, DirectoryUnavailable, PatientNotFound, SchedulingError, SlotOccupied
from agenda.models.api import (
    AppointmentResponse,
    CancelRequest,
    CreateAppointmentRequest,
    DaySummaryResponse,
    DayViewResponse,
    HealthResponse,
    MoveAppointmentRequest,
    StatusUpdateRequest,
    UpdateAppointmentRequest,
)
from agenda.models.appointment import Appointment, AppointmentStatus, parse_patient_ref
from agenda.services import AgendaServices
from agenda.services.appointments import AppointmentChanges
from agenda.utils.calendar import parse_day
from agenda.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

ERROR_STATUS_CODES: dict[type[SchedulingError], int] = {
    SlotOccupied: 409,
    PatientNotFound: 422,
    AppointmentNotFound: 404,
    DirectoryUnavailable: 503,
}


def get_services(request: Request) -> AgendaServices:
    """Get the scheduling services owned by the running app."""
    return request.app.state.services


def _day_from_path(value: str) -> date:
    try:
        return parse_day(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, SchedulingError):
        return HTTPException(status_code=ERROR_STATUS_CODES.get(type(e), 400), detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _changes(body: UpdateAppointmentRequest | MoveAppointmentRequest) -> AppointmentChanges:
    return AppointmentChanges(
        time_of_day=body.time_of_day,
        reason=body.reason,
        notes=body.notes,
        patient_ref=parse_patient_ref(body.patient) if body.patient is not None else None,
    )


async def _response(services: AgendaServices, appointment: Appointment) -> AppointmentResponse:
    # The write is already stored; a failed name lookup must not turn it into an error
    return AppointmentResponse(
        **appointment.as_dict(),
        patient_name=await services.projector.display_name(appointment.patient_id),
    )


@router.get("/practitioners/{practitioner_id}/days/{day}", response_model=DayViewResponse, tags=["Agenda"])
async def get_day_view(
    practitioner_id: str, day: str, request: Request, status: AppointmentStatus | None = None
) -> DayViewResponse:
    """Get a practitioner's appointments for one day, in time order."""
    services = get_services(request)
    calendar_day = _day_from_path(day)

    entries = await services.projector.get_day_view(practitioner_id, calendar_day, status=status)
    return DayViewResponse(
        practitioner_id=practitioner_id,
        day=calendar_day,
        appointments=[
            AppointmentResponse(**entry.appointment.as_dict(), patient_name=entry.patient_name) for entry in entries
        ],
    )


@router.get(
    "/practitioners/{practitioner_id}/days/{day}/summary", response_model=DaySummaryResponse, tags=["Agenda"]
)
async def get_day_summary(practitioner_id: str, day: str, request: Request) -> DaySummaryResponse:
    """Get appointment counts for one day."""
    summary = get_services(request).projector.get_day_summary(practitioner_id, _day_from_path(day))
    return DaySummaryResponse(
        practitioner_id=summary.practitioner_id,
        day=summary.day,
        total=summary.total,
        by_status=summary.by_status,
        available_slots=summary.available_slots,
        busy_times=summary.busy_times,
    )


@router.post(
    "/practitioners/{practitioner_id}/appointments",
    response_model=AppointmentResponse,
    status_code=201,
    tags=["Appointments"],
)
async def create_appointment(
    practitioner_id: str, body: CreateAppointmentRequest, request: Request
) -> AppointmentResponse:
    """Book an appointment."""
    services = get_services(request)
    try:
        appointment = await services.appointments.create(
            practitioner_id,
            body.day,
            body.time_of_day,
            parse_patient_ref(body.patient),
            body.reason,
            body.notes,
        )
    except (SchedulingError, ValueError) as e:
        logger.warning(f"Create appointment failed for {practitioner_id}: {e}")
        raise _to_http_error(e) from e

    return await _response(services, appointment)


@router.patch(
    "/practitioners/{practitioner_id}/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    tags=["Appointments"],
)
async def update_appointment(
    practitioner_id: str, appointment_id: str, body: UpdateAppointmentRequest, request: Request
) -> AppointmentResponse:
    """Edit time, reason, notes or patient of an appointment within its day."""
    services = get_services(request)
    try:
        appointment = await services.appointments.update_in_place(
            practitioner_id, appointment_id, body.day, _changes(body)
        )
    except (SchedulingError, ValueError) as e:
        logger.warning(f"Update of appointment {appointment_id} failed: {e}")
        raise _to_http_error(e) from e

    return await _response(services, appointment)


@router.post(
    "/practitioners/{practitioner_id}/appointments/{appointment_id}/move",
    response_model=AppointmentResponse,
    tags=["Appointments"],
)
async def move_appointment(
    practitioner_id: str, appointment_id: str, body: MoveAppointmentRequest, request: Request
) -> AppointmentResponse:
    """Move an appointment to another day, optionally changing other fields."""
    services = get_services(request)
    try:
        appointment = await services.appointments.move(
            practitioner_id,
            appointment_id,
            body.to_day,
            from_day=body.from_day,
            changes=_changes(body),
        )
    except (SchedulingError, ValueError) as e:
        logger.warning(f"Move of appointment {appointment_id} failed: {e}")
        raise _to_http_error(e) from e

    return await _response(services, appointment)


@router.patch(
    "/practitioners/{practitioner_id}/appointments/{appointment_id}/status",
    response_model=AppointmentResponse,
    tags=["Appointments"],
)
async def update_status(
    practitioner_id: str, appointment_id: str, body: StatusUpdateRequest, request: Request
) -> AppointmentResponse:
    """Change an appointment's status."""
    services = get_services(request)
    try:
        appointment = await services.appointments.update_status(
            practitioner_id, appointment_id, body.status, body.day
        )
    except SchedulingError as e:
        raise _to_http_error(e) from e

    return await _response(services, appointment)


@router.post(
    "/practitioners/{practitioner_id}/appointments/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    tags=["Appointments"],
)
async def cancel_appointment(
    practitioner_id: str, appointment_id: str, request: Request, body: CancelRequest | None = None
) -> AppointmentResponse:
    """Cancel an appointment and free its slot."""
    services = get_services(request)
    try:
        appointment = await services.appointments.cancel(
            practitioner_id, appointment_id, body.day if body else None
        )
    except SchedulingError as e:
        raise _to_http_error(e) from e

    return await _response(services, appointment)


@router.delete(
    "/practitioners/{practitioner_id}/appointments/{appointment_id}", status_code=204, tags=["Appointments"]
)
async def delete_appointment(practitioner_id: str, appointment_id: str, day: str, request: Request) -> Response:
    """Delete an appointment entered by mistake."""
    services = get_services(request)
    try:
        await services.appointments.delete(practitioner_id, appointment_id, _day_from_path(day))
    except SchedulingError as e:
        raise _to_http_error(e) from e

    return Response(status_code=204)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
