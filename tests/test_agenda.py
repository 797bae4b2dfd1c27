"""Tests for the agenda read projector."""

from datetime import date

import httpx
import pytest

from agenda.clients.patient_directory import HttpPatientDirectory
from agenda.exceptions import DirectoryUnavailable
from agenda.models.appointment import AppointmentStatus, PatientId
from agenda.models.patient import Patient
from agenda.services.agenda import AgendaProjector
from agenda.services.appointments import AppointmentLifecycleManager
from agenda.services.day_store import DayPartitionStore
from agenda.services.patients import InMemoryPatientDirectory, PatientResolver

DOCTOR = "dr-rivera"
DAY = date(2025, 3, 10)


class RecordingDirectory(InMemoryPatientDirectory):
    """Directory that counts lookups and fails for selected ids."""

    def __init__(self, patients, failing_ids=()):
        super().__init__(patients)
        self.failing_ids = set(failing_ids)
        self.lookups: list[int] = []

    async def find_by_id(self, patient_id: int) -> Patient | None:
        self.lookups.append(patient_id)
        if patient_id in self.failing_ids:
            raise DirectoryUnavailable(f"lookup of {patient_id} failed")
        return await super().find_by_id(patient_id)


@pytest.fixture
def recording_directory():
    """Directory where patient 7 is unreachable."""
    return RecordingDirectory(
        [
            Patient(id=42, first_names="Ana", last_names="Gómez"),
            Patient(id=7, first_names="Luis Fernando", last_names="Pérez"),
            Patient(id=57, first_names="Jorge", last_names="Muñoz López"),
        ],
        failing_ids={7},
    )


def clinic_backend(request: httpx.Request) -> httpx.Response:
    """Clinic backend that returns a list instead of a record for patient 7."""
    if request.url.path == "/pacientes/42":
        return httpx.Response(200, json={"id": 42, "nombres": "Ana", "apellidos": "Gómez"})
    if request.url.path == "/pacientes/7":
        return httpx.Response(200, json=[{"id": 7, "nombres": "Luis Fernando", "apellidos": "Pérez"}])
    return httpx.Response(404)


class BrokenDirectory(InMemoryPatientDirectory):
    """Directory that fails with an unexpected error for patient 7."""

    async def find_by_id(self, patient_id: int) -> Patient | None:
        if patient_id == 7:
            raise RuntimeError("unexpected directory failure")
        return await super().find_by_id(patient_id)


@pytest.fixture
def wired(recording_directory):
    """Manager and projector sharing a store over the recording directory."""
    store = DayPartitionStore()
    resolver = PatientResolver(recording_directory, timeout_seconds=1.0)
    return AppointmentLifecycleManager(store, resolver), AgendaProjector(store, resolver)


class TestDayView:
    """Tests for the enriched day view."""

    @pytest.mark.asyncio
    async def test_empty_day(self, projector):
        """Test that a day without appointments yields an empty view."""
        assert await projector.get_day_view(DOCTOR, DAY) == []

    @pytest.mark.asyncio
    async def test_view_is_time_ordered_with_names(self, manager, projector):
        """Test ordering and name enrichment."""
        await manager.create(DOCTOR, DAY, "11:00", PatientId(57), "Extraction")
        await manager.create(DOCTOR, DAY, "08:30", PatientId(42), "Cleaning")

        view = await projector.get_day_view(DOCTOR, DAY)

        assert [entry.appointment.time_of_day for entry in view] == ["08:30", "11:00"]
        assert [entry.patient_name for entry in view] == ["Ana Gómez", "Jorge Muñoz López"]

    @pytest.mark.asyncio
    async def test_one_lookup_per_distinct_patient(self, wired, recording_directory):
        """Test that shared patients are looked up once."""
        manager, projector = wired
        for time_of_day in ("08:00", "09:00", "10:00"):
            await manager.create(DOCTOR, DAY, time_of_day, PatientId(42), "Orthodontics")
        await manager.create(DOCTOR, DAY, "11:00", PatientId(57), "Checkup")

        await projector.get_day_view(DOCTOR, DAY)

        assert sorted(recording_directory.lookups) == [42, 57]

    @pytest.mark.asyncio
    async def test_failed_lookup_degrades_to_blank_name(self, wired):
        """Test that one unreachable patient does not fail the view."""
        manager, projector = wired
        await manager.create(DOCTOR, DAY, "08:00", PatientId(42), "Cleaning")
        await manager.create(DOCTOR, DAY, "09:00", PatientId(7), "Checkup")

        view = await projector.get_day_view(DOCTOR, DAY)

        assert [entry.patient_name for entry in view] == ["Ana Gómez", None]

    @pytest.mark.asyncio
    async def test_malformed_directory_record_degrades_to_blank_name(self):
        """Test that a malformed record from the clinic backend only costs that name."""
        client = httpx.AsyncClient(base_url="http://clinic.test", transport=httpx.MockTransport(clinic_backend))
        store = DayPartitionStore()
        resolver = PatientResolver(HttpPatientDirectory("http://clinic.test", client=client), timeout_seconds=1.0)
        manager = AppointmentLifecycleManager(store, resolver)
        await manager.create(DOCTOR, DAY, "08:00", PatientId(42), "Cleaning")
        await manager.create(DOCTOR, DAY, "09:00", PatientId(7), "Checkup")

        view = await AgendaProjector(store, resolver).get_day_view(DOCTOR, DAY)
        await client.aclose()

        assert [entry.patient_name for entry in view] == ["Ana Gómez", None]

    @pytest.mark.asyncio
    async def test_unexpected_lookup_error_degrades_to_blank_name(self, store):
        """Test that any lookup error is contained to its own entry."""
        directory = BrokenDirectory(
            [
                Patient(id=42, first_names="Ana", last_names="Gómez"),
                Patient(id=7, first_names="Luis Fernando", last_names="Pérez"),
            ]
        )
        resolver = PatientResolver(directory, timeout_seconds=1.0)
        manager = AppointmentLifecycleManager(store, resolver)
        await manager.create(DOCTOR, DAY, "08:00", PatientId(42), "Cleaning")
        await manager.create(DOCTOR, DAY, "09:00", PatientId(7), "Checkup")

        view = await AgendaProjector(store, resolver).get_day_view(DOCTOR, DAY)

        assert [entry.patient_name for entry in view] == ["Ana Gómez", None]

    @pytest.mark.asyncio
    async def test_unknown_patient_has_no_name(self, manager, projector):
        """Test that a literal id missing from the directory yields no name."""
        await manager.create(DOCTOR, DAY, "08:00", PatientId(9999), "Checkup")

        view = await projector.get_day_view(DOCTOR, DAY)

        assert view[0].patient_name is None
        assert view[0].appointment.patient_id == 9999

    @pytest.mark.asyncio
    async def test_status_filter(self, manager, projector):
        """Test filtering the view by status."""
        first = await manager.create(DOCTOR, DAY, "08:00", PatientId(42), "Cleaning")
        await manager.create(DOCTOR, DAY, "09:00", PatientId(57), "Checkup")
        await manager.update_status(DOCTOR, first.id, AppointmentStatus.CONFIRMED)

        view = await projector.get_day_view(DOCTOR, DAY, status=AppointmentStatus.CONFIRMED)

        assert [entry.appointment.id for entry in view] == [first.id]

    @pytest.mark.asyncio
    async def test_view_is_idempotent(self, manager, projector):
        """Test that repeated reads without writes are identical."""
        await manager.create(DOCTOR, DAY, "10:00", PatientId(42), "Cleaning")
        await manager.create(DOCTOR, DAY, "09:00", PatientId(57), "Checkup")

        assert await projector.get_day_view(DOCTOR, DAY) == await projector.get_day_view(DOCTOR, DAY)


class TestDaySummary:
    """Tests for the day summary counts."""

    @pytest.mark.asyncio
    async def test_summary_excludes_available_placeholders(self, manager, projector):
        """Test that AVAILABLE is counted separately from appointments."""
        confirmed = await manager.create(DOCTOR, DAY, "08:00", PatientId(42), "Cleaning")
        cancelled = await manager.create(DOCTOR, DAY, "09:00", PatientId(57), "Checkup")
        placeholder = await manager.create(DOCTOR, DAY, "10:00", PatientId(42), "Open")
        await manager.create(DOCTOR, DAY, "11:00", PatientId(7), "Checkup")
        await manager.update_status(DOCTOR, confirmed.id, AppointmentStatus.CONFIRMED)
        await manager.cancel(DOCTOR, cancelled.id)
        await manager.update_status(DOCTOR, placeholder.id, AppointmentStatus.AVAILABLE)

        summary = projector.get_day_summary(DOCTOR, DAY)

        assert summary.total == 3
        assert summary.by_status == {"CONFIRMED": 1, "CANCELLED": 1, "NEW": 1}
        assert summary.available_slots == 1
        assert summary.busy_times == ["08:00", "11:00"]

    def test_summary_of_empty_day(self, projector):
        """Test counts for a day with nothing booked."""
        summary = projector.get_day_summary(DOCTOR, DAY)

        assert summary.total == 0
        assert summary.by_status == {}
        assert summary.busy_times == []
