"""Shared fixtures for agenda tests."""

import pytest

from agenda.models.patient import Patient
from agenda.services.agenda import AgendaProjector
from agenda.services.appointments import AppointmentLifecycleManager
from agenda.services.day_store import DayPartitionStore
from agenda.services.patients import InMemoryPatientDirectory, PatientResolver


@pytest.fixture
def directory():
    """Directory with a few clinic patients."""
    return InMemoryPatientDirectory(
        [
            Patient(id=42, first_names="Ana", last_names="Gómez", phone="5555-0142", id_document="3012456780101"),
            Patient(id=7, first_names="Luis Fernando", last_names="Pérez", phone="5555-0107"),
            Patient(id=57, first_names="Jorge", last_names="Muñoz López", phone="5555-0157"),
        ]
    )


@pytest.fixture
def store():
    """Empty day partition store."""
    return DayPartitionStore()


@pytest.fixture
def resolver(directory):
    """Resolver over the test directory."""
    return PatientResolver(directory, timeout_seconds=1.0)


@pytest.fixture
def manager(store, resolver):
    """Lifecycle manager writing to the test store."""
    return AppointmentLifecycleManager(store, resolver)


@pytest.fixture
def projector(store, resolver):
    """Agenda projector reading the test store."""
    return AgendaProjector(store, resolver)
