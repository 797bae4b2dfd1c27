"""Patient directory interface, in-memory directory and reference resolution."""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import ClassVar, Protocol, TypeVar

from agenda.exceptions import DirectoryUnavailable, PatientNotFound
from agenda.models.appointment import PatientId, PatientRef
from agenda.models.patient import Patient
from agenda.utils.logging import get_logger
from agenda.utils.text import digits_only, normalize_text

logger = get_logger(__name__)

T = TypeVar("T")


class PatientDirectory(Protocol):
    """Interface for the clinic's patient system of record.

    Implementations:
    - InMemoryPatientDirectory: seeded patients for development and tests
    - HttpPatientDirectory: the clinic backend's patient endpoints
    """

    async def find_by_id(self, patient_id: int) -> Patient | None:
        """Get a patient by id.

        Args:
            patient_id: Canonical patient id

        Returns:
            The patient, or None if no patient has that id
        """
        ...

    async def search_by_text(self, query: str) -> list[Patient]:
        """Search patients by name, phone or id document fragment.

        Args:
            query: Free text typed by the receptionist

        Returns:
            Ordered list of candidate patients
        """
        ...

    async def aclose(self) -> None:
        """Release any held connections."""
        ...


class InMemoryPatientDirectory:
    """In-memory patient directory.

    Searching matches the query as a fragment of the full name, id document
    or phone, ignoring case and accents.
    """

    DEMO_PATIENTS: ClassVar[list[Patient]] = [
        Patient(id=7, first_names="Luis Fernando", last_names="Pérez", phone="5555-0107", id_document="1987654320101"),
        Patient(id=12, first_names="María José", last_names="Castillo", phone="5555-0112", id_document="2456789010101"),
        Patient(id=42, first_names="Ana", last_names="Gómez", phone="5555-0142", id_document="3012456780101"),
        Patient(id=57, first_names="Jorge", last_names="Muñoz López", phone="5555-0157", id_document="2876543210101"),
    ]

    def __init__(self, patients: Iterable[Patient] | None = None):
        """Initialize with the given patients, or the demo patients."""
        source = self.DEMO_PATIENTS if patients is None else patients
        self.patients: dict[int, Patient] = {patient.id: patient for patient in source}

    async def find_by_id(self, patient_id: int) -> Patient | None:
        """Get a patient by id."""
        return self.patients.get(patient_id)

    async def search_by_text(self, query: str) -> list[Patient]:
        """Search patients by text fragment."""
        needle = normalize_text(query)
        if not needle:
            return []

        return [
            patient
            for patient in self.patients.values()
            if needle in normalize_text(patient.full_name)
            or needle in normalize_text(patient.id_document)
            or needle in normalize_text(patient.phone)
        ]

    async def aclose(self) -> None:
        """Nothing to release."""


class PatientResolver:
    """Resolves patient references to canonical ids.

    Every directory call is bounded by ``timeout_seconds``; a slow directory
    surfaces as DirectoryUnavailable instead of a hung request.
    """

    def __init__(self, directory: PatientDirectory, timeout_seconds: float = 5.0):
        """Initialize resolver.

        Args:
            directory: Patient system of record
            timeout_seconds: Upper bound for each directory call
        """
        self.directory = directory
        self.timeout_seconds = timeout_seconds

    async def resolve(self, ref: PatientRef) -> int:
        """Resolve a patient reference to a canonical patient id.

        Canonical ids are returned as-is with no directory call. Text is
        matched against the normalized full name of each candidate; when no
        name matches, an exact id document or phone match is accepted if it
        points at a single patient.

        Raises:
            PatientNotFound: If no patient matches the text
            DirectoryUnavailable: If the directory fails or times out
        """
        if isinstance(ref, PatientId):
            return ref.id

        wanted = normalize_text(ref.text)
        if not wanted:
            raise PatientNotFound(ref.text)

        candidates = await self._bounded(self.directory.search_by_text(ref.text), f"search {ref.text!r}")

        for patient in candidates:
            if normalize_text(patient.full_name) == wanted:
                logger.info(f"Resolved patient reference {ref.text!r} to {patient.id}")
                return patient.id

        wanted_digits = digits_only(ref.text)
        exact = {
            patient.id
            for patient in candidates
            if (patient.id_document and normalize_text(patient.id_document) == wanted)
            or (wanted_digits and digits_only(patient.phone) == wanted_digits)
        }
        if len(exact) == 1:
            patient_id = exact.pop()
            logger.info(f"Resolved patient reference {ref.text!r} to {patient_id} by document or phone")
            return patient_id

        logger.warning(f"Patient reference {ref.text!r} did not resolve ({len(candidates)} candidates)")
        raise PatientNotFound(ref.text)

    async def find_patient(self, patient_id: int) -> Patient | None:
        """Get a patient by id within the directory timeout.

        Raises:
            DirectoryUnavailable: If the directory fails or times out
        """
        return await self._bounded(self.directory.find_by_id(patient_id), f"lookup {patient_id}")

    async def _bounded(self, call: Awaitable[T], what: str) -> T:
        """Await a directory call with the configured timeout."""
        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await call
        except TimeoutError as e:
            logger.warning(f"Patient directory timed out after {self.timeout_seconds}s ({what})")
            raise DirectoryUnavailable(f"Patient directory timed out ({what})") from e
