"""Read-side projection of a practitioner's day."""

import asyncio
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from agenda.exceptions import DirectoryUnavailable
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.services.conflicts import occupied_times
from agenda.services.day_store import DayPartitionStore
from agenda.services.patients import PatientResolver
from agenda.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AgendaEntry:
    """An appointment enriched with the patient's display name."""

    appointment: Appointment
    patient_name: str | None = None


@dataclass(frozen=True)
class DaySummary:
    """Appointment counts for one practitioner's day."""

    practitioner_id: str
    day: date
    total: int
    by_status: dict[str, int] = field(default_factory=dict)
    available_slots: int = 0
    busy_times: list[str] = field(default_factory=list)


class AgendaProjector:
    """Builds day views for presentation. Never writes."""

    def __init__(self, store: DayPartitionStore, resolver: PatientResolver):
        """Initialize with the store to read and the resolver for names."""
        self.store = store
        self.resolver = resolver

    async def get_day_view(
        self,
        practitioner_id: str,
        day: date,
        status: AppointmentStatus | None = None,
    ) -> list[AgendaEntry]:
        """Get a day's appointments in time order with patient names.

        Names are fetched once per distinct patient. A patient that cannot be
        fetched gets no name; the rest of the view is unaffected.

        Args:
            practitioner_id: Calendar owner
            day: Calendar day
            status: Only include appointments in this status

        Returns:
            Time-ordered agenda entries
        """
        partition = self.store.get_day(practitioner_id, day)
        if status is not None:
            partition = tuple(apt for apt in partition if apt.status == status)

        names = await self._display_names(apt.patient_id for apt in partition)
        return [AgendaEntry(appointment=apt, patient_name=names.get(apt.patient_id)) for apt in partition]

    def get_day_summary(self, practitioner_id: str, day: date) -> DaySummary:
        """Count a day's appointments by status.

        AVAILABLE placeholders are reported separately and are not part of
        the total.
        """
        partition = self.store.get_day(practitioner_id, day)
        counts = Counter(apt.status.value for apt in partition if apt.status != AppointmentStatus.AVAILABLE)

        return DaySummary(
            practitioner_id=practitioner_id,
            day=day,
            total=sum(counts.values()),
            by_status=dict(counts),
            available_slots=sum(1 for apt in partition if apt.status == AppointmentStatus.AVAILABLE),
            busy_times=sorted(occupied_times(partition)),
        )

    async def _display_names(self, patient_ids: Iterable[int]) -> dict[int, str | None]:
        unique_ids = sorted(set(patient_ids))
        if not unique_ids:
            return {}

        names = await asyncio.gather(*(self.display_name(patient_id) for patient_id in unique_ids))
        return dict(zip(unique_ids, names, strict=True))

    async def display_name(self, patient_id: int) -> str | None:
        """Get a patient's display name, or None if it cannot be fetched.

        Never raises: a failed lookup only costs the name.
        """
        try:
            patient = await self.resolver.find_patient(patient_id)
            name = patient.full_name if patient is not None else None
        except DirectoryUnavailable as e:
            logger.warning(f"Could not fetch name for patient {patient_id}: {e}")
            return None
        except Exception as e:
            logger.warning(f"Unexpected error fetching name for patient {patient_id}: {e!r}")
            return None

        if patient is None:
            logger.warning(f"Patient {patient_id} not found in directory")
        return name or None
