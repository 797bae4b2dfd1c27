"""Scheduling services and their wiring."""

from dataclasses import dataclass

from agenda.clients.patient_directory import HttpPatientDirectory
from agenda.config import AgendaConfig
from agenda.services.agenda import AgendaProjector
from agenda.services.appointments import AppointmentLifecycleManager
from agenda.services.day_store import DayPartitionStore
from agenda.services.patients import InMemoryPatientDirectory, PatientDirectory, PatientResolver
from agenda.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AgendaServices:
    """One explicitly owned set of scheduling services."""

    store: DayPartitionStore
    directory: PatientDirectory
    resolver: PatientResolver
    appointments: AppointmentLifecycleManager
    projector: AgendaProjector

    @classmethod
    def build(cls, config: AgendaConfig | None = None, directory: PatientDirectory | None = None) -> "AgendaServices":
        """Wire a fresh store, resolver, lifecycle manager and projector.

        Args:
            config: Service configuration, read from the environment if omitted
            directory: Patient directory to use instead of the configured one
        """
        config = config or AgendaConfig.from_env()

        if directory is None:
            if config.patient_directory_url:
                logger.info(f"Using patient directory at {config.patient_directory_url}")
                directory = HttpPatientDirectory(
                    config.patient_directory_url,
                    timeout_seconds=config.patient_directory_timeout,
                )
            else:
                logger.info("Using in-memory patient directory")
                directory = InMemoryPatientDirectory()

        store = DayPartitionStore()
        resolver = PatientResolver(directory, timeout_seconds=config.patient_directory_timeout)
        return cls(
            store=store,
            directory=directory,
            resolver=resolver,
            appointments=AppointmentLifecycleManager(store, resolver),
            projector=AgendaProjector(store, resolver),
        )

    async def aclose(self) -> None:
        """Release the directory and drop stored appointments."""
        await self.directory.aclose()
        self.store.clear()
