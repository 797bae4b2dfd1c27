"""Service configuration."""

import os
from dataclasses import dataclass, field


@dataclass
class AgendaConfig:
    """Configuration for the agenda service."""

    # Clinic backend serving /pacientes; unset means the in-memory directory
    patient_directory_url: str | None = None
    patient_directory_timeout: float = 5.0
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "AgendaConfig":
        """Build configuration from environment variables."""
        timeout = os.getenv("PATIENT_DIRECTORY_TIMEOUT")
        try:
            directory_timeout = float(timeout) if timeout else cls.patient_directory_timeout
        except ValueError as e:
            raise ValueError(f"PATIENT_DIRECTORY_TIMEOUT must be a number of seconds, got {timeout!r}") from e

        if directory_timeout <= 0:
            raise ValueError("PATIENT_DIRECTORY_TIMEOUT must be positive")

        return cls(
            patient_directory_url=os.getenv("PATIENT_DIRECTORY_URL") or None,
            patient_directory_timeout=directory_timeout,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS")),
        )


def _split_origins(value: str | None) -> list[str]:
    """Parse a comma-separated origin list; unset allows any origin."""
    origins = [origin.strip() for origin in (value or "").split(",") if origin.strip()]
    return origins or ["*"]
