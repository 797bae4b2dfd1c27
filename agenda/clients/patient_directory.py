"""HTTP client for the clinic backend's patient endpoints."""

from typing import Any

import httpx

from agenda.exceptions import DirectoryUnavailable
from agenda.models.patient import Patient
from agenda.utils.logging import get_logger

logger = get_logger(__name__)


class HttpPatientDirectory:
    """Patient directory backed by the clinic backend.

    Uses ``GET /pacientes/{id}`` for lookups and ``GET /pacientes?q=`` for
    text search. Transport errors, timeouts and 5xx responses surface as
    DirectoryUnavailable, and so do malformed records. A 404 or an empty
    body on lookup means the patient does not exist.
    """

    def __init__(self, base_url: str, timeout_seconds: float = 5.0, client: httpx.AsyncClient | None = None):
        """Initialize directory client.

        Args:
            base_url: Clinic backend root, e.g. ``http://localhost:3000``
            timeout_seconds: Per-request timeout
            client: Preconfigured client, mainly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout_seconds)

    async def find_by_id(self, patient_id: int) -> Patient | None:
        """Get a patient by id."""
        response = await self._get(f"/pacientes/{patient_id}")
        if response.status_code == 404 or not response.content.strip():
            return None

        payload = self._json(response)
        if not payload:
            return None
        try:
            return Patient.from_directory_row(payload)
        except (TypeError, AttributeError, ValueError) as e:
            logger.warning(f"Malformed patient record for {patient_id} from directory: {e}")
            raise DirectoryUnavailable(f"Patient directory returned a malformed record for {patient_id}") from e

    async def search_by_text(self, query: str) -> list[Patient]:
        """Search patients by text fragment."""
        response = await self._get("/pacientes", params={"q": query})
        if response.status_code == 404:
            return []

        payload = self._json(response) or []

        patients = []
        for row in payload:
            try:
                patients.append(Patient.from_directory_row(row))
            except (TypeError, AttributeError, ValueError) as e:
                logger.warning(f"Skipping malformed patient row from directory: {e}")
        return patients

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Patient directory request {path} failed: {e}")
            raise DirectoryUnavailable(f"Patient directory request failed: {e}") from e

        if response.status_code >= 500:
            logger.warning(f"Patient directory returned {response.status_code} for {path}")
            raise DirectoryUnavailable(f"Patient directory returned {response.status_code}")
        if response.status_code != 404:
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise DirectoryUnavailable(f"Patient directory rejected request: {e}") from e
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DirectoryUnavailable("Patient directory returned invalid JSON") from e
