"""Patient data models."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Patient:
    """Patient identity as supplied by the patient directory."""

    id: int
    first_names: str
    last_names: str = ""
    phone: str | None = None
    id_document: str | None = None

    @property
    def full_name(self) -> str:
        """Display name: first names followed by last names."""
        return " ".join(part for part in (self.first_names.strip(), self.last_names.strip()) if part)

    @classmethod
    def from_directory_row(cls, row: dict[str, Any]) -> "Patient":
        """Build a patient from a directory JSON row.

        Accepts both the singular (``nombre``/``apellido``/``identificacion``)
        and plural (``nombres``/``apellidos``/``dpi``) field spellings used by
        the clinic's patient records.

        Raises:
            TypeError: If the row is not an object or a text field is not a string
            ValueError: If the row has no usable patient id
        """
        if not isinstance(row, dict):
            raise TypeError(f"Directory row must be an object, got {type(row).__name__}")
        if row.get("id") is None:
            raise ValueError("Directory row has no patient id")

        return cls(
            id=int(row["id"]),
            first_names=_text_field(row, "nombres", "nombre") or "",
            last_names=_text_field(row, "apellidos", "apellido") or "",
            phone=_text_field(row, "telefono"),
            id_document=_text_field(row, "dpi", "identificacion"),
        )


def _text_field(row: dict[str, Any], *keys: str) -> str | None:
    """First non-empty value among keys. Numbers are kept as text."""
    for key in keys:
        value = row.get(key)
        if not value:
            continue
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if not isinstance(value, str):
            raise TypeError(f"Directory field {key!r} must be a string, got {type(value).__name__}")
        return value
    return None
