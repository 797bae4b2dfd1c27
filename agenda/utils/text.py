"""Text normalization used for patient matching."""

import unicodedata


def normalize_text(value: str | None) -> str:
    """Trim, case-fold, strip diacritics and collapse inner whitespace.

    ``"  Ana  GÓMEZ "`` and ``"ana gomez"`` normalize to the same string.
    """
    if not value:
        return ""

    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.casefold().split())


def digits_only(value: str | None) -> str:
    """Keep only the digits of a phone number or document."""
    return "".join(filter(str.isdigit, value or ""))
