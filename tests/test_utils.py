"""Tests for calendar and text normalization helpers."""

from datetime import date, datetime, time

import pytest

from agenda.utils.calendar import day_key, normalize_time, parse_day
from agenda.utils.text import digits_only, normalize_text


class TestNormalizeTime:
    """Tests for time-of-day normalization."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("09:00", "09:00"),
            ("9:00", "09:00"),
            (" 10:30 ", "10:30"),
            ("10:30:45", "10:30"),
            ("23:59", "23:59"),
            (time(8, 5), "08:05"),
        ],
    )
    def test_normalizes_to_hh_mm(self, raw, expected):
        """Test that accepted forms normalize to zero-padded HH:MM."""
        assert normalize_time(raw) == expected

    @pytest.mark.parametrize("raw", ["", "9", "24:00", "10:60", "ten thirty", "10-30"])
    def test_rejects_invalid_times(self, raw):
        """Test that invalid times raise ValueError."""
        with pytest.raises(ValueError, match="Invalid time of day"):
            normalize_time(raw)


class TestParseDay:
    """Tests for calendar day parsing."""

    def test_parses_iso_day(self):
        """Test ISO yyyy-MM-dd input."""
        assert parse_day("2025-03-10") == date(2025, 3, 10)

    def test_parses_day_key_format(self):
        """Test dd-MM-yyyy day key input."""
        assert parse_day("10-03-2025") == date(2025, 3, 10)

    def test_accepts_date_and_datetime(self):
        """Test that date objects pass through and datetimes lose their time."""
        assert parse_day(date(2025, 3, 10)) == date(2025, 3, 10)
        assert parse_day(datetime(2025, 3, 10, 18, 45)) == date(2025, 3, 10)

    def test_rejects_garbage(self):
        """Test that unparseable days raise ValueError."""
        with pytest.raises(ValueError, match="Invalid calendar day"):
            parse_day("March 10th")

    def test_day_key_is_ordered(self):
        """Test that consecutive days get consecutive keys."""
        assert day_key(date(2025, 3, 11)) - day_key(date(2025, 3, 10)) == 1
        assert day_key(date(2025, 1, 1)) - day_key(date(2024, 12, 31)) == 1


class TestNormalizeText:
    """Tests for patient text normalization."""

    def test_strips_accents_and_case(self):
        """Test accent and case insensitivity."""
        assert normalize_text("Ana GÓMEZ") == normalize_text("ana gomez") == "ana gomez"

    def test_collapses_whitespace(self):
        """Test trimming and inner whitespace collapsing."""
        assert normalize_text("  María   José  ") == "maria jose"

    def test_handles_empty_values(self):
        """Test None and empty strings."""
        assert normalize_text(None) == ""
        assert normalize_text("   ") == ""

    def test_digits_only(self):
        """Test digit extraction from phone numbers."""
        assert digits_only("+502 5555-0142") == "50255550142"
        assert digits_only(None) == ""
