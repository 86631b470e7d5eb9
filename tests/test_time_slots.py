"""
Tests for turning availability ranges into bookable 30-minute slots.
"""

from __future__ import annotations

import pytest

from naricare.application.exceptions import PolicyConfigurationError
from naricare.application.utils.time_slots import (
    DEFAULT_SLOT_CATALOG,
    derive_time_slots,
    parse_wall_clock,
)
from naricare.domain.entities.availability import AvailabilityRange


def test_one_hour_range_gives_two_slots():
    """14:00-15:00 yields exactly two half-hour slots."""
    assert derive_time_slots([AvailabilityRange("14:00", "15:00", True)]) == ["14:00 - 14:30", "14:30 - 15:00"]


def test_partial_trailing_slot_is_dropped():
    """A range shorter than a slot yields nothing, and leftovers are cut."""
    assert derive_time_slots([AvailabilityRange("14:00", "14:20", True)]) == []
    assert derive_time_slots([AvailabilityRange("09:00", "10:10", True)]) == ["09:00 - 09:30", "09:30 - 10:00"]


def test_empty_range_emits_nothing():
    """start == end produces no slots."""
    assert derive_time_slots([AvailabilityRange("10:00", "10:00", True)]) == []


def test_overlapping_ranges_are_deduplicated_and_sorted():
    """Slots from several ranges are merged into one sorted list without duplicates."""
    ranges = [
        AvailabilityRange("15:00", "16:00"),
        AvailabilityRange("09:00", "10:00"),
        AvailabilityRange("15:30", "16:30"),
        AvailabilityRange("11:00", "12:00", is_available=False),
    ]
    assert derive_time_slots(ranges) == [
        "09:00 - 09:30",
        "09:30 - 10:00",
        "15:00 - 15:30",
        "15:30 - 16:00",
        "16:00 - 16:30",
    ]


def test_fallback_catalog_when_nothing_available():
    """None, an empty list or only unavailable ranges give the default catalogue."""
    expected = list(DEFAULT_SLOT_CATALOG)
    assert expected
    assert expected == sorted(expected)
    assert derive_time_slots(None) == expected
    assert derive_time_slots([]) == expected
    assert derive_time_slots([AvailabilityRange("09:00", "12:00", is_available=False)]) == expected
    assert "09:00 - 09:30" in expected
    assert "18:30 - 19:00" in expected


def test_sql_time_format_is_accepted():
    """HH:mm:ss values from TIME columns are read as HH:mm."""
    assert derive_time_slots([AvailabilityRange("14:00:00", "15:00:00")]) == ["14:00 - 14:30", "14:30 - 15:00"]


def test_malformed_range_is_skipped():
    """An unreadable range is ignored while valid ranges still produce slots."""
    ranges = [AvailabilityRange("soon", "later"), AvailabilityRange("08:00", "08:30")]
    assert derive_time_slots(ranges) == ["08:00 - 08:30"]


def test_midnight_spanning_range_emits_nothing():
    """End before start is not supported and yields no slots."""
    assert derive_time_slots([AvailabilityRange("23:00", "01:00")]) == []


def test_custom_slot_length_and_bad_configuration():
    """Other slot lengths work; non-positive ones are rejected."""
    assert derive_time_slots([AvailabilityRange("10:00", "11:00")], slot_minutes=60) == ["10:00 - 11:00"]
    with pytest.raises(PolicyConfigurationError):
        derive_time_slots([AvailabilityRange("10:00", "11:00")], slot_minutes=0)
    with pytest.raises(PolicyConfigurationError):
        derive_time_slots(None, slot_minutes=-30)


def test_parse_wall_clock_rejects_out_of_range_values():
    """Hours above 23 or minutes above 59 are invalid."""
    assert parse_wall_clock("7:05") == 425
    with pytest.raises(ValueError):
        parse_wall_clock("24:00")
    with pytest.raises(ValueError):
        parse_wall_clock("12:60")
