from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from naricare.application.exceptions import PolicyConfigurationError
from naricare.domain.entities.availability import AvailabilityRange

SLOT_DURATION_MINUTES = 30

_WALL_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

logger = logging.getLogger(__name__)


def parse_wall_clock(value: str) -> int:
    """Minutes after midnight for "HH:mm" (or "HH:mm:ss" as SQL TIME columns return it)."""
    match = _WALL_CLOCK.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid wall-clock time: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid wall-clock time: {value!r}")
    return hours * 60 + minutes


def format_wall_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_slot(start_minutes: int, slot_minutes: int = SLOT_DURATION_MINUTES) -> str:
    return f"{format_wall_clock(start_minutes)} - {format_wall_clock(start_minutes + slot_minutes)}"


def _build_default_catalog() -> tuple[str, ...]:
    starts = ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
              "14:00", "14:30", "15:00", "15:30", "16:00", "16:30",
              "17:00", "17:30", "18:00", "18:30"]
    return tuple(sorted(format_slot(parse_wall_clock(start)) for start in starts))


# Served when a provider publishes no availability or the fetch failed.
DEFAULT_SLOT_CATALOG: tuple[str, ...] = _build_default_catalog()


def slots_for_range(availability: AvailabilityRange, slot_minutes: int = SLOT_DURATION_MINUTES) -> list[str]:
    if slot_minutes <= 0:
        raise PolicyConfigurationError(f"Slot duration must be positive, got {slot_minutes}")
    if not availability.is_available:
        return []

    start = parse_wall_clock(availability.start_time)
    end = parse_wall_clock(availability.end_time)

    slots: list[str] = []
    cursor = start
    while cursor + slot_minutes <= end:
        slots.append(format_slot(cursor, slot_minutes))
        cursor += slot_minutes
    return slots


def derive_time_slots(
    ranges: Iterable[AvailabilityRange] | None,
    slot_minutes: int = SLOT_DURATION_MINUTES,
) -> list[str]:
    """
    Turn a provider's availability ranges for one date into sorted, de-duplicated
    "HH:mm - HH:mm" slots. A partial trailing slot is dropped.

    None (fetch failed) or no available range falls back to DEFAULT_SLOT_CATALOG.
    """
    if slot_minutes <= 0:
        raise PolicyConfigurationError(f"Slot duration must be positive, got {slot_minutes}")

    available = [r for r in (ranges or []) if r.is_available]
    if not available:
        return list(DEFAULT_SLOT_CATALOG)

    slots: set[str] = set()
    for availability in available:
        try:
            slots.update(slots_for_range(availability, slot_minutes))
        except ValueError as e:
            logger.warning(
                "Skipping malformed availability range",
                extra={"reason": str(e), "start_time": availability.start_time, "end_time": availability.end_time},
            )
    return sorted(slots)
