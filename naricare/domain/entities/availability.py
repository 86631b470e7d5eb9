from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AvailabilityRange:
    start_time: str  # "HH:mm" wall clock, same day as end_time
    end_time: str
    is_available: bool = True
    day_of_week: int | None = None  # 0 = Sunday, as stored by the backend
