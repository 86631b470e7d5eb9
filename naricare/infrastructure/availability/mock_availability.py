from __future__ import annotations

import logging
from datetime import date

from naricare.application.ports.availability import AvailabilityProviderPort
from naricare.domain.entities.availability import AvailabilityRange


def _backend_weekday(on_date: date) -> int:
    # backend stores day_of_week with Sunday = 0
    return (on_date.weekday() + 1) % 7


class MockAvailabilityProvider(AvailabilityProviderPort):
    def __init__(self, schedules: dict[str, list[AvailabilityRange]] | None = None) -> None:
        self._schedules: dict[str, list[AvailabilityRange]] = dict(schedules or {})
        self._logger = logging.getLogger(__name__)

    def set_schedule(self, provider_id: str, ranges: list[AvailabilityRange]) -> None:
        self._schedules[provider_id] = list(ranges)

    def fetch_availability(self, provider_id: str, on_date: date) -> list[AvailabilityRange] | None:
        schedule = self._schedules.get(provider_id)
        if schedule is None:
            self._logger.info("No mock availability for provider", extra={"reason": provider_id})
            return None
        weekday = _backend_weekday(on_date)
        return [r for r in schedule if r.day_of_week is None or r.day_of_week == weekday]
