from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from naricare.domain.entities.availability import AvailabilityRange


class AvailabilityProviderPort(ABC):
    @abstractmethod
    def fetch_availability(self, provider_id: str, on_date: date) -> list[AvailabilityRange] | None:
        """Availability ranges for one date. None when the lookup failed."""
        raise NotImplementedError
