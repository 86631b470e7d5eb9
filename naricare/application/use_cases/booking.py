from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from naricare.application.exceptions import ConsultationConflictError, ConsultationStoreError
from naricare.application.ports.availability import AvailabilityProviderPort
from naricare.application.ports.consultation_store import ConsultationStorePort
from naricare.application.utils.clock import ensure_utc
from naricare.application.utils.conflicts import EXPERT_UNAVAILABLE_MESSAGE
from naricare.application.utils.time_slots import SLOT_DURATION_MINUTES, derive_time_slots
from naricare.domain.entities.availability import AvailabilityRange
from naricare.domain.entities.consultation import Consultation, ConsultationDraft


@dataclass(frozen=True)
class BookingResult:
    action: str  # "booked", "in_past", "conflict", "unavailable"
    consultation: Consultation | None = None
    message: str | None = None


class BookConsultationUseCase:
    def __init__(
        self,
        store: ConsultationStorePort,
        availability: AvailabilityProviderPort,
        slot_minutes: int = SLOT_DURATION_MINUTES,
    ) -> None:
        self._store = store
        self._availability = availability
        self._slot_minutes = slot_minutes
        self._logger = logging.getLogger(__name__)

    def available_slots(self, expert_id: str, on_date: date) -> list[str]:
        """Bookable slots for one expert and date; falls back to the default catalogue on failure."""
        ranges: list[AvailabilityRange] | None
        try:
            ranges = self._availability.fetch_availability(expert_id, on_date)
        except Exception as e:
            self._logger.error("Error loading expert availability", extra={"error": str(e)})
            ranges = None
        if ranges is None:
            self._logger.info("Using default time slots", extra={"reason": "availability unavailable"})
        return derive_time_slots(ranges, self._slot_minutes)

    def book(self, draft: ConsultationDraft, now: datetime) -> BookingResult:
        if ensure_utc(draft.scheduled_at) <= ensure_utc(now):
            return BookingResult(action="in_past", message="Please choose a time in the future.")

        # create() rejects double bookings with ConsultationConflictError
        try:
            consultation = self._store.create(draft)
        except ConsultationConflictError as e:
            self._logger.info("Booking conflicts with existing consultation", extra={"reason": str(e)})
            return BookingResult(action="conflict", message=EXPERT_UNAVAILABLE_MESSAGE)
        except ConsultationStoreError as e:
            self._logger.error("Error creating consultation", extra={"error": str(e)})
            return BookingResult(action="unavailable", message="Failed to book consultation. Please try again.")

        self._logger.info("Consultation booked", extra={"consultation_id": consultation.id})
        return BookingResult(action="booked", consultation=consultation)
