from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from naricare.application.utils.clock import ensure_utc
from naricare.domain.entities.consultation import Consultation, ConsultationStatus

# An expert cannot hold two active consultations closer together than this.
CONFLICT_WINDOW = timedelta(minutes=30)

ACTIVE_STATUSES = (ConsultationStatus.scheduled, ConsultationStatus.in_progress)

EXPERT_UNAVAILABLE_MESSAGE = "Expert is not available at this time"


def find_conflict(
    consultations: Iterable[Consultation],
    expert_id: str,
    scheduled_at: datetime,
) -> Consultation | None:
    """Return the first active consultation of this expert less than CONFLICT_WINDOW away."""
    requested = ensure_utc(scheduled_at)
    for existing in consultations:
        if existing.expert_id != expert_id or existing.scheduled_at is None:
            continue
        if ConsultationStatus(existing.status) not in ACTIVE_STATUSES:
            continue
        if abs(ensure_utc(existing.scheduled_at) - requested) < CONFLICT_WINDOW:
            return existing
    return None
