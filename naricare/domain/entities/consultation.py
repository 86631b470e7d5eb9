from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ConsultationStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in-progress"
    completed = "completed"
    cancelled = "cancelled"


ALLOWED_TRANSITIONS: dict[ConsultationStatus, frozenset[ConsultationStatus]] = {
    ConsultationStatus.scheduled: frozenset({ConsultationStatus.in_progress, ConsultationStatus.cancelled}),
    ConsultationStatus.in_progress: frozenset({ConsultationStatus.completed, ConsultationStatus.cancelled}),
    ConsultationStatus.completed: frozenset(),
    ConsultationStatus.cancelled: frozenset(),
}


def can_transition(current: ConsultationStatus, target: ConsultationStatus) -> bool:
    """Forward-only lifecycle check. Same-status is not a transition."""
    return target in ALLOWED_TRANSITIONS[current]


class ViewerRole(str, Enum):
    client = "client"
    expert = "expert"


@dataclass(frozen=True)
class Consultation:
    id: str
    status: ConsultationStatus = ConsultationStatus.scheduled
    scheduled_at: datetime | None = None  # UTC; None marks a malformed record
    user_id: str | None = None
    expert_id: str | None = None
    duration_minutes: int = 30
    consultation_type: str = "scheduled"  # "scheduled", "on-demand"
    topic: str | None = None
    notes: str | None = None
    meeting_link: str | None = None
    follow_up_required: bool = False
    reminder_sent: bool = False

    @property
    def has_meeting_link(self) -> bool:
        return bool(self.meeting_link and self.meeting_link.strip())

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[ConsultationStatus(self.status)]


@dataclass(frozen=True)
class ConsultationDraft:
    user_id: str
    expert_id: str
    scheduled_at: datetime
    duration_minutes: int = 30
    topic: str | None = None
    notes: str | None = None
    consultation_type: str = "scheduled"
