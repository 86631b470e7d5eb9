from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from naricare.application.exceptions import InvalidRoleError, PolicyConfigurationError
from naricare.application.utils.clock import ensure_utc
from naricare.domain.entities.consultation import Consultation, ConsultationStatus, ViewerRole
from naricare.domain.entities.eligibility import JoinEligibility


@dataclass(frozen=True)
class JoinWindow:
    """Closed interval on minutes-until-start; negative means the start has passed."""

    lower: float
    upper: float

    def __post_init__(self) -> None:
        if self.lower > self.upper:
            raise PolicyConfigurationError(f"Join window lower bound {self.lower} exceeds upper bound {self.upper}")

    def contains(self, minutes: float) -> bool:
        return self.lower <= minutes <= self.upper


CLIENT_JOIN_WINDOW = JoinWindow(-30, 15)
EXPERT_JOIN_WINDOW = JoinWindow(-60, 30)
EXPERT_START_WINDOW = JoinWindow(0, 5)

JOIN_WINDOWS: dict[ViewerRole, JoinWindow] = {
    ViewerRole.client: CLIENT_JOIN_WINDOW,
    ViewerRole.expert: EXPERT_JOIN_WINDOW,
}

COMPLETED = JoinEligibility(label="Completed", can_join=False, tone="success")
CANCELLED = JoinEligibility(label="Cancelled", can_join=False, tone="danger")
MISSED = JoinEligibility(label="Missed", can_join=False, tone="danger")
IN_PROGRESS = JoinEligibility(label="In Progress", can_join=False, tone="primary")
JOIN_CALL = JoinEligibility(label="Join Call", can_join=True, tone="primary")
START_CALL = JoinEligibility(label="Start Call", can_join=True, can_start=True, tone="primary")


def parse_role(value: ViewerRole | str | None) -> ViewerRole:
    """Accept a role member or its name. Anything else is a caller bug, never defaulted."""
    if isinstance(value, ViewerRole):
        return value
    if isinstance(value, str):
        try:
            return ViewerRole(value.strip().lower())
        except ValueError:
            pass
    raise InvalidRoleError(f"Unknown viewer role: {value!r}")


def minutes_until(scheduled_at: datetime, now: datetime) -> float:
    return (ensure_utc(scheduled_at) - ensure_utc(now)).total_seconds() / 60


def format_countdown(minutes: float) -> str:
    hours = math.floor(minutes / 60)
    remainder = math.floor(minutes % 60)
    if hours > 0:
        return f"In {hours}h {remainder}m"
    return f"In {remainder}m"


def _countdown(minutes: float) -> JoinEligibility:
    tone = "medium" if minutes >= 60 else "warning"
    return JoinEligibility(label=format_countdown(minutes), can_join=False, tone=tone)


def evaluate_join_eligibility(
    consultation: Consultation,
    now: datetime,
    role: ViewerRole | str,
) -> JoinEligibility:
    """
    Decide whether the viewer may join (or, for the expert, start) the call right now
    and which label to show.

    scheduled_at must be present; records without one are filtered out by the caller.
    """
    viewer = parse_role(role)
    window = JOIN_WINDOWS[viewer]
    status = ConsultationStatus(consultation.status)

    if status is ConsultationStatus.completed:
        return COMPLETED
    if status is ConsultationStatus.cancelled:
        return CANCELLED

    minutes = minutes_until(consultation.scheduled_at, now)

    if status is ConsultationStatus.in_progress:
        if viewer is ViewerRole.expert or window.contains(minutes):
            return JOIN_CALL
        if minutes > window.upper:
            return _countdown(minutes)
        return IN_PROGRESS

    if status is ConsultationStatus.scheduled:
        if window.contains(minutes):
            if viewer is ViewerRole.expert and EXPERT_START_WINDOW.contains(minutes):
                return START_CALL
            return JOIN_CALL
        if minutes > window.upper:
            return _countdown(minutes)
        return MISSED

    raise ValueError(f"Unhandled consultation status: {status!r}")
