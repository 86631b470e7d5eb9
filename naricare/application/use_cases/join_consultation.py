from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from naricare.application.exceptions import (
    ConsultationNotFoundError,
    ConsultationStoreError,
    InvalidStatusTransitionError,
)
from naricare.application.use_cases.manage_consultation import ConsultationLifecycleUseCase
from naricare.application.utils.time_window import evaluate_join_eligibility, parse_role
from naricare.domain.entities.consultation import Consultation, ConsultationStatus, ViewerRole
from naricare.domain.entities.eligibility import JoinEligibility


@dataclass(frozen=True)
class JoinResult:
    action: str  # "not_found", "not_eligible", "no_meeting_link", "joined", "started", "unavailable"
    consultation: Consultation | None = None
    eligibility: JoinEligibility | None = None
    meeting_link: str | None = None


class JoinConsultationUseCase:
    def __init__(self, lifecycle: ConsultationLifecycleUseCase) -> None:
        self._lifecycle = lifecycle
        self._logger = logging.getLogger(__name__)

    def execute(self, consultation_id: str, role: ViewerRole | str, now: datetime) -> JoinResult:
        viewer = parse_role(role)
        try:
            consultation = self._lifecycle.load(consultation_id)
        except ConsultationNotFoundError:
            return JoinResult(action="not_found")

        if consultation.scheduled_at is None:
            self._logger.warning("Join refused for malformed consultation", extra={"consultation_id": consultation_id})
            return JoinResult(action="not_eligible", consultation=consultation)

        eligibility = evaluate_join_eligibility(consultation, now, viewer)
        if not eligibility.can_join:
            return JoinResult(action="not_eligible", consultation=consultation, eligibility=eligibility)

        if not consultation.has_meeting_link:
            self._logger.warning("Meeting link not available", extra={"consultation_id": consultation_id})
            return JoinResult(action="no_meeting_link", consultation=consultation, eligibility=eligibility)

        action = "joined"
        # only the start sub-window moves a scheduled call to in-progress
        if eligibility.can_start and ConsultationStatus(consultation.status) is ConsultationStatus.scheduled:
            try:
                consultation = self._lifecycle.start(consultation_id)
            except (ConsultationStoreError, InvalidStatusTransitionError) as e:
                self._logger.error(
                    "Error marking consultation in-progress",
                    extra={"consultation_id": consultation_id, "error": str(e)},
                )
                return JoinResult(action="unavailable", consultation=consultation, eligibility=eligibility)
            action = "started"

        self._logger.info(
            "Consultation joined",
            extra={"consultation_id": consultation_id, "role": viewer.value, "action": action},
        )
        return JoinResult(
            action=action,
            consultation=consultation,
            eligibility=eligibility,
            meeting_link=consultation.meeting_link,
        )
