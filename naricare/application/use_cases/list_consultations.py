from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from naricare.application.exceptions import ConsultationStoreError
from naricare.application.ports.consultation_store import ConsultationStorePort
from naricare.application.utils.lifecycle import classify_consultations
from naricare.application.utils.time_window import evaluate_join_eligibility, parse_role
from naricare.domain.entities.buckets import ConsultationBuckets
from naricare.domain.entities.consultation import ConsultationStatus, ViewerRole
from naricare.domain.entities.eligibility import JoinEligibility

LOAD_ERROR_MESSAGE = "Unable to load consultations. Please try again."


@dataclass(frozen=True)
class ConsultationOverview:
    role: ViewerRole
    evaluated_at: datetime
    buckets: ConsultationBuckets
    eligibility: dict[str, JoinEligibility] = field(default_factory=dict)
    error: str | None = None


class ListConsultationsUseCase:
    def __init__(self, store: ConsultationStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    def execute(self, viewer_id: str, role: ViewerRole | str, now: datetime) -> ConsultationOverview:
        """
        Fetch a fresh snapshot and classify it at `now`.
        Called again after every status change; results are never patched in place.
        """
        viewer = parse_role(role)
        try:
            consultations = self._store.fetch_for_viewer(viewer_id, viewer)
        except ConsultationStoreError as e:
            self._logger.error("Error loading consultations", extra={"role": viewer.value, "error": str(e)})
            return ConsultationOverview(
                role=viewer,
                evaluated_at=now,
                buckets=ConsultationBuckets(),
                error=LOAD_ERROR_MESSAGE,
            )

        buckets = classify_consultations(consultations, now)
        for consultation in buckets.malformed:
            self._logger.warning(
                "Consultation has no usable scheduled time",
                extra={"consultation_id": consultation.id, "status": ConsultationStatus(consultation.status).value},
            )

        eligibility = {
            consultation.id: evaluate_join_eligibility(consultation, now, viewer)
            for consultation in buckets.upcoming
        }
        self._logger.info("Consultations classified", extra={"role": viewer.value, "counts": buckets.counts()})
        return ConsultationOverview(role=viewer, evaluated_at=now, buckets=buckets, eligibility=eligibility)
