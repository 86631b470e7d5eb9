from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import fields as dataclass_fields, replace
from typing import Any

from naricare.application.exceptions import ConsultationConflictError
from naricare.application.ports.consultation_store import ConsultationStorePort
from naricare.application.utils.conflicts import EXPERT_UNAVAILABLE_MESSAGE, find_conflict
from naricare.domain.entities.consultation import (
    Consultation,
    ConsultationDraft,
    ConsultationStatus,
    ViewerRole,
    can_transition,
)

_CONSULTATION_FIELDS = {f.name for f in dataclass_fields(Consultation)}


class MemoryConsultationStore(ConsultationStorePort):
    def __init__(
        self,
        consultations: list[Consultation] | None = None,
        meeting_base_url: str = "https://meet.jit.si",
    ) -> None:
        self._consultations: dict[str, Consultation] = {c.id: c for c in consultations or []}
        # fields the backend keeps but the Consultation snapshot does not carry
        self._extra: dict[str, dict[str, Any]] = {}
        self._meeting_base_url = meeting_base_url.rstrip("/")
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def fetch_for_viewer(self, viewer_id: str, role: ViewerRole) -> list[Consultation]:
        with self._lock:
            if role is ViewerRole.expert:
                return [c for c in self._consultations.values() if c.expert_id == viewer_id]
            return [c for c in self._consultations.values() if c.user_id == viewer_id]

    def get(self, consultation_id: str) -> Consultation | None:
        with self._lock:
            return self._consultations.get(consultation_id)

    def create(self, draft: ConsultationDraft) -> Consultation:
        consultation_id = str(uuid.uuid4())
        consultation = Consultation(
            id=consultation_id,
            status=ConsultationStatus.scheduled,
            scheduled_at=draft.scheduled_at,
            user_id=draft.user_id,
            expert_id=draft.expert_id,
            duration_minutes=draft.duration_minutes,
            consultation_type=draft.consultation_type,
            topic=draft.topic,
            notes=draft.notes,
            meeting_link=f"{self._meeting_base_url}/naricare-consultation-{consultation_id}",
        )
        with self._lock:
            clash = find_conflict(self._consultations.values(), draft.expert_id, draft.scheduled_at)
            if clash is not None:
                raise ConsultationConflictError(EXPERT_UNAVAILABLE_MESSAGE, status_code=409)
            self._consultations[consultation_id] = consultation
        self._logger.info("Consultation stored", extra={"consultation_id": consultation_id})
        return consultation

    def update(self, consultation_id: str, fields: dict[str, Any]) -> bool:
        with self._lock:
            current = self._consultations.get(consultation_id)
            if current is None:
                return False
            known = {k: v for k, v in fields.items() if k in _CONSULTATION_FIELDS and k not in {"id", "status"}}
            self._consultations[consultation_id] = replace(current, **known)
            extra = {k: v for k, v in fields.items() if k not in _CONSULTATION_FIELDS}
            if extra:
                self._extra.setdefault(consultation_id, {}).update(extra)
            return True

    def update_status(self, consultation_id: str, new_status: ConsultationStatus) -> bool:
        with self._lock:
            current = self._consultations.get(consultation_id)
            if current is None:
                return False
            if not can_transition(ConsultationStatus(current.status), ConsultationStatus(new_status)):
                return False
            self._consultations[consultation_id] = replace(current, status=ConsultationStatus(new_status))
            return True

    def get_extra(self, consultation_id: str) -> dict[str, Any]:
        with self._lock:
            return dict(self._extra.get(consultation_id, {}))
