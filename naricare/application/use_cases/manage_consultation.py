from __future__ import annotations

import logging
import threading
from typing import Any

from naricare.application.exceptions import (
    ConsultationNotFoundError,
    ConsultationStoreError,
    InvalidStatusTransitionError,
)
from naricare.application.ports.consultation_store import ConsultationStorePort
from naricare.domain.entities.consultation import Consultation, ConsultationStatus, can_transition

EDITABLE_FIELDS = frozenset(
    {"topic", "notes", "follow_up_required", "expert_notes", "user_rating", "user_feedback"}
)


class ConsultationLifecycleUseCase:
    """
    Forward-only status changes: scheduled -> in-progress -> completed, or -> cancelled.

    Transitions on the same consultation are serialised and re-read under the lock,
    so a second rapid request sees the first one's result instead of re-submitting it.
    """

    def __init__(self, store: ConsultationStorePort) -> None:
        self._store = store
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, consultation_id: str) -> threading.Lock:
        with self._lock_lock:
            if consultation_id not in self._locks:
                self._locks[consultation_id] = threading.Lock()
            return self._locks[consultation_id]

    def load(self, consultation_id: str) -> Consultation:
        consultation = self._store.get(consultation_id)
        if consultation is None:
            raise ConsultationNotFoundError(f"Consultation {consultation_id} not found")
        return consultation

    def _discard_lock(self, consultation_id: str) -> None:
        # terminal or missing consultations never transition again
        with self._lock_lock:
            self._locks.pop(consultation_id, None)

    def transition(self, consultation_id: str, target: ConsultationStatus | str) -> Consultation:
        target = ConsultationStatus(target)
        with self._get_lock(consultation_id):
            try:
                current = self.load(consultation_id)
            except ConsultationNotFoundError:
                self._discard_lock(consultation_id)
                raise
            status = ConsultationStatus(current.status)
            if status is target:
                updated = current
            elif not can_transition(status, target):
                if current.is_terminal:
                    self._discard_lock(consultation_id)
                raise InvalidStatusTransitionError(
                    f"Cannot move consultation {consultation_id} from {status.value} to {target.value}"
                )
            else:
                if not self._store.update_status(consultation_id, target):
                    raise ConsultationStoreError(f"Status update to {target.value} was rejected")
                self._logger.info(
                    "Consultation status changed",
                    extra={"consultation_id": consultation_id, "status": target.value},
                )
                updated = self.load(consultation_id)
            if updated.is_terminal:
                self._discard_lock(consultation_id)
            return updated

    def start(self, consultation_id: str) -> Consultation:
        return self.transition(consultation_id, ConsultationStatus.in_progress)

    def complete(self, consultation_id: str) -> Consultation:
        return self.transition(consultation_id, ConsultationStatus.completed)

    def cancel(self, consultation_id: str) -> Consultation:
        return self.transition(consultation_id, ConsultationStatus.cancelled)

    def update_details(self, consultation_id: str, fields: dict[str, Any]) -> Consultation:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        if not fields:
            raise ValueError("No valid fields to update")
        self.load(consultation_id)
        if not self._store.update(consultation_id, dict(fields)):
            raise ConsultationStoreError(f"Update of consultation {consultation_id} was rejected")
        return self.load(consultation_id)
