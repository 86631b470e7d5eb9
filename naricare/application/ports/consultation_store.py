from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from naricare.domain.entities.consultation import Consultation, ConsultationDraft, ConsultationStatus, ViewerRole


class ConsultationStorePort(ABC):
    @abstractmethod
    def fetch_for_viewer(self, viewer_id: str, role: ViewerRole) -> list[Consultation]:
        """
        Fetch every consultation the viewer takes part in, as client or as expert.
        Raises ConsultationStoreError when the backend cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, consultation_id: str) -> Consultation | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, draft: ConsultationDraft) -> Consultation:
        """
        Create a scheduled consultation. The backend resolves its meeting link.
        Raises ConsultationConflictError when the expert already has a scheduled or
        in-progress consultation less than 30 minutes from the requested time.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, consultation_id: str, fields: dict[str, Any]) -> bool:
        raise NotImplementedError

    @abstractmethod
    def update_status(self, consultation_id: str, new_status: ConsultationStatus) -> bool:
        """Returns True if the status change was accepted."""
        raise NotImplementedError
