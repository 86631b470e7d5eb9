from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from naricare.application.exceptions import ConsultationConflictError, ConsultationStoreError
from naricare.application.ports.availability import AvailabilityProviderPort
from naricare.application.ports.consultation_store import ConsultationStorePort
from naricare.application.utils.clock import ensure_utc, parse_instant
from naricare.application.utils.conflicts import EXPERT_UNAVAILABLE_MESSAGE
from naricare.core.config import settings
from naricare.domain.entities.availability import AvailabilityRange
from naricare.domain.entities.consultation import (
    Consultation,
    ConsultationDraft,
    ConsultationStatus,
    ViewerRole,
)

# status changes with a dedicated backend route
_STATUS_ROUTES = {
    ConsultationStatus.in_progress: ("PUT", "/consultations/{id}/start"),
    ConsultationStatus.completed: ("PUT", "/consultations/{id}/complete"),
    ConsultationStatus.cancelled: ("DELETE", "/consultations/{id}"),
}


def _pick(record: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    value = record.get(snake)
    if value is None:
        value = record.get(camel)
    return default if value is None else value


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def consultation_from_record(record: dict[str, Any]) -> Consultation:
    """Map a backend row (snake_case or camelCase) to a Consultation snapshot."""
    return Consultation(
        id=str(record["id"]),
        status=ConsultationStatus(_pick(record, "status", "status", "scheduled")),
        scheduled_at=parse_instant(_pick(record, "scheduled_at", "scheduledAt")),
        user_id=_pick(record, "user_id", "userId"),
        expert_id=_pick(record, "expert_id", "expertId"),
        duration_minutes=int(_pick(record, "duration_minutes", "duration", 30)),
        consultation_type=_pick(record, "consultation_type", "type", "scheduled"),
        topic=_pick(record, "topic", "topic"),
        notes=_pick(record, "notes", "notes"),
        meeting_link=_pick(record, "meeting_link", "meetingLink"),
        follow_up_required=bool(_pick(record, "follow_up_required", "followUpRequired", False)),
        reminder_sent=bool(_pick(record, "reminder_sent", "reminderSent", False)),
    )


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("error") or body.get("message")
    return str(message) if message else None


def availability_from_record(record: dict[str, Any]) -> AvailabilityRange:
    return AvailabilityRange(
        start_time=str(_pick(record, "start_time", "startTime")),
        end_time=str(_pick(record, "end_time", "endTime")),
        is_available=bool(_pick(record, "is_available", "isAvailable", True)),
        day_of_week=_pick(record, "day_of_week", "dayOfWeek"),
    )


class BackendApiClient(ConsultationStorePort, AvailabilityProviderPort):
    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.BACKEND_BASE_URL or "").rstrip("/")
        self._api_token = api_token or settings.BACKEND_API_TOKEN
        self._client = client or httpx.Client(timeout=settings.BACKEND_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("BACKEND_BASE_URL is required for the backend API client")

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    def _request(self, method: str, path: str, allow_missing: bool = False, **kwargs: Any) -> Any:
        """Send a request and unwrap the {"success", "data"} envelope."""
        url = f"{self._base_url}{path}"
        try:
            response = self._client.request(method, url, headers=self._headers(), **kwargs)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
            body = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response) or str(e)
            self._logger.error("Backend request failed", extra={"reason": f"{method} {path}", "error": message})
            raise ConsultationStoreError(message, status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Backend request failed", extra={"reason": f"{method} {path}", "error": str(e)})
            raise ConsultationStoreError(str(e)) from e

        if isinstance(body, dict) and body.get("success") is False:
            message = body.get("message") or body.get("error") or "Request failed"
            raise ConsultationStoreError(str(message))
        return body.get("data") if isinstance(body, dict) else body

    def fetch_for_viewer(self, viewer_id: str, role: ViewerRole) -> list[Consultation]:
        # the backend scopes both listings to the authenticated viewer
        path = "/consultations/expert/my-consultations" if role is ViewerRole.expert else "/consultations/my-consultations"
        data = self._request("GET", path)
        if isinstance(data, dict):
            data = data.get("consultations", [])
        consultations: list[Consultation] = []
        for record in data or []:
            try:
                consultations.append(consultation_from_record(record))
            except (KeyError, ValueError, TypeError) as e:
                self._logger.warning("Skipping unreadable consultation record", extra={"error": str(e)})
        return consultations

    def get(self, consultation_id: str) -> Consultation | None:
        data = self._request("GET", f"/consultations/{consultation_id}", allow_missing=True)
        if not data:
            return None
        return consultation_from_record(data)

    def create(self, draft: ConsultationDraft) -> Consultation:
        payload = {
            "expertId": draft.expert_id,
            "scheduledAt": ensure_utc(draft.scheduled_at).isoformat(),
            "duration": draft.duration_minutes,
            "topic": draft.topic,
            "notes": draft.notes,
            "durationType": draft.consultation_type,
        }
        try:
            data = self._request("POST", "/consultations", json=payload)
        except ConsultationStoreError as e:
            # the backend runs the double-booking check and answers with this message
            if e.status_code == 409 or EXPERT_UNAVAILABLE_MESSAGE.lower() in str(e).lower():
                raise ConsultationConflictError(str(e), status_code=e.status_code) from e
            raise
        if not data:
            raise ConsultationStoreError("No consultation returned from backend")
        consultation = consultation_from_record(data)
        self._logger.info("Consultation created", extra={"consultation_id": consultation.id})
        return consultation

    def update(self, consultation_id: str, fields: dict[str, Any]) -> bool:
        payload = {_camel(key): value for key, value in fields.items()}
        try:
            self._request("PUT", f"/consultations/{consultation_id}", json=payload)
        except ConsultationStoreError:
            return False
        return True

    def update_status(self, consultation_id: str, new_status: ConsultationStatus) -> bool:
        status = ConsultationStatus(new_status)
        route = _STATUS_ROUTES.get(status)
        if route is None:
            # nothing moves back to scheduled
            return False
        method, template = route
        try:
            self._request(method, template.format(id=consultation_id))
        except ConsultationStoreError:
            return False
        self._logger.info(
            "Consultation status updated",
            extra={"consultation_id": consultation_id, "status": status.value},
        )
        return True

    def fetch_availability(self, provider_id: str, on_date: date) -> list[AvailabilityRange] | None:
        try:
            data = self._request("GET", f"/experts/{provider_id}/availability", params={"date": on_date.isoformat()})
        except ConsultationStoreError:
            return None
        if isinstance(data, dict):
            data = data.get("availability", data.get("ranges"))
        if not isinstance(data, list):
            return None
        ranges: list[AvailabilityRange] = []
        for record in data:
            try:
                ranges.append(availability_from_record(record))
            except (AttributeError, TypeError) as e:
                self._logger.warning("Skipping unreadable availability record", extra={"error": str(e)})
        return ranges
