"""
Tests for listing, joining, status changes and booking over the in-memory store.
"""

from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest

from naricare.application.exceptions import (
    ConsultationNotFoundError,
    ConsultationStoreError,
    InvalidRoleError,
    InvalidStatusTransitionError,
)
from naricare.application.ports.availability import AvailabilityProviderPort
from naricare.application.use_cases.booking import BookConsultationUseCase
from naricare.application.use_cases.join_consultation import JoinConsultationUseCase
from naricare.application.use_cases.list_consultations import LOAD_ERROR_MESSAGE, ListConsultationsUseCase
from naricare.application.use_cases.manage_consultation import ConsultationLifecycleUseCase
from naricare.application.utils.time_slots import DEFAULT_SLOT_CATALOG
from naricare.domain.entities.availability import AvailabilityRange
from naricare.domain.entities.consultation import (
    Consultation,
    ConsultationDraft,
    ConsultationStatus,
    ViewerRole,
)
from naricare.infrastructure.availability.mock_availability import MockAvailabilityProvider
from naricare.infrastructure.store.memory_store import MemoryConsultationStore

NOW = datetime(2025, 3, 1, 14, 0, tzinfo=timezone.utc)


def _store() -> MemoryConsultationStore:
    def c(cid: str, status: ConsultationStatus, offset: timedelta | None, link: str | None = "https://meet.example/x") -> Consultation:
        return Consultation(
            id=cid,
            status=status,
            scheduled_at=None if offset is None else NOW + offset,
            user_id="client-1",
            expert_id="expert-1",
            meeting_link=link,
        )

    return MemoryConsultationStore(
        [
            c("soon", ConsultationStatus.scheduled, timedelta(minutes=3)),
            c("later", ConsultationStatus.scheduled, timedelta(minutes=20)),
            c("no-link", ConsultationStatus.scheduled, timedelta(minutes=2), link=None),
            c("done", ConsultationStatus.completed, timedelta(days=-1)),
            c("broken", ConsultationStatus.scheduled, None),
        ]
    )


class FailingStore(MemoryConsultationStore):
    def fetch_for_viewer(self, viewer_id: str, role: ViewerRole) -> list[Consultation]:
        raise ConsultationStoreError("backend down")

    def create(self, draft: ConsultationDraft) -> Consultation:
        raise ConsultationStoreError("backend down")


class RejectingStore(MemoryConsultationStore):
    def update_status(self, consultation_id: str, new_status: ConsultationStatus) -> bool:
        return False


class CountingStore(MemoryConsultationStore):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.status_calls = 0

    def update_status(self, consultation_id: str, new_status: ConsultationStatus) -> bool:
        self.status_calls += 1
        return super().update_status(consultation_id, new_status)


class BrokenAvailability(AvailabilityProviderPort):
    def fetch_availability(self, provider_id: str, on_date: date) -> list[AvailabilityRange] | None:
        raise ConsultationStoreError("timeout")


def test_list_classifies_and_evaluates_upcoming():
    """The overview buckets a fresh snapshot and labels every upcoming record for the viewer."""
    overview = ListConsultationsUseCase(store=_store()).execute("client-1", "client", NOW)
    assert overview.error is None
    assert [c.id for c in overview.buckets.upcoming] == ["no-link", "soon", "later"]
    assert [c.id for c in overview.buckets.malformed] == ["broken"]
    assert overview.eligibility["soon"].label == "Join Call"
    assert overview.eligibility["later"].label == "In 20m"


def test_list_for_expert_uses_expert_window():
    """The same records read differently for the expert."""
    overview = ListConsultationsUseCase(store=_store()).execute("expert-1", ViewerRole.expert, NOW)
    assert overview.eligibility["soon"].label == "Start Call"
    assert overview.eligibility["later"].label == "Join Call"


def test_list_degrades_on_fetch_failure():
    """A failed fetch yields empty buckets and a retryable error message."""
    overview = ListConsultationsUseCase(store=FailingStore()).execute("client-1", "client", NOW)
    assert overview.error == LOAD_ERROR_MESSAGE
    assert overview.buckets.upcoming == ()
    assert overview.buckets.history == ()


def test_list_rejects_unknown_role():
    """A bad role is a caller error."""
    with pytest.raises(InvalidRoleError):
        ListConsultationsUseCase(store=_store()).execute("client-1", "nurse", NOW)


def test_expert_join_marks_in_progress():
    """An expert joining a scheduled call starts it and gets the meeting link."""
    store = _store()
    uc = JoinConsultationUseCase(lifecycle=ConsultationLifecycleUseCase(store=store))
    result = uc.execute("soon", "expert", NOW)
    assert result.action == "started"
    assert result.meeting_link == "https://meet.example/x"
    assert store.get("soon").status is ConsultationStatus.in_progress
    assert result.consultation.status is ConsultationStatus.in_progress


def test_expert_join_outside_start_window_keeps_scheduled():
    """At +20m the expert may join but not start, so the status stays scheduled."""
    store = _store()
    uc = JoinConsultationUseCase(lifecycle=ConsultationLifecycleUseCase(store=store))
    result = uc.execute("later", "expert", NOW)
    assert result.eligibility.label == "Join Call"
    assert result.eligibility.can_start is False
    assert result.action == "joined"
    assert result.meeting_link == "https://meet.example/x"
    assert store.get("later").status is ConsultationStatus.scheduled


def test_client_join_does_not_change_status():
    """Clients join without touching the lifecycle."""
    store = _store()
    result = JoinConsultationUseCase(lifecycle=ConsultationLifecycleUseCase(store=store)).execute("soon", "client", NOW)
    assert result.action == "joined"
    assert store.get("soon").status is ConsultationStatus.scheduled


def test_join_outside_window_and_missing_link():
    """Ineligible or link-less consultations cannot be joined."""
    uc = JoinConsultationUseCase(lifecycle=ConsultationLifecycleUseCase(store=_store()))
    too_early = uc.execute("later", "client", NOW)
    assert too_early.action == "not_eligible"
    assert too_early.eligibility.label == "In 20m"

    assert uc.execute("no-link", "client", NOW).action == "no_meeting_link"
    assert uc.execute("missing", "client", NOW).action == "not_found"
    assert uc.execute("broken", "expert", NOW).action == "not_eligible"


def test_join_reports_unavailable_when_start_is_rejected():
    """If the backend refuses the transition the join is reported as unavailable."""
    uc = JoinConsultationUseCase(lifecycle=ConsultationLifecycleUseCase(store=RejectingStore(_store().fetch_for_viewer("client-1", ViewerRole.client))))
    assert uc.execute("soon", "expert", NOW).action == "unavailable"


def test_rapid_joins_submit_one_transition():
    """Concurrent expert joins move the consultation to in-progress exactly once."""
    store = CountingStore(_store().fetch_for_viewer("client-1", ViewerRole.client))
    uc = JoinConsultationUseCase(lifecycle=ConsultationLifecycleUseCase(store=store))
    results: list[str] = []

    def join() -> None:
        results.append(uc.execute("soon", "expert", NOW).action)

    threads = [threading.Thread(target=join) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.status_calls == 1
    assert len(results) == 5
    assert store.get("soon").status is ConsultationStatus.in_progress


def test_lifecycle_is_forward_only():
    """Transitions move forward; terminal states cannot be left."""
    store = _store()
    lifecycle = ConsultationLifecycleUseCase(store=store)

    assert lifecycle.start("soon").status is ConsultationStatus.in_progress
    assert lifecycle.start("soon").status is ConsultationStatus.in_progress
    assert lifecycle.complete("soon").status is ConsultationStatus.completed
    with pytest.raises(InvalidStatusTransitionError):
        lifecycle.cancel("soon")
    with pytest.raises(InvalidStatusTransitionError):
        lifecycle.complete("later")
    assert lifecycle.cancel("later").status is ConsultationStatus.cancelled
    with pytest.raises(ConsultationNotFoundError):
        lifecycle.start("missing")


def test_transition_locks_are_released_for_finished_consultations():
    """Locks are kept only while a consultation can still change status."""
    lifecycle = ConsultationLifecycleUseCase(store=_store())

    lifecycle.start("soon")
    assert "soon" in lifecycle._locks
    lifecycle.complete("soon")
    assert "soon" not in lifecycle._locks

    lifecycle.cancel("later")
    with pytest.raises(InvalidStatusTransitionError):
        lifecycle.cancel("done")
    with pytest.raises(ConsultationNotFoundError):
        lifecycle.start("missing")
    assert lifecycle._locks == {}


def test_update_details_allows_only_editable_fields():
    """Notes and feedback can be edited; status and time cannot go through this path."""
    store = _store()
    lifecycle = ConsultationLifecycleUseCase(store=store)
    updated = lifecycle.update_details("done", {"notes": "Follow up in two weeks", "user_rating": 5})
    assert updated.notes == "Follow up in two weeks"
    assert store.get_extra("done") == {"user_rating": 5}
    with pytest.raises(ValueError):
        lifecycle.update_details("done", {"status": "scheduled"})
    with pytest.raises(ValueError):
        lifecycle.update_details("done", {})


def test_available_slots_from_provider_and_fallback():
    """Provider ranges become slots; unknown providers and failures use the default catalogue."""
    availability = MockAvailabilityProvider({"expert-1": [AvailabilityRange("14:00", "15:00")]})
    uc = BookConsultationUseCase(store=_store(), availability=availability)
    assert uc.available_slots("expert-1", date(2025, 3, 3)) == ["14:00 - 14:30", "14:30 - 15:00"]
    assert uc.available_slots("expert-2", date(2025, 3, 3)) == list(DEFAULT_SLOT_CATALOG)

    failing = BookConsultationUseCase(store=_store(), availability=BrokenAvailability())
    assert failing.available_slots("expert-1", date(2025, 3, 3)) == list(DEFAULT_SLOT_CATALOG)


def test_mock_availability_filters_by_weekday():
    """Ranges tagged with a weekday apply only on that day (Sunday = 0)."""
    availability = MockAvailabilityProvider(
        {"expert-1": [AvailabilityRange("09:00", "10:00", day_of_week=1), AvailabilityRange("16:00", "16:30", day_of_week=2)]}
    )
    monday = date(2025, 3, 3)
    assert availability.fetch_availability("expert-1", monday) == [AvailabilityRange("09:00", "10:00", day_of_week=1)]


def test_booking_creates_consultation_with_meeting_link():
    """A free future slot is booked and the store resolves the meeting link."""
    store = _store()
    uc = BookConsultationUseCase(store=store, availability=MockAvailabilityProvider())
    draft = ConsultationDraft(user_id="client-2", expert_id="expert-1", scheduled_at=NOW + timedelta(days=1), topic="Pumping")
    result = uc.book(draft, NOW)
    assert result.action == "booked"
    assert result.consultation.status is ConsultationStatus.scheduled
    assert result.consultation.meeting_link.startswith("https://meet.jit.si/naricare-consultation-")
    assert store.get(result.consultation.id) == result.consultation


def test_booking_rejects_conflicts_and_past_times():
    """Expert double-booking within 30 minutes and past times are refused."""
    uc = BookConsultationUseCase(store=_store(), availability=MockAvailabilityProvider())
    clash = ConsultationDraft(user_id="client-2", expert_id="expert-1", scheduled_at=NOW + timedelta(minutes=25))
    assert uc.book(clash, NOW).action == "conflict"

    past = ConsultationDraft(user_id="client-2", expert_id="expert-1", scheduled_at=NOW - timedelta(minutes=1))
    assert uc.book(past, NOW).action == "in_past"

    clear = ConsultationDraft(user_id="client-2", expert_id="expert-1", scheduled_at=NOW + timedelta(minutes=50))
    assert uc.book(clear, NOW).action == "booked"


def test_booking_reports_store_failure():
    """Store failures surface as an unavailable booking, not an exception."""
    uc = BookConsultationUseCase(store=FailingStore(), availability=MockAvailabilityProvider())
    draft = ConsultationDraft(user_id="client-2", expert_id="expert-1", scheduled_at=NOW + timedelta(days=1))
    assert uc.book(draft, NOW).action == "unavailable"
