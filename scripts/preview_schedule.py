#!/usr/bin/env python3
"""
Local schedule preview (no HTTP, no backend).

Usage:
  python3 scripts/preview_schedule.py --role expert
  python3 scripts/preview_schedule.py --role client --at 2025-03-01T14:10:00+00:00

Seeds an in-memory store with consultations around the evaluation time and prints
the buckets, labels and history exactly as the consultation screens would show them.
"""

from __future__ import annotations

import argparse
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from naricare.application.use_cases.booking import BookConsultationUseCase
from naricare.application.use_cases.list_consultations import ListConsultationsUseCase
from naricare.application.utils.clock import parse_instant, utc_now
from naricare.domain.entities.availability import AvailabilityRange
from naricare.domain.entities.consultation import Consultation, ConsultationStatus
from naricare.infrastructure.availability.mock_availability import MockAvailabilityProvider
from naricare.infrastructure.store.memory_store import MemoryConsultationStore

CLIENT_ID = "client-1"
EXPERT_ID = "expert-1"


def _seed(now: datetime) -> MemoryConsultationStore:
    offsets = [
        ("c-soon", ConsultationStatus.scheduled, timedelta(minutes=3)),
        ("c-later", ConsultationStatus.scheduled, timedelta(minutes=20)),
        ("c-tomorrow", ConsultationStatus.scheduled, timedelta(hours=26, minutes=5)),
        ("c-live", ConsultationStatus.in_progress, timedelta(minutes=-10)),
        ("c-missed", ConsultationStatus.scheduled, timedelta(hours=-2)),
        ("c-done", ConsultationStatus.completed, timedelta(days=-1)),
        ("c-cancelled", ConsultationStatus.cancelled, timedelta(hours=5)),
    ]
    return MemoryConsultationStore(
        [
            Consultation(
                id=cid,
                status=status,
                scheduled_at=now + offset,
                user_id=CLIENT_ID,
                expert_id=EXPERT_ID,
                topic="Latching support",
                meeting_link=f"https://meet.jit.si/naricare-consultation-{cid}",
            )
            for cid, status, offset in offsets
        ]
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Preview consultation buckets and join labels.")
    parser.add_argument("--role", default="client", help="client or expert")
    parser.add_argument("--at", default=None, help="ISO-8601 evaluation time (defaults to now, UTC)")
    args = parser.parse_args()

    now = parse_instant(args.at) if args.at else utc_now()
    if now is None:
        parser.error(f"Unreadable --at value: {args.at!r}")

    store = _seed(now)
    viewer_id = EXPERT_ID if args.role.strip().lower() == "expert" else CLIENT_ID
    overview = ListConsultationsUseCase(store=store).execute(viewer_id, args.role, now)

    print(f"\nSchedule for {overview.role.value} at {now.isoformat()}")
    print("-" * 60)
    print("Upcoming:")
    for consultation in overview.buckets.upcoming:
        eligibility = overview.eligibility[consultation.id]
        print(f"  {consultation.id:<12} {consultation.status.value:<12} {eligibility.label}")
    print("History:")
    for consultation in overview.buckets.history:
        print(f"  {consultation.id:<12} {consultation.status.value:<12} {consultation.scheduled_at:%Y-%m-%d %H:%M}")

    availability = MockAvailabilityProvider({EXPERT_ID: [AvailabilityRange("14:00", "16:15")]})
    slots = BookConsultationUseCase(store=store, availability=availability).available_slots(EXPERT_ID, date.today())
    print("Bookable slots today:")
    print("  " + ", ".join(slots))
    print("-" * 60)


if __name__ == "__main__":
    main()
