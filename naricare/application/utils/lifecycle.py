from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from naricare.application.utils.clock import ensure_utc
from naricare.domain.entities.buckets import Bucket, ConsultationBuckets
from naricare.domain.entities.consultation import Consultation, ConsultationStatus

GRACE_WINDOW = timedelta(minutes=30)


def bucket_for(consultation: Consultation, now: datetime) -> Bucket | None:
    """Return the display bucket at `now`, or None when scheduled_at is unusable."""
    status = ConsultationStatus(consultation.status)

    if status is ConsultationStatus.cancelled:
        return Bucket.cancelled
    if consultation.scheduled_at is None:
        return None

    end_of_grace = ensure_utc(consultation.scheduled_at) + GRACE_WINDOW
    current = ensure_utc(now)

    if status in (ConsultationStatus.scheduled, ConsultationStatus.in_progress) and current <= end_of_grace:
        return Bucket.upcoming
    if status is ConsultationStatus.completed:
        return Bucket.completed
    # scheduled or in-progress after the grace window
    return Bucket.past_missed


def _history_order(entries: list[tuple[int, Consultation]]) -> tuple[Consultation, ...]:
    # input order first, then a stable descending sort keeps ties in input order
    entries = sorted(entries, key=lambda entry: entry[0])
    ordered = sorted(
        entries,
        key=lambda entry: (
            entry[1].scheduled_at is not None,
            ensure_utc(entry[1].scheduled_at) if entry[1].scheduled_at is not None else datetime.min,
        ),
        reverse=True,
    )
    return tuple(consultation for _, consultation in ordered)


def classify_consultations(consultations: Iterable[Consultation], now: datetime) -> ConsultationBuckets:
    """
    Partition consultations into upcoming / completed / past-missed / cancelled at `now`.

    Every record is evaluated once and lands in exactly one bucket, except records
    without a usable scheduled_at, which are collected under `malformed` instead.
    Upcoming is ordered soonest first; history is most recent first.
    """
    groups: dict[Bucket, list[tuple[int, Consultation]]] = {bucket: [] for bucket in Bucket}
    malformed: list[Consultation] = []

    for index, consultation in enumerate(consultations):
        bucket = bucket_for(consultation, now)
        if bucket is None:
            malformed.append(consultation)
            continue
        groups[bucket].append((index, consultation))

    upcoming = sorted(groups[Bucket.upcoming], key=lambda entry: ensure_utc(entry[1].scheduled_at))
    history = groups[Bucket.completed] + groups[Bucket.past_missed] + groups[Bucket.cancelled]

    return ConsultationBuckets(
        upcoming=tuple(consultation for _, consultation in upcoming),
        completed=tuple(consultation for _, consultation in groups[Bucket.completed]),
        past_missed=tuple(consultation for _, consultation in groups[Bucket.past_missed]),
        cancelled=tuple(consultation for _, consultation in groups[Bucket.cancelled]),
        history=_history_order(history),
        malformed=tuple(malformed),
    )


def history_view(buckets: ConsultationBuckets) -> list[Consultation]:
    return list(buckets.history)
