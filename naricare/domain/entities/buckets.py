from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from naricare.domain.entities.consultation import Consultation


class Bucket(str, Enum):
    upcoming = "upcoming"
    completed = "completed"
    past_missed = "past_missed"
    cancelled = "cancelled"


@dataclass(frozen=True)
class ConsultationBuckets:
    upcoming: tuple[Consultation, ...] = ()
    completed: tuple[Consultation, ...] = ()
    past_missed: tuple[Consultation, ...] = ()
    cancelled: tuple[Consultation, ...] = ()
    # completed + past_missed + cancelled, most recent first
    history: tuple[Consultation, ...] = ()
    # excluded for lacking a usable scheduled_at; the caller reports these
    malformed: tuple[Consultation, ...] = ()

    def bucket_of(self, consultation_id: str) -> Bucket | None:
        for bucket in Bucket:
            if any(c.id == consultation_id for c in getattr(self, bucket.value)):
                return bucket
        return None

    def counts(self) -> dict[str, int]:
        counts = {bucket.value: len(getattr(self, bucket.value)) for bucket in Bucket}
        counts["malformed"] = len(self.malformed)
        return counts
