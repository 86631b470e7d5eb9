from datetime import datetime

from pydantic import BaseModel, Field

from naricare.domain.entities.consultation import Consultation, ConsultationStatus
from naricare.domain.entities.eligibility import JoinEligibility


class ConsultationSchema(BaseModel):
    id: str
    status: ConsultationStatus
    scheduled_at: datetime | None = None
    user_id: str | None = None
    expert_id: str | None = None
    duration_minutes: int = 30
    consultation_type: str = "scheduled"
    topic: str | None = None
    notes: str | None = None
    meeting_link: str | None = None
    follow_up_required: bool = False

    @classmethod
    def from_entity(cls, consultation: Consultation) -> "ConsultationSchema":
        return cls(
            id=consultation.id,
            status=consultation.status,
            scheduled_at=consultation.scheduled_at,
            user_id=consultation.user_id,
            expert_id=consultation.expert_id,
            duration_minutes=consultation.duration_minutes,
            consultation_type=consultation.consultation_type,
            topic=consultation.topic,
            notes=consultation.notes,
            meeting_link=consultation.meeting_link,
            follow_up_required=consultation.follow_up_required,
        )


class EligibilitySchema(BaseModel):
    label: str
    can_join: bool
    can_start: bool = False
    tone: str = "medium"

    @classmethod
    def from_entity(cls, eligibility: JoinEligibility) -> "EligibilitySchema":
        return cls(
            label=eligibility.label,
            can_join=eligibility.can_join,
            can_start=eligibility.can_start,
            tone=eligibility.tone,
        )


class ConsultationOverviewSchema(BaseModel):
    role: str
    evaluated_at: datetime
    upcoming: list[ConsultationSchema] = Field(default_factory=list)
    completed: list[ConsultationSchema] = Field(default_factory=list)
    past_missed: list[ConsultationSchema] = Field(default_factory=list)
    cancelled: list[ConsultationSchema] = Field(default_factory=list)
    history: list[ConsultationSchema] = Field(default_factory=list)
    eligibility: dict[str, EligibilitySchema] = Field(default_factory=dict)
    error: str | None = None


class JoinRequestSchema(BaseModel):
    role: str


class JoinResponseSchema(BaseModel):
    action: str
    meeting_link: str | None = None
    eligibility: EligibilitySchema | None = None
    consultation: ConsultationSchema | None = None


class StatusUpdateSchema(BaseModel):
    status: ConsultationStatus


class BookingRequestSchema(BaseModel):
    user_id: str
    expert_id: str
    scheduled_at: datetime
    duration_minutes: int = Field(default=30, gt=0)
    topic: str | None = None
    notes: str | None = None
    consultation_type: str = "scheduled"


class BookingResponseSchema(BaseModel):
    action: str
    message: str | None = None
    consultation: ConsultationSchema | None = None


class TimeSlotsResponseSchema(BaseModel):
    expert_id: str
    date: str
    slots: list[str]
