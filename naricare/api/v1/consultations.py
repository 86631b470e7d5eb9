from collections.abc import Callable
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from naricare.api.v1.schemas import (
    BookingRequestSchema,
    BookingResponseSchema,
    ConsultationOverviewSchema,
    ConsultationSchema,
    EligibilitySchema,
    JoinRequestSchema,
    JoinResponseSchema,
    StatusUpdateSchema,
    TimeSlotsResponseSchema,
)
from naricare.application.exceptions import (
    ConsultationNotFoundError,
    ConsultationStoreError,
    InvalidRoleError,
    InvalidStatusTransitionError,
)
from naricare.application.use_cases.booking import BookConsultationUseCase
from naricare.application.use_cases.join_consultation import JoinConsultationUseCase
from naricare.application.use_cases.list_consultations import ListConsultationsUseCase
from naricare.application.use_cases.manage_consultation import ConsultationLifecycleUseCase
from naricare.application.utils.time_window import evaluate_join_eligibility
from naricare.domain.entities.consultation import ConsultationDraft
from naricare.wiring.dependencies import (
    get_booking_use_case,
    get_clock,
    get_join_consultation_use_case,
    get_lifecycle_use_case,
    get_list_consultations_use_case,
)

router = APIRouter()

_BOOKING_STATUS_CODES = {"booked": 201, "conflict": 409, "in_past": 400, "unavailable": 502}


@router.get("/consultations", response_model=ConsultationOverviewSchema)
def list_consultations(
    viewer_id: str = Query(...),
    role: str = Query(...),
    uc: ListConsultationsUseCase = Depends(get_list_consultations_use_case),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        overview = uc.execute(viewer_id=viewer_id, role=role, now=clock())
    except InvalidRoleError as e:
        raise HTTPException(status_code=400, detail=str(e))

    buckets = overview.buckets
    return ConsultationOverviewSchema(
        role=overview.role.value,
        evaluated_at=overview.evaluated_at,
        upcoming=[ConsultationSchema.from_entity(c) for c in buckets.upcoming],
        completed=[ConsultationSchema.from_entity(c) for c in buckets.completed],
        past_missed=[ConsultationSchema.from_entity(c) for c in buckets.past_missed],
        cancelled=[ConsultationSchema.from_entity(c) for c in buckets.cancelled],
        history=[ConsultationSchema.from_entity(c) for c in buckets.history],
        eligibility={cid: EligibilitySchema.from_entity(e) for cid, e in overview.eligibility.items()},
        error=overview.error,
    )


@router.get("/consultations/{consultation_id}/eligibility", response_model=EligibilitySchema)
def consultation_eligibility(
    consultation_id: str,
    role: str = Query(...),
    lifecycle: ConsultationLifecycleUseCase = Depends(get_lifecycle_use_case),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        consultation = lifecycle.load(consultation_id)
        if consultation.scheduled_at is None:
            raise HTTPException(status_code=422, detail="Consultation has no scheduled time")
        eligibility = evaluate_join_eligibility(consultation, clock(), role)
    except InvalidRoleError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConsultationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConsultationStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return EligibilitySchema.from_entity(eligibility)


@router.post("/consultations/{consultation_id}/join", response_model=JoinResponseSchema)
def join_consultation(
    consultation_id: str,
    req: JoinRequestSchema,
    uc: JoinConsultationUseCase = Depends(get_join_consultation_use_case),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        result = uc.execute(consultation_id=consultation_id, role=req.role, now=clock())
    except InvalidRoleError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConsultationStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if result.action == "not_found":
        raise HTTPException(status_code=404, detail=f"Consultation {consultation_id} not found")

    return JoinResponseSchema(
        action=result.action,
        meeting_link=result.meeting_link,
        eligibility=EligibilitySchema.from_entity(result.eligibility) if result.eligibility else None,
        consultation=ConsultationSchema.from_entity(result.consultation) if result.consultation else None,
    )


@router.post("/consultations/{consultation_id}/status", response_model=ConsultationSchema)
def update_consultation_status(
    consultation_id: str,
    req: StatusUpdateSchema,
    lifecycle: ConsultationLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    try:
        consultation = lifecycle.transition(consultation_id, req.status)
    except ConsultationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConsultationStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ConsultationSchema.from_entity(consultation)


@router.post("/consultations", response_model=BookingResponseSchema)
def book_consultation(
    req: BookingRequestSchema,
    response: Response,
    uc: BookConsultationUseCase = Depends(get_booking_use_case),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    draft = ConsultationDraft(
        user_id=req.user_id,
        expert_id=req.expert_id,
        scheduled_at=req.scheduled_at,
        duration_minutes=req.duration_minutes,
        topic=req.topic,
        notes=req.notes,
        consultation_type=req.consultation_type,
    )
    result = uc.book(draft, now=clock())
    response.status_code = _BOOKING_STATUS_CODES.get(result.action, 200)
    return BookingResponseSchema(
        action=result.action,
        message=result.message,
        consultation=ConsultationSchema.from_entity(result.consultation) if result.consultation else None,
    )


@router.get("/experts/{expert_id}/slots", response_model=TimeSlotsResponseSchema)
def expert_time_slots(
    expert_id: str,
    date_param: date = Query(..., alias="date"),
    uc: BookConsultationUseCase = Depends(get_booking_use_case),
):
    slots = uc.available_slots(expert_id, date_param)
    return TimeSlotsResponseSchema(expert_id=expert_id, date=date_param.isoformat(), slots=slots)
