from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from frontdesk.auth.dependencies import require_admin, require_patient, require_staff
from frontdesk.core import config
from frontdesk.models.appointment import AppointmentStatus
from frontdesk.models.user import User
from frontdesk.routes.common import ensure_database_ready, get_db, scheduling_http_error
from frontdesk.scheduling.adjudicator import AutoAdjudicator
from frontdesk.scheduling.conflicts import normalize_minute
from frontdesk.scheduling.errors import AppointmentNotFound, SchedulingError, StoreUnavailable
from frontdesk.scheduling.intake import BookingIntake
from frontdesk.scheduling.notifications import DatabaseNotificationEmitter
from frontdesk.scheduling.store import SqlAlchemyAppointmentStore

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    scheduled_at: datetime
    reason: str
    staff_id: int | None = None

    @field_validator('scheduled_at')
    @classmethod
    def drop_seconds(cls, value: datetime) -> datetime:
        return normalize_minute(value)


class ForceStatusRequest(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    staff_id: int | None = None
    scheduled_at: datetime
    reason: str
    status: AppointmentStatus
    created_at: datetime

    class Config:
        from_attributes = True


class AdjudicationResponse(BaseModel):
    appointment_id: int
    status: AppointmentStatus


class ReadjudicationResponse(BaseModel):
    decisions: list[AdjudicationResponse]


class PendingCountResponse(BaseModel):
    pending: int


def build_adjudicator(db: Session) -> AutoAdjudicator:
    return AutoAdjudicator(SqlAlchemyAppointmentStore(db), DatabaseNotificationEmitter(db))


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_patient),
):
    ensure_database_ready()

    store = SqlAlchemyAppointmentStore(db)
    intake = BookingIntake(store, build_adjudicator(db))
    try:
        appointment_id = intake.book(current_user.id, data.scheduled_at, data.reason, staff_id=data.staff_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    try:
        appointment = store.get(appointment_id)
    except StoreUnavailable:
        # booked, but the stored row could not be read back
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content={'id': appointment_id})

    if appointment is None:
        raise scheduling_http_error(AppointmentNotFound(appointment_id))
    return appointment


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_patient),
):
    ensure_database_ready()

    try:
        return SqlAlchemyAppointmentStore(db).list_for_patient(current_user.id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc


@router.get('/mine/latest', response_model=AppointmentResponse)
def get_my_latest_appointment(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_patient),
):
    ensure_database_ready()

    store = SqlAlchemyAppointmentStore(db)
    try:
        latest_id = store.latest_id_for_patient(current_user.id)
        appointment = store.get(latest_id) if latest_id is not None else None
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='No appointments booked yet.',
        )
    return appointment


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def cancel_my_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_patient),
):
    ensure_database_ready()

    store = SqlAlchemyAppointmentStore(db)
    try:
        appointment = store.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFound(appointment_id)

        if appointment.patient_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the patient who booked this appointment can cancel it.',
            )

        store.delete_by_id(appointment_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc


@router.post('/{appointment_id}/adjudicate', response_model=AdjudicationResponse)
def adjudicate_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    ensure_database_ready()

    try:
        decision = build_adjudicator(db).adjudicate(appointment_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    return AdjudicationResponse(appointment_id=appointment_id, status=decision)


@router.put('/{appointment_id}/status', response_model=AdjudicationResponse)
def force_appointment_status(
    appointment_id: int,
    data: ForceStatusRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    ensure_database_ready()

    try:
        decision = build_adjudicator(db).force_status(appointment_id, data.status)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    return AdjudicationResponse(appointment_id=appointment_id, status=decision)


@router.post('/readjudicate', response_model=ReadjudicationResponse)
def readjudicate_pending_appointments(
    grace_minutes: int = Query(default=config.PENDING_GRACE_MINUTES, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    ensure_database_ready()

    try:
        decisions = build_adjudicator(db).readjudicate_pending(grace_minutes)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    return ReadjudicationResponse(
        decisions=[
            AdjudicationResponse(appointment_id=appointment_id, status=decision)
            for appointment_id, decision in decisions.items()
        ]
    )


@router.get('', response_model=list[AppointmentResponse])
def list_appointments_for_date(
    day: date = Query(..., alias='date'),
    approved_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    ensure_database_ready()

    statuses = [AppointmentStatus.APPROVED] if approved_only else None
    try:
        return SqlAlchemyAppointmentStore(db).list_by_date(day, statuses)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc


@router.get('/history', response_model=list[AppointmentResponse])
def list_appointment_history(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    ensure_database_ready()

    try:
        return SqlAlchemyAppointmentStore(db).list_all()
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc


@router.get('/pending-count', response_model=PendingCountResponse)
def count_pending_appointments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    ensure_database_ready()

    try:
        pending = SqlAlchemyAppointmentStore(db).count_by_status(AppointmentStatus.PENDING)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    return PendingCountResponse(pending=pending)
