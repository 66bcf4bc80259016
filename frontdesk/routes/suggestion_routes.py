from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from frontdesk.auth.dependencies import get_current_user
from frontdesk.models.appointment import AppointmentStatus
from frontdesk.models.user import User
from frontdesk.routes.common import ensure_database_ready, get_db, scheduling_http_error
from frontdesk.scheduling.conflicts import ADVISORY_STATUSES
from frontdesk.scheduling.errors import SchedulingError
from frontdesk.scheduling.store import SqlAlchemyAppointmentStore
from frontdesk.scheduling.suggestions import BUSINESS_HOURS_FALLBACK, find_business_hours_slot, suggest_horizon

router = APIRouter(tags=['suggestions'])


class HorizonSuggestionResponse(BaseModel):
    reference_time: datetime
    suggestions: list[str]


class BusinessHoursSuggestionResponse(BaseModel):
    date: date
    suggested_time: str
    is_fallback: bool


@router.get('/horizon', response_model=HorizonSuggestionResponse)
def get_horizon_suggestions(
    reference_time: datetime = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_database_ready()

    try:
        suggestions = suggest_horizon(SqlAlchemyAppointmentStore(db), reference_time)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    return HorizonSuggestionResponse(reference_time=reference_time, suggestions=suggestions)


@router.get('/business-hours', response_model=BusinessHoursSuggestionResponse)
def get_business_hours_suggestion(
    day: date = Query(..., alias='date'),
    include_pending: bool = Query(default=True),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_database_ready()

    statuses = ADVISORY_STATUSES if include_pending else [AppointmentStatus.APPROVED]
    try:
        reference = SqlAlchemyAppointmentStore(db).list_by_date(day, statuses)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc

    slot = find_business_hours_slot(day, reference)
    return BusinessHoursSuggestionResponse(
        date=day,
        suggested_time=slot or BUSINESS_HOURS_FALLBACK,
        is_fallback=slot is None,
    )
