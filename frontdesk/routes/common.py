from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from frontdesk.database import SessionLocal, ensure_appointment_schema, ensure_notification_schema
from frontdesk.scheduling.errors import (
    AppointmentNotFound,
    ConflictRejected,
    SchedulingError,
    StoreUnavailable,
    ValidationFailed,
)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and Postgres credentials.'


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
        ensure_notification_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def scheduling_http_error(exc: SchedulingError) -> HTTPException:
    if isinstance(exc, AppointmentNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment not found.')
    if isinstance(exc, ValidationFailed):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ConflictRejected):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={'message': f'Not allowed. {exc.message}', 'suggested_time': exc.suggested_time},
        )
    if isinstance(exc, StoreUnavailable):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE_DETAIL)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail='Scheduling failed.')
