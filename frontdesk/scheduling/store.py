"""SQLAlchemy-backed appointment store."""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.models.appointment import Appointment, AppointmentStatus
from frontdesk.scheduling.conflicts import normalize_minute, status_value
from frontdesk.scheduling.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


class SqlAlchemyAppointmentStore:
    """Appointment reads and writes on a single session.

    Each write commits on its own. Any database error is rolled back and
    surfaced as :class:`StoreUnavailable`.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreUnavailable:
        self.db.rollback()
        logger.exception('Appointment store %s failed', operation)
        return StoreUnavailable(f'Appointment store unavailable during {operation}.')

    def create(
        self,
        patient_id: int,
        scheduled_at: datetime,
        reason: str,
        staff_id: int | None = None,
        created_at: datetime | None = None,
    ) -> int:
        appointment = Appointment(
            patient_id=patient_id,
            staff_id=staff_id,
            scheduled_at=normalize_minute(scheduled_at),
            reason=reason,
            status=AppointmentStatus.PENDING.value,
            created_at=created_at or datetime.now(),
        )
        try:
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as exc:
            raise self._fail('create', exc) from exc

        return appointment.id

    def get(self, appointment_id: int) -> Appointment | None:
        try:
            return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        except SQLAlchemyError as exc:
            raise self._fail('get', exc) from exc

    def list_by_date(
        self,
        day: date,
        statuses: Iterable[AppointmentStatus | str] | None = None,
    ) -> list[Appointment]:
        start, end = day_bounds(day)
        return self.list_between(start, end, statuses)

    def list_between(
        self,
        start: datetime,
        end: datetime,
        statuses: Iterable[AppointmentStatus | str] | None = None,
    ) -> list[Appointment]:
        try:
            query = self.db.query(Appointment).filter(
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
            )
            if statuses is not None:
                query = query.filter(Appointment.status.in_([status_value(status) for status in statuses]))
            return query.order_by(Appointment.scheduled_at.asc(), Appointment.id.asc()).all()
        except SQLAlchemyError as exc:
            raise self._fail('list', exc) from exc

    def list_for_patient(self, patient_id: int) -> list[Appointment]:
        try:
            return self.db.query(Appointment).filter(
                Appointment.patient_id == patient_id,
            ).order_by(Appointment.scheduled_at.desc()).all()
        except SQLAlchemyError as exc:
            raise self._fail('list', exc) from exc

    def list_all(self) -> list[Appointment]:
        try:
            return self.db.query(Appointment).order_by(Appointment.scheduled_at.asc()).all()
        except SQLAlchemyError as exc:
            raise self._fail('list', exc) from exc

    def list_pending_created_before(self, cutoff: datetime) -> list[Appointment]:
        try:
            return self.db.query(Appointment).filter(
                Appointment.status == AppointmentStatus.PENDING.value,
                Appointment.created_at < cutoff,
            ).order_by(Appointment.created_at.asc()).all()
        except SQLAlchemyError as exc:
            raise self._fail('list', exc) from exc

    def count_by_status(self, status: AppointmentStatus | str) -> int:
        try:
            return self.db.query(Appointment).filter(Appointment.status == status_value(status)).count()
        except SQLAlchemyError as exc:
            raise self._fail('count', exc) from exc

    def update_status(self, appointment_id: int, status: AppointmentStatus | str) -> bool:
        try:
            updated = self.db.query(Appointment).filter(Appointment.id == appointment_id).update(
                {Appointment.status: status_value(status)},
                synchronize_session='fetch',
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail('update_status', exc) from exc

        return updated > 0

    def delete_by_id(self, appointment_id: int) -> bool:
        try:
            deleted = self.db.query(Appointment).filter(Appointment.id == appointment_id).delete(
                synchronize_session='fetch',
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail('delete', exc) from exc

        return deleted > 0

    def latest_id_for_patient(self, patient_id: int) -> int | None:
        try:
            latest = self.db.query(Appointment.id).filter(
                Appointment.patient_id == patient_id,
            ).order_by(Appointment.created_at.desc(), Appointment.id.desc()).first()
        except SQLAlchemyError as exc:
            raise self._fail('latest_id_for_patient', exc) from exc

        return latest[0] if latest else None
