"""Automatic approval of newly booked appointments.

``adjudicate`` moves an appointment out of PENDING by checking it against the
approved appointments on the same date. It is not idempotent across changes to
that reference set: running it again after another appointment was approved
can flip an earlier APPROVED to DISAPPROVED.
"""

import logging
from datetime import datetime, timedelta

from frontdesk.models.appointment import AppointmentStatus
from frontdesk.scheduling.conflicts import has_conflict
from frontdesk.scheduling.errors import AppointmentNotFound, NotificationDeliveryFailed, StoreUnavailable
from frontdesk.scheduling.locks import date_lock
from frontdesk.scheduling.notifications import (
    APPROVED_TITLE,
    DISAPPROVED_TITLE,
    approval_message,
    rejection_message,
)
from frontdesk.scheduling.suggestions import suggest_horizon

logger = logging.getLogger(__name__)

REJECTION_SUGGESTION_LIMIT = 3


class AutoAdjudicator:
    def __init__(self, store, emitter):
        self.store = store
        self.emitter = emitter

    def adjudicate(self, appointment_id: int, now: datetime | None = None) -> AppointmentStatus:
        appointment = self.store.get(appointment_id)
        if appointment is None:
            logger.warning('Cannot adjudicate missing appointment', extra={'appointment_id': appointment_id})
            raise AppointmentNotFound(appointment_id)

        patient_id = appointment.patient_id
        scheduled_at = appointment.scheduled_at
        day = scheduled_at.date()
        log_context = {'appointment_id': appointment_id, 'date': day.isoformat()}

        with date_lock(self.store.db, day):
            approved = self.store.list_by_date(day, [AppointmentStatus.APPROVED])
            result = has_conflict(scheduled_at, appointment_id, approved)
            decision = AppointmentStatus.DISAPPROVED if result else AppointmentStatus.APPROVED
            conflicting_id = result.conflicting.id if result else None

            if not self.store.update_status(appointment_id, decision):
                raise AppointmentNotFound(appointment_id)

        if result:
            logger.info(
                'Appointment %s at %s disapproved, overlaps appointment %s',
                appointment_id, scheduled_at, conflicting_id, extra=log_context,
            )
        else:
            logger.info('Appointment %s at %s approved', appointment_id, scheduled_at, extra=log_context)

        self._notify(appointment_id, patient_id, scheduled_at, decision, now)
        return decision

    def _notify(
        self,
        appointment_id: int,
        patient_id: int,
        scheduled_at: datetime,
        decision: AppointmentStatus,
        now: datetime | None,
    ) -> None:
        if decision == AppointmentStatus.APPROVED:
            title, body = APPROVED_TITLE, approval_message(scheduled_at)
        else:
            try:
                alternatives = suggest_horizon(self.store, scheduled_at, now=now)[:REJECTION_SUGGESTION_LIMIT]
            except StoreUnavailable:
                logger.warning(
                    'Could not compute alternatives for rejected appointment',
                    extra={'appointment_id': appointment_id},
                )
                alternatives = []
            title, body = DISAPPROVED_TITLE, rejection_message(scheduled_at, alternatives)

        try:
            self.emitter.send(patient_id, title, body, appointment_id=appointment_id)
        except NotificationDeliveryFailed:
            logger.warning(
                'Notification for appointment %s failed; status %s kept', appointment_id, decision.value,
                extra={'appointment_id': appointment_id},
                exc_info=True,
            )

    def force_status(self, appointment_id: int, status: AppointmentStatus) -> AppointmentStatus:
        """Administrative override, allowed from any state and without notification."""
        appointment = self.store.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFound(appointment_id)

        day = appointment.scheduled_at.date()
        with date_lock(self.store.db, day):
            if not self.store.update_status(appointment_id, status):
                raise AppointmentNotFound(appointment_id)

        logger.info(
            'Appointment %s status forced to %s', appointment_id, status.value,
            extra={'appointment_id': appointment_id, 'date': day.isoformat()},
        )
        return status

    def readjudicate_pending(
        self,
        grace_minutes: int,
        now: datetime | None = None,
    ) -> dict[int, AppointmentStatus]:
        """Adjudicate every appointment stuck in PENDING past the grace period."""
        now = now or datetime.now()
        cutoff = now - timedelta(minutes=grace_minutes)
        decisions: dict[int, AppointmentStatus] = {}

        pending_ids = [appointment.id for appointment in self.store.list_pending_created_before(cutoff)]

        for appointment_id in pending_ids:
            try:
                decisions[appointment_id] = self.adjudicate(appointment_id, now=now)
            except AppointmentNotFound:
                # cancelled between listing and adjudication
                continue
            except StoreUnavailable:
                logger.exception('Re-adjudication failed', extra={'appointment_id': appointment_id})

        if decisions:
            logger.info('Re-adjudicated %d pending appointments', len(decisions))
        return decisions
