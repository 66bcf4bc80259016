"""Booking intake: validate, pre-check, insert, adjudicate.

The pre-check here is advisory. It looks at APPROVED and PENDING appointments
so a patient is steered away from times somebody else already requested, but
the decision that counts is made afterwards by the adjudicator against
APPROVED appointments only.
"""

import logging
from datetime import datetime

from frontdesk.scheduling.conflicts import ADVISORY_STATUSES, has_advisory_conflict, normalize_minute
from frontdesk.scheduling.errors import ConflictRejected, StoreUnavailable, ValidationFailed
from frontdesk.scheduling.suggestions import suggest_business_hours

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 255
CONFLICT_MESSAGE = 'Appointment conflicts with existing appointment (1-hour buffer).'


def validate_booking(when: datetime, reason: str | None, now: datetime | None = None) -> tuple[datetime, str]:
    now = now or datetime.now()
    normalized_reason = (reason or '').strip()

    if not normalized_reason:
        raise ValidationFailed('Please provide a reason for the appointment.')
    if len(normalized_reason) > MAX_REASON_LENGTH:
        raise ValidationFailed(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')

    scheduled_at = normalize_minute(when)
    if scheduled_at <= now:
        raise ValidationFailed('Please choose a future date/time.')

    return scheduled_at, normalized_reason


class BookingIntake:
    def __init__(self, store, adjudicator):
        self.store = store
        self.adjudicator = adjudicator

    def check_advisory_conflict(self, scheduled_at: datetime) -> None:
        day = scheduled_at.date()
        reference = self.store.list_by_date(day, ADVISORY_STATUSES)

        result = has_advisory_conflict(scheduled_at, reference)
        if not result:
            return

        suggested_time = suggest_business_hours(day, reference)
        logger.warning(
            'Booking at %s rejected before submission, overlaps appointment %s',
            scheduled_at, result.conflicting.id,
            extra={'appointment_id': result.conflicting.id, 'date': day.isoformat()},
        )
        raise ConflictRejected(CONFLICT_MESSAGE, suggested_time, conflicting_id=result.conflicting.id)

    def book(
        self,
        patient_id: int,
        when: datetime,
        reason: str,
        staff_id: int | None = None,
        now: datetime | None = None,
    ) -> int:
        scheduled_at, reason = validate_booking(when, reason, now=now)
        self.check_advisory_conflict(scheduled_at)

        appointment_id = self.store.create(patient_id, scheduled_at, reason, staff_id=staff_id, created_at=now)
        logger.info(
            'Appointment %s requested for %s', appointment_id, scheduled_at,
            extra={'appointment_id': appointment_id, 'date': scheduled_at.date().isoformat()},
        )

        try:
            self.adjudicator.adjudicate(appointment_id, now=now)
        except StoreUnavailable:
            # left PENDING for the re-adjudication sweep
            logger.exception('Adjudication failed after booking', extra={'appointment_id': appointment_id})

        return appointment_id
