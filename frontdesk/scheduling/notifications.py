"""Patient notification delivery."""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.models.notification import Notification
from frontdesk.scheduling.errors import NotificationDeliveryFailed

logger = logging.getLogger(__name__)

APPROVED_TITLE = 'Appointment Approved'
DISAPPROVED_TITLE = 'Appointment Status'


def approval_message(scheduled_at: datetime) -> str:
    return f'Your appointment for {scheduled_at:%Y-%m-%d %H:%M} has been APPROVED.'


def rejection_message(scheduled_at: datetime, suggested_times: list[str]) -> str:
    suggestions = ''.join(f'\n  • {suggested}' for suggested in suggested_times)
    return (
        f'Your appointment scheduled for {scheduled_at:%Y-%m-%d %H:%M} could not be approved.\n'
        'Reason: Time slot is occupied (1-hour appointment duration).\n'
        f'Suggested available times:{suggestions}'
    )


class DatabaseNotificationEmitter:
    """Writes notifications into the patient inbox table."""

    def __init__(self, db: Session):
        self.db = db

    def send(self, patient_id: int, title: str, body: str, appointment_id: int | None = None) -> None:
        notification = Notification(
            patient_id=patient_id,
            title=title,
            message=body,
            appointment_id=appointment_id,
        )
        try:
            self.db.add(notification)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise NotificationDeliveryFailed(f'Could not notify patient {patient_id}.') from exc

        logger.info('Notification sent to patient %s', patient_id, extra={'appointment_id': appointment_id})
