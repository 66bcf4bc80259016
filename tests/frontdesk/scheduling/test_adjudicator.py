from datetime import datetime

import pytest

from frontdesk.models.appointment import Appointment, AppointmentStatus
from frontdesk.models.notification import Notification
from frontdesk.scheduling.adjudicator import AutoAdjudicator
from frontdesk.scheduling.errors import AppointmentNotFound, NotificationDeliveryFailed
from frontdesk.scheduling.notifications import APPROVED_TITLE, DISAPPROVED_TITLE, DatabaseNotificationEmitter
from frontdesk.scheduling.store import SqlAlchemyAppointmentStore

NOW = datetime(2025, 6, 1, 8, 0)


class RecordingEmitter:
    def __init__(self):
        self.sent = []

    def send(self, patient_id, title, body, appointment_id=None):
        self.sent.append((patient_id, title, body, appointment_id))


class FailingEmitter:
    def send(self, patient_id, title, body, appointment_id=None):
        raise NotificationDeliveryFailed('transport down')


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def adjudicator(appointment_db, emitter) -> AutoAdjudicator:
    return AutoAdjudicator(SqlAlchemyAppointmentStore(appointment_db), emitter)


def _status(appointment_db, appointment_id: int) -> str:
    appointment_db.expire_all()
    return appointment_db.query(Appointment).filter(Appointment.id == appointment_id).one().status


def test_appointment_inside_approved_window_is_disapproved(appointment_db, add_appointment, adjudicator) -> None:
    add_appointment(datetime(2025, 6, 10, 9, 30), AppointmentStatus.APPROVED)
    candidate = add_appointment(datetime(2025, 6, 10, 10, 0))

    decision = adjudicator.adjudicate(candidate.id, now=NOW)

    assert decision == AppointmentStatus.DISAPPROVED
    assert _status(appointment_db, candidate.id) == 'DISAPPROVED'


def test_appointment_before_approved_anchor_is_approved(appointment_db, add_appointment, adjudicator) -> None:
    add_appointment(datetime(2025, 6, 10, 9, 30), AppointmentStatus.APPROVED)
    candidate = add_appointment(datetime(2025, 6, 10, 9, 0))

    decision = adjudicator.adjudicate(candidate.id, now=NOW)

    assert decision == AppointmentStatus.APPROVED
    assert _status(appointment_db, candidate.id) == 'APPROVED'


def test_anchor_is_unaffected_by_later_approved_appointment(appointment_db, add_appointment, adjudicator) -> None:
    anchor = add_appointment(datetime(2025, 6, 10, 9, 30))
    add_appointment(datetime(2025, 6, 10, 10, 0), AppointmentStatus.APPROVED)

    assert adjudicator.adjudicate(anchor.id, now=NOW) == AppointmentStatus.APPROVED


def test_pending_and_disapproved_do_not_block(add_appointment, adjudicator) -> None:
    add_appointment(datetime(2025, 6, 10, 9, 30), AppointmentStatus.PENDING)
    add_appointment(datetime(2025, 6, 10, 9, 45), AppointmentStatus.DISAPPROVED)
    candidate = add_appointment(datetime(2025, 6, 10, 10, 0))

    assert adjudicator.adjudicate(candidate.id, now=NOW) == AppointmentStatus.APPROVED


def test_approved_appointment_does_not_conflict_with_itself(add_appointment, adjudicator) -> None:
    approved = add_appointment(datetime(2025, 6, 10, 9, 30), AppointmentStatus.APPROVED)

    assert adjudicator.adjudicate(approved.id, now=NOW) == AppointmentStatus.APPROVED


def test_repeated_adjudication_with_unchanged_reference_set_is_stable(add_appointment, adjudicator) -> None:
    add_appointment(datetime(2025, 6, 10, 9, 30), AppointmentStatus.APPROVED)
    rejected = add_appointment(datetime(2025, 6, 10, 10, 0))
    accepted = add_appointment(datetime(2025, 6, 10, 11, 0))

    first = (adjudicator.adjudicate(rejected.id, now=NOW), adjudicator.adjudicate(accepted.id, now=NOW))
    second = (adjudicator.adjudicate(rejected.id, now=NOW), adjudicator.adjudicate(accepted.id, now=NOW))

    assert first == second == (AppointmentStatus.DISAPPROVED, AppointmentStatus.APPROVED)


def test_readjudication_can_flip_decision_when_reference_set_changes(add_appointment, adjudicator) -> None:
    candidate = add_appointment(datetime(2025, 6, 10, 10, 0))
    assert adjudicator.adjudicate(candidate.id, now=NOW) == AppointmentStatus.APPROVED

    earlier = add_appointment(datetime(2025, 6, 10, 9, 30))
    adjudicator.force_status(earlier.id, AppointmentStatus.APPROVED)

    assert adjudicator.adjudicate(candidate.id, now=NOW) == AppointmentStatus.DISAPPROVED


def test_missing_appointment_raises_not_found(adjudicator, emitter) -> None:
    with pytest.raises(AppointmentNotFound) as exception_info:
        adjudicator.adjudicate(404, now=NOW)

    assert exception_info.value.appointment_id == 404
    assert emitter.sent == []


def test_approval_sends_single_confirmation(add_appointment, adjudicator, emitter) -> None:
    candidate = add_appointment(datetime(2025, 6, 10, 9, 0), patient_id=42)

    adjudicator.adjudicate(candidate.id, now=NOW)

    assert emitter.sent == [
        (42, APPROVED_TITLE, 'Your appointment for 2025-06-10 09:00 has been APPROVED.', candidate.id),
    ]


def test_rejection_lists_three_alternatives(add_appointment, adjudicator, emitter) -> None:
    add_appointment(datetime(2025, 6, 10, 9, 30), AppointmentStatus.APPROVED)
    candidate = add_appointment(datetime(2025, 6, 10, 10, 0), patient_id=42)

    adjudicator.adjudicate(candidate.id, now=NOW)

    assert len(emitter.sent) == 1
    patient_id, title, body, appointment_id = emitter.sent[0]
    assert (patient_id, title, appointment_id) == (42, DISAPPROVED_TITLE, candidate.id)
    assert body.startswith('Your appointment scheduled for 2025-06-10 10:00 could not be approved.')
    assert body.endswith(
        'Suggested available times:\n  • 2025-06-10 11:00\n  • 2025-06-10 12:00\n  • 2025-06-10 13:00'
    )


def test_notification_failure_keeps_status(appointment_db, add_appointment) -> None:
    adjudicator = AutoAdjudicator(SqlAlchemyAppointmentStore(appointment_db), FailingEmitter())
    candidate = add_appointment(datetime(2025, 6, 10, 9, 0))

    assert adjudicator.adjudicate(candidate.id, now=NOW) == AppointmentStatus.APPROVED
    assert _status(appointment_db, candidate.id) == 'APPROVED'


def test_database_emitter_records_notification(appointment_db, add_appointment) -> None:
    adjudicator = AutoAdjudicator(
        SqlAlchemyAppointmentStore(appointment_db),
        DatabaseNotificationEmitter(appointment_db),
    )
    candidate = add_appointment(datetime(2025, 6, 10, 9, 0), patient_id=5)

    adjudicator.adjudicate(candidate.id, now=NOW)

    notifications = appointment_db.query(Notification).all()
    assert len(notifications) == 1
    assert notifications[0].patient_id == 5
    assert notifications[0].title == APPROVED_TITLE
    assert notifications[0].appointment_id == candidate.id
    assert notifications[0].is_read is False


@pytest.mark.parametrize('status', list(AppointmentStatus))
def test_force_status_allows_any_transition(appointment_db, add_appointment, adjudicator, emitter, status) -> None:
    appointment = add_appointment(datetime(2025, 6, 10, 9, 0), AppointmentStatus.DISAPPROVED)

    assert adjudicator.force_status(appointment.id, status) == status
    assert _status(appointment_db, appointment.id) == status.value
    assert emitter.sent == []


def test_force_status_on_missing_appointment_raises(adjudicator) -> None:
    with pytest.raises(AppointmentNotFound):
        adjudicator.force_status(404, AppointmentStatus.APPROVED)


def test_readjudicate_pending_only_touches_stale_pending(appointment_db, add_appointment, adjudicator) -> None:
    now = datetime(2025, 6, 1, 12, 0)
    stale = add_appointment(datetime(2025, 6, 10, 9, 0), created_at=datetime(2025, 6, 1, 11, 0))
    fresh = add_appointment(datetime(2025, 6, 10, 11, 0), created_at=datetime(2025, 6, 1, 11, 59))
    decided = add_appointment(
        datetime(2025, 6, 10, 13, 0),
        AppointmentStatus.DISAPPROVED,
        created_at=datetime(2025, 6, 1, 10, 0),
    )

    decisions = adjudicator.readjudicate_pending(grace_minutes=5, now=now)

    assert decisions == {stale.id: AppointmentStatus.APPROVED}
    assert _status(appointment_db, fresh.id) == 'PENDING'
    assert _status(appointment_db, decided.id) == 'DISAPPROVED'
