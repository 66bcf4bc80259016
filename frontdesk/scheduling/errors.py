"""Errors raised by the scheduling core."""


class SchedulingError(Exception):
    """Base class for scheduling failures."""


class AppointmentNotFound(SchedulingError):
    def __init__(self, appointment_id: int):
        super().__init__(f'Appointment {appointment_id} not found.')
        self.appointment_id = appointment_id


class StoreUnavailable(SchedulingError):
    """The appointment store could not complete a call."""


class ValidationFailed(SchedulingError):
    """The booking request is malformed (blank reason, time not in the future)."""


class ConflictRejected(SchedulingError):
    """The advisory check found an overlapping appointment before submission."""

    def __init__(self, message: str, suggested_time: str, conflicting_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.suggested_time = suggested_time
        self.conflicting_id = conflicting_id


class NotificationDeliveryFailed(SchedulingError):
    """The notification emitter could not record a message."""
