"""Forward-only conflict detection.

An approved appointment anchored at ``a`` occupies ``[a, a + 60 min)``. A
candidate time conflicts with it only when it lands inside that window. A
candidate that starts before the anchor never conflicts, even though its own
hour would run into the anchored appointment.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Protocol

from frontdesk.models.appointment import AppointmentStatus

logger = logging.getLogger(__name__)

OCCUPANCY_WINDOW_MINUTES = 60
OCCUPANCY_WINDOW = timedelta(minutes=OCCUPANCY_WINDOW_MINUTES)

AUTHORITATIVE_STATUSES = frozenset({AppointmentStatus.APPROVED.value})
ADVISORY_STATUSES = frozenset({AppointmentStatus.APPROVED.value, AppointmentStatus.PENDING.value})


class ScheduledAppointment(Protocol):
    id: int
    scheduled_at: datetime
    status: str


@dataclass(frozen=True)
class ConflictResult:
    has_conflict: bool
    conflicting: Optional[ScheduledAppointment] = None

    def __bool__(self) -> bool:
        return self.has_conflict


def status_value(status: AppointmentStatus | str) -> str:
    if isinstance(status, AppointmentStatus):
        return status.value
    return status


def normalize_minute(value: datetime) -> datetime:
    """Drop seconds; offset-aware values become naive server-local time."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)


def falls_in_window(candidate: datetime, anchor: datetime) -> bool:
    return anchor <= candidate < anchor + OCCUPANCY_WINDOW


def find_conflict(
    candidate_time: datetime,
    reference_set: Iterable[ScheduledAppointment],
    exclude_id: int | None = None,
    blocking_statuses: frozenset[str] = AUTHORITATIVE_STATUSES,
) -> ConflictResult:
    candidate = normalize_minute(candidate_time)

    for reference in reference_set:
        if reference.id is not None and reference.id == exclude_id:
            continue
        if status_value(reference.status) not in blocking_statuses:
            continue

        anchor = normalize_minute(reference.scheduled_at)
        if anchor.date() != candidate.date():
            continue

        if falls_in_window(candidate, anchor):
            logger.debug(
                'Candidate %s falls inside window of appointment %s anchored at %s',
                candidate, reference.id, anchor,
                extra={'appointment_id': reference.id, 'date': candidate.date().isoformat()},
            )
            return ConflictResult(True, reference)

    return ConflictResult(False)


def has_conflict(
    candidate_time: datetime,
    exclude_id: int | None,
    reference_set: Iterable[ScheduledAppointment],
) -> ConflictResult:
    """Authoritative check: only APPROVED appointments occupy a window."""
    return find_conflict(candidate_time, reference_set, exclude_id=exclude_id)


def has_advisory_conflict(
    candidate_time: datetime,
    reference_set: Iterable[ScheduledAppointment],
) -> ConflictResult:
    """Pre-submission check: APPROVED and PENDING appointments both block."""
    return find_conflict(candidate_time, reference_set, blocking_statuses=ADVISORY_STATUSES)
