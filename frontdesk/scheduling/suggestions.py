"""Free-time suggestions.

Two independent searches are offered. Neither reserves anything; a suggestion
can be taken by someone else the moment it is returned.

* Horizon: hourly candidates over the reference day and the six days after it,
  skipping hours that fall inside an approved appointment's window.
* Business hours: a single day scanned at 30-minute steps, then 15-minute
  steps, between 09:00 and the last start of the 17:00 hour.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable

from frontdesk.models.appointment import AppointmentStatus
from frontdesk.scheduling.conflicts import (
    OCCUPANCY_WINDOW_MINUTES,
    ScheduledAppointment,
    has_conflict,
    normalize_minute,
)

logger = logging.getLogger(__name__)

HORIZON_DAYS = 6
HORIZON_LAST_HOUR = 22
HORIZON_LIMIT = 10
HORIZON_FORMAT = '%Y-%m-%d %H:%M'

BUSINESS_OPEN_HOUR = 9
BUSINESS_CLOSE_HOUR = 17
BUSINESS_HOURS_STEPS = (30, 15)
BUSINESS_HOURS_FALLBACK = '09:00'


def iterate_horizon_candidates(reference_time: datetime):
    start = reference_time.replace(minute=0, second=0, microsecond=0)
    first_day = start.date()

    for offset in range(HORIZON_DAYS + 1):
        current_day = first_day + timedelta(days=offset)
        first_hour = start.hour if offset == 0 else 0
        for hour in range(first_hour, HORIZON_LAST_HOUR + 1):
            yield datetime(current_day.year, current_day.month, current_day.day, hour)


def horizon_range(reference_time: datetime) -> tuple[datetime, datetime]:
    # Whole days, so appointments anchored before the first candidate still block it.
    first_day = reference_time.date()
    last_day = first_day + timedelta(days=HORIZON_DAYS + 1)
    return (
        datetime(first_day.year, first_day.month, first_day.day),
        datetime(last_day.year, last_day.month, last_day.day),
    )


def suggest_horizon_slots(
    reference_time: datetime,
    approved_appointments: Iterable[ScheduledAppointment],
    now: datetime | None = None,
    limit: int = HORIZON_LIMIT,
) -> list[str]:
    now = now or datetime.now()
    approved_appointments = list(approved_appointments)

    suggestions: list[str] = []
    for candidate in iterate_horizon_candidates(reference_time):
        if candidate <= now:
            continue
        if has_conflict(candidate, None, approved_appointments):
            continue

        suggestions.append(candidate.strftime(HORIZON_FORMAT))
        if len(suggestions) >= limit:
            break

    logger.debug(
        'Horizon search from %s produced %d suggestions', reference_time, len(suggestions),
        extra={'date': reference_time.date().isoformat()},
    )
    return suggestions


def suggest_horizon(
    store,
    reference_time: datetime,
    now: datetime | None = None,
    limit: int = HORIZON_LIMIT,
) -> list[str]:
    start, end = horizon_range(reference_time)
    approved = store.list_between(start, end, [AppointmentStatus.APPROVED])
    return suggest_horizon_slots(reference_time, approved, now=now, limit=limit)


def blocked_minutes_for_day(day: date, reference_appointments: Iterable[ScheduledAppointment]) -> set[int]:
    blocked: set[int] = set()

    for appointment in reference_appointments:
        anchor = normalize_minute(appointment.scheduled_at)
        if anchor.date() != day:
            continue

        anchor_minute = anchor.hour * 60 + anchor.minute
        blocked.update(range(anchor_minute, anchor_minute + OCCUPANCY_WINDOW_MINUTES))

    return blocked


def find_business_hours_slot(
    day: date,
    reference_appointments: Iterable[ScheduledAppointment],
) -> str | None:
    """Return the first unblocked ``HH:MM`` between 09:00 and 17:45, or None.

    Every appointment handed in blocks its hour regardless of status; the
    caller decides which statuses belong in the reference set.
    """
    blocked = blocked_minutes_for_day(day, reference_appointments)

    for step in BUSINESS_HOURS_STEPS:
        for hour in range(BUSINESS_OPEN_HOUR, BUSINESS_CLOSE_HOUR + 1):
            for minute in range(0, 60, step):
                if hour * 60 + minute not in blocked:
                    return f'{hour:02d}:{minute:02d}'

    return None


def suggest_business_hours(
    day: date,
    reference_appointments: Iterable[ScheduledAppointment],
) -> str:
    """Like :func:`find_business_hours_slot`, but falls back to ``"09:00"``.

    The fallback is returned even when 09:00 itself is blocked.
    """
    slot = find_business_hours_slot(day, reference_appointments)
    if slot is None:
        logger.info(
            'No free business-hours slot on %s, falling back to %s', day, BUSINESS_HOURS_FALLBACK,
            extra={'date': day.isoformat()},
        )
        return BUSINESS_HOURS_FALLBACK
    return slot
