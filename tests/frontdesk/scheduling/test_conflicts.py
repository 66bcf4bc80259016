from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from frontdesk.models.appointment import AppointmentStatus
from frontdesk.scheduling.conflicts import (
    falls_in_window,
    has_advisory_conflict,
    has_conflict,
    normalize_minute,
)


def _appointment(appointment_id: int, scheduled_at: datetime, status: AppointmentStatus = AppointmentStatus.APPROVED):
    return SimpleNamespace(id=appointment_id, scheduled_at=scheduled_at, status=status.value)


def test_candidate_inside_approved_window_conflicts() -> None:
    existing = _appointment(1, datetime(2025, 6, 10, 9, 30))

    result = has_conflict(datetime(2025, 6, 10, 10, 0), None, [existing])

    assert result.has_conflict is True
    assert result.conflicting is existing


def test_candidate_before_anchor_never_conflicts() -> None:
    existing = _appointment(1, datetime(2025, 6, 10, 9, 30))

    result = has_conflict(datetime(2025, 6, 10, 9, 0), None, [existing])

    assert not result
    assert result.conflicting is None


@pytest.mark.parametrize(
    ('candidate', 'expected'),
    [
        (datetime(2025, 6, 10, 9, 29), False),
        (datetime(2025, 6, 10, 9, 30), True),
        (datetime(2025, 6, 10, 10, 29), True),
        (datetime(2025, 6, 10, 10, 30), False),
    ],
)
def test_window_is_closed_at_anchor_and_open_at_end(candidate: datetime, expected: bool) -> None:
    existing = _appointment(1, datetime(2025, 6, 10, 9, 30))

    assert bool(has_conflict(candidate, None, [existing])) is expected


@pytest.mark.parametrize('status', [AppointmentStatus.PENDING, AppointmentStatus.DISAPPROVED])
def test_only_approved_appointments_block_authoritative_check(status: AppointmentStatus) -> None:
    existing = _appointment(1, datetime(2025, 6, 10, 9, 30), status)

    assert not has_conflict(datetime(2025, 6, 10, 10, 0), None, [existing])


def test_excluded_id_is_ignored() -> None:
    existing = _appointment(7, datetime(2025, 6, 10, 9, 30))

    assert not has_conflict(datetime(2025, 6, 10, 9, 30), 7, [existing])


def test_other_dates_are_ignored() -> None:
    existing = _appointment(1, datetime(2025, 6, 9, 23, 30))

    assert not has_conflict(datetime(2025, 6, 10, 0, 0), None, [existing])


def test_enum_statuses_are_accepted() -> None:
    existing = SimpleNamespace(id=1, scheduled_at=datetime(2025, 6, 10, 9, 30), status=AppointmentStatus.APPROVED)

    assert has_conflict(datetime(2025, 6, 10, 9, 45), None, [existing])


def test_seconds_are_ignored() -> None:
    existing = _appointment(1, datetime(2025, 6, 10, 9, 30))

    assert not has_conflict(datetime(2025, 6, 10, 10, 30, 59), None, [existing])
    assert normalize_minute(datetime(2025, 6, 10, 10, 30, 59, 12)) == datetime(2025, 6, 10, 10, 30)


def test_offset_aware_times_become_local_naive() -> None:
    aware = datetime(2025, 6, 10, 8, 15, 30, tzinfo=timezone.utc)

    normalized = normalize_minute(aware)

    assert normalized.tzinfo is None
    assert normalized == aware.astimezone().replace(tzinfo=None, second=0)


def test_advisory_check_also_blocks_on_pending() -> None:
    pending = _appointment(1, datetime(2025, 6, 10, 9, 30), AppointmentStatus.PENDING)

    assert has_advisory_conflict(datetime(2025, 6, 10, 10, 0), [pending])
    assert not has_conflict(datetime(2025, 6, 10, 10, 0), None, [pending])


def test_advisory_check_ignores_disapproved() -> None:
    rejected = _appointment(1, datetime(2025, 6, 10, 9, 30), AppointmentStatus.DISAPPROVED)

    assert not has_advisory_conflict(datetime(2025, 6, 10, 10, 0), [rejected])


def test_falls_in_window() -> None:
    anchor = datetime(2025, 6, 10, 23, 30)

    assert falls_in_window(datetime(2025, 6, 11, 0, 15), anchor)
    assert not falls_in_window(datetime(2025, 6, 10, 23, 29), anchor)
