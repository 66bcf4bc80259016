import logging
from contextlib import contextmanager
from datetime import date
from threading import Lock
from weakref import WeakValueDictionary

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.scheduling.errors import StoreUnavailable

logger = logging.getLogger(__name__)

_registry_lock = Lock()
# entries disappear once no caller holds the lock for that date
_date_locks: 'WeakValueDictionary[date, Lock]' = WeakValueDictionary()


def _lock_for(day: date) -> Lock:
    with _registry_lock:
        lock = _date_locks.get(day)
        if lock is None:
            lock = Lock()
            _date_locks[day] = lock
        return lock


def _acquire_advisory_lock(db: Session, day: date) -> None:
    try:
        db.execute(text('SELECT pg_advisory_xact_lock(:key)'), {'key': day.toordinal()})
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Advisory lock failed', extra={'date': day.isoformat()})
        raise StoreUnavailable(f'Could not lock appointments for {day.isoformat()}.') from exc


@contextmanager
def date_lock(db: Session, day: date):
    """Serialize read-decide-write sequences for one calendar date.

    The in-process lock covers worker threads. On PostgreSQL a
    transaction-scoped advisory lock also covers other processes; it is
    released by the commit that writes the decision.
    """
    lock = _lock_for(day)
    with lock:
        if db.get_bind().dialect.name == 'postgresql':
            _acquire_advisory_lock(db, day)
        yield
