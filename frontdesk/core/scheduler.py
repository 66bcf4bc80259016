import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from frontdesk.core import config
from frontdesk.database import SessionLocal
from frontdesk.scheduling.adjudicator import AutoAdjudicator
from frontdesk.scheduling.errors import StoreUnavailable
from frontdesk.scheduling.notifications import DatabaseNotificationEmitter
from frontdesk.scheduling.store import SqlAlchemyAppointmentStore

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def readjudicate_stale_appointments(session_factory=SessionLocal) -> None:
    db = session_factory()
    try:
        adjudicator = AutoAdjudicator(SqlAlchemyAppointmentStore(db), DatabaseNotificationEmitter(db))
        adjudicator.readjudicate_pending(config.PENDING_GRACE_MINUTES)
    except StoreUnavailable:
        logger.warning('Skipping re-adjudication sweep, store unavailable')
    finally:
        db.close()


def start_scheduler() -> None:
    if not config.READJUDICATION_ENABLED or scheduler.running:
        return

    scheduler.add_job(
        readjudicate_stale_appointments,
        trigger=IntervalTrigger(minutes=config.READJUDICATION_INTERVAL_MINUTES),
        id='readjudicate_pending',
        replace_existing=True,
    )
    scheduler.start()


def stop_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
