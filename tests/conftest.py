import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from frontdesk.database import Base  # noqa: E402
from frontdesk.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from frontdesk.models.notification import Notification  # noqa: E402
from frontdesk.models.user import User  # noqa: E402

TABLES = [User.__table__, Appointment.__table__, Notification.__table__]


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def appointment_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def add_appointment(appointment_db):
    def _add(
        scheduled_at: datetime,
        status: AppointmentStatus = AppointmentStatus.PENDING,
        patient_id: int = 1,
        reason: str = 'Checkup',
        created_at: datetime | None = None,
    ) -> Appointment:
        appointment = Appointment(
            patient_id=patient_id,
            scheduled_at=scheduled_at,
            reason=reason,
            status=status.value,
            created_at=created_at or datetime(2025, 6, 1, 8, 0),
        )
        appointment_db.add(appointment)
        appointment_db.commit()
        appointment_db.refresh(appointment)
        return appointment

    return _add
