import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./frontdesk.db")

engine = create_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False
_notification_schema_checked = False


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('staff_id', 'ALTER TABLE appointments ADD COLUMN staff_id INTEGER'),
            ('reason', 'ALTER TABLE appointments ADD COLUMN reason VARCHAR'),
            ('created_at', 'ALTER TABLE appointments ADD COLUMN created_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_scheduled_status ON appointments(scheduled_at, status)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_patient_created ON appointments(patient_id, created_at)')
            )

        _appointment_schema_checked = True


def ensure_notification_schema() -> None:
    global _notification_schema_checked

    if _notification_schema_checked:
        return

    with _schema_lock:
        if _notification_schema_checked:
            return

        inspector = inspect(engine)

        if 'notifications' not in inspector.get_table_names():
            _notification_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('notifications')}
        migration_steps = [
            ('is_read', 'ALTER TABLE notifications ADD COLUMN is_read BOOLEAN DEFAULT FALSE'),
            ('appointment_id', 'ALTER TABLE notifications ADD COLUMN appointment_id INTEGER'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_notifications_patient_created ON notifications(patient_id, created_at)')
            )

        _notification_schema_checked = True
