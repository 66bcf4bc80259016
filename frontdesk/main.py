import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from frontdesk.core import config
from frontdesk.core.scheduler import start_scheduler, stop_scheduler
from frontdesk.database import Base, engine, ensure_appointment_schema, ensure_notification_schema
from frontdesk.models import user, appointment, notification  # noqa: F401
from frontdesk.routes import appointment_routes, notification_routes, suggestion_routes

config.configure_logging()
config.validate_runtime_config()

app = FastAPI(title='Clinic Front Desk API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
        ensure_notification_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')


@app.on_event('startup')
def start_readjudication() -> None:
    start_scheduler()


@app.on_event('shutdown')
def stop_readjudication() -> None:
    stop_scheduler()


@app.get('/')
def root():
    return {'status': 'Clinic Front Desk API Running'}


app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(suggestion_routes.router, prefix='/suggestions')
app.include_router(notification_routes.router, prefix='/notifications')
