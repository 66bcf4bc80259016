import logging
import os



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:4200"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Periodic sweep for appointments that never left PENDING.
READJUDICATION_ENABLED = _get_bool(os.getenv("READJUDICATION_ENABLED"), default=True)
READJUDICATION_INTERVAL_MINUTES = int(os.getenv("READJUDICATION_INTERVAL_MINUTES", "5"))
PENDING_GRACE_MINUTES = int(os.getenv("PENDING_GRACE_MINUTES", "2"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if READJUDICATION_INTERVAL_MINUTES < 1:
        raise RuntimeError("READJUDICATION_INTERVAL_MINUTES must be at least 1.")


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
