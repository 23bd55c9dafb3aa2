import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


DEFAULT_JWT_SECRET = "change-me-development-only-secret-key"

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./course_feedback.db")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = _get_bool(os.getenv("LOG_JSON"), default=False)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 30)))

FEEDBACK_PAGE_SIZE = int(os.getenv("FEEDBACK_PAGE_SIZE", "10"))
USER_PAGE_SIZE = int(os.getenv("USER_PAGE_SIZE", "10"))
COURSE_PAGE_SIZE = int(os.getenv("COURSE_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

ANALYTICS_DEFAULT_PERIOD_DAYS = int(os.getenv("ANALYTICS_DEFAULT_PERIOD_DAYS", "30"))
ANALYTICS_MAX_PERIOD_DAYS = int(os.getenv("ANALYTICS_MAX_PERIOD_DAYS", "365"))

# Course codes are fixed after creation unless enabled.
ALLOW_COURSE_CODE_CHANGES = _get_bool(os.getenv("ALLOW_COURSE_CODE_CHANGES"), default=False)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
MAX_AVATAR_BYTES = int(os.getenv("MAX_AVATAR_BYTES", str(5 * 1024 * 1024)))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if MAX_PAGE_SIZE < 1:
        raise RuntimeError("MAX_PAGE_SIZE must be at least 1.")
