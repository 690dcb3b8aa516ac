import os
import logging
from datetime import time
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class AttendanceSettings(BaseModel):
    # Check-ins strictly after this wall-clock time are marked late
    late_after: time = Field(default=time.fromisoformat(os.getenv("LATE_AFTER", "09:30")))
    half_day_hours: float = Field(default=float(os.getenv("HALF_DAY_HOURS", "4")))


class BadgeSettings(BaseModel):
    streak_days: int = int(os.getenv("BADGE_STREAK_DAYS", "5"))
    perfect_month_min_days: int = int(os.getenv("BADGE_PERFECT_MONTH_MIN_DAYS", "20"))
    early_bird_hour: int = int(os.getenv("BADGE_EARLY_BIRD_HOUR", "9"))
    early_bird_count: int = int(os.getenv("BADGE_EARLY_BIRD_COUNT", "10"))
    punctuality_window_days: int = int(os.getenv("BADGE_PUNCTUALITY_WINDOW_DAYS", "30"))
    punctuality_min_days: int = int(os.getenv("BADGE_PUNCTUALITY_MIN_DAYS", "20"))


class Config(BaseModel):
    app_name: str = "Attendance & Leave API"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./attendance.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    request_id_header: str = "X-Request-ID"

    cors_origins: List[str] = Field(
        default_factory=lambda: _env_list(
            "CORS_ORIGINS",
            "http://localhost:3000,http://localhost:5173,"
            "http://127.0.0.1:3000,http://127.0.0.1:5173",
        )
    )

    # Uploads
    upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "10"))
    allowed_attachment_extensions: List[str] = [".jpeg", ".jpg", ".png", ".pdf", ".doc", ".docx"]

    # Business rules
    attendance: AttendanceSettings = AttendanceSettings()
    badges: BadgeSettings = BadgeSettings()

    # Background tasks
    task_max_attempts: int = int(os.getenv("TASK_MAX_ATTEMPTS", "3"))

    @property
    def leave_upload_dir(self) -> str:
        return os.path.join(self.upload_dir, "leaves")


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("Using insecure default SECRET_KEY, only acceptable in development.")
