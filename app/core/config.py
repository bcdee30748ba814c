import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class CompensationSettings(BaseModel):
    """Environment defaults for the compensation policy; overridden per company in the DB."""
    weekend_rate: float = float(os.getenv("COMP_WEEKEND_RATE", "0.5"))
    evening_rate: float = float(os.getenv("COMP_EVENING_RATE", "0.25"))
    night_rate: float = float(os.getenv("COMP_NIGHT_RATE", "0.5"))
    overtime_rate: float = float(os.getenv("COMP_OVERTIME_RATE", "1.0"))
    holiday_rate: float = float(os.getenv("COMP_HOLIDAY_RATE", "1.0"))
    daily_hours_threshold: float = 8.0
    daily_request_cap: float = 8.0
    evening_start_hour: int = 18
    night_start_hour: int = 22
    night_end_hour: int = 6
    pending_usage_policy: str = os.getenv("COMP_PENDING_USAGE_POLICY", "deduct_immediately")

class Config(BaseModel):
    app_name: str = "JobFlow Backend"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    # Company-local wall clock used for weekday/hour classification
    company_timezone: str = os.getenv("COMPANY_TIMEZONE", "Europe/Amsterdam")
    compensation: CompensationSettings = CompensationSettings()

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "30"))
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    default_company_name: Optional[str] = os.getenv("COMPANY_NAME", "JobFlow Solutions")

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key or "change-it" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("Using the insecure default SECRET_KEY; acceptable in development only.")
