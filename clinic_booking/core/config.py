# clinic_booking/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from .env; ignore unknown keys so extra lines don't crash startup
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Server ---
    APP_ENV: str = "production"
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    ALLOWED_CORS_ORIGINS: str = "*"  # comma-separated list, e.g. "http://localhost:5173,https://book.clinic"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_REQUESTS: bool = False
    LOG_RESPONSES: bool = False
    MAX_LOG_LENGTH: int = 200
    SLOW_REQUEST_THRESHOLD: float = 2.0

    # --- Clinic ---
    CLINIC_TIMEZONE: str = "Asia/Kolkata"
    DEFAULT_PHONE_REGION: str = "IN"

    # --- Google Calendar ---
    GOOGLE_CALENDAR_ENABLED: bool = False
    GOOGLE_SERVICE_ACCOUNT_JSON: str | None = None
    GOOGLE_CALENDAR_ID: str = "primary"  # the doctor's calendar (usually their Gmail address)

    # --- Email (SMTP) ---
    SMTP_HOST: str | None = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAIL_FROM_NAME: str = "GenepowerX Clinic"

    # --- SMS ---
    SMS_DELIVERY: str = "simulated"  # simulated | twilio
    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_FROM_NUMBER: str | None = None

    # --- Wizard client ---
    API_BASE_URL: str = "http://localhost:3001/api"
    API_TIMEOUT: float = 10.0

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("production", "prod")

    @property
    def email_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)

# Singleton
settings = Settings()
