# backend/app/core/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "focusflow"

    # development / production
    ENVIRONMENT: str = "development"

    JWT_SECRET_KEY: str = "super-secret-key"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:9002",
    ]

    # [Overdue monitor] minimum spacing between repeat "task missed" notifications
    OVERDUE_DEBOUNCE_MINUTES: int = 30
    OVERDUE_SCAN_ENABLED: bool = True
    OVERDUE_SCAN_INTERVAL_MINUTES: int = 10
    # if set, POST /check-overdue requires it in the x-api-key header (cron callers)
    OVERDUE_TRIGGER_KEY: Optional[str] = None

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # console / json

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
