#config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "Team Achievement Alerts"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./achievement_alerts.db")

    # Live feed ("memory" keeps everything in-process, "redis" fans out through pub/sub)
    FEED_BACKEND: str = "memory"
    REDIS_URL: str = ""
    FEED_PREFIX: str = "feed:"

    # Presentation timing
    SETTLE_DELAY_MS: int = 500
    CELEBRATION_DURATION_MS: int = 3000
    CELEBRATION_INTERVAL_MS: int = 250

    # CORS Settings (comma-separated to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = "*"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def settle_delay_seconds(self) -> float:
        return self.SETTLE_DELAY_MS / 1000.0

    @property
    def celebration_duration_seconds(self) -> float:
        return self.CELEBRATION_DURATION_MS / 1000.0

    @property
    def celebration_interval_seconds(self) -> float:
        return self.CELEBRATION_INTERVAL_MS / 1000.0

    @property
    def uses_redis_feed(self) -> bool:
        return self.FEED_BACKEND.strip().lower() == "redis"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()
