from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "DhanSetu SMS Engine"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Parser
    HOME_CURRENCY: str = "INR"
    TIMEZONE: str = "Asia/Kolkata"
    REVIEW_THRESHOLD: float = 0.70
    AUTO_SAVE_CONFIDENCE: float = 0.90

    # Remote category suggestion service (optional)
    CATEGORY_SERVICE_URL: Optional[str] = None
    CATEGORY_SERVICE_TOKEN: Optional[str] = None
    CATEGORY_SERVICE_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
