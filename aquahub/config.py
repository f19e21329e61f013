from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_env_path),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "aquahub"
    MONGO_TIMEOUT_MS: int = 5000
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    REDIS_URL: Optional[str] = None
    # conditional-write attempts before a vote gives up
    POLL_MAX_ATTEMPTS: int = 5
    LOG_LEVEL: str = "INFO"


settings = Settings()
