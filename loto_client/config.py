"""Application configuration using Pydantic Settings."""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = "Lo To Ticket Scanner"
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_DIR: Path = Path("./logs")

    # Recognition service
    RECOGNITION_BASE_URL: str = "http://localhost:8080"
    RECOGNITION_API_PREFIX: str = "/api/v1"
    SCAN_UPLOAD_FIELD: str = "image"
    IMAGE_TRANSPORT: str = "file"  # file / url

    # Scan timing
    SCAN_TIMEOUT_SECONDS: float = 90.0
    SCAN_STAGE_OFFSETS_MS: list[int] = [4000, 14000]

    # Win celebration
    CELEBRATION_SECONDS: float = 3.0


settings = Settings()
