"""
Configuration management using Pydantic Settings
"""
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import List, Optional


DEFAULT_QUESTION_BANK = Path(__file__).resolve().parent / "data" / "questions.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./tai_test.db"

    # Redis (optional local storage backend)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Local storage
    LOCAL_STORAGE_BACKEND: str = "file"  # file | redis
    LOCAL_STORAGE_DIR: str = ".tai_test"
    QUESTION_BANK_PATH: str = str(DEFAULT_QUESTION_BANK)

    # Application
    APP_NAME: str = "TAI Test"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:8081", "http://localhost:3000"]
    OWNER_OPEN_ID: Optional[str] = None

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000

    # Test Settings
    GENERAL_TEST_SIZE: int = 20
    QUESTIONS_PER_BLOCK_TEST: int = 20

    # Cloud sync
    SYNC_API_URL: str = "http://localhost:8000"
    SYNC_TIMEOUT: float = 10.0  # seconds

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
