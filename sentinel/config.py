"""
Application configuration settings.
"""
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List, Literal, Optional
import logging


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Enrollment Sentinel"
    VERSION: str = "1.0.0"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(levelname)s - %(message)s"

    # Anomaly detection defaults
    DEFAULT_ANOMALY_METHOD: Literal["zscore", "iqr", "growth"] = "zscore"
    DEFAULT_SENSITIVITY: Literal["low", "medium", "high"] = "medium"

    # Alert rules applied at startup (analysts can change them at runtime)
    ALERT_GROWTH_THRESHOLD: float = 150
    ALERT_ENROLLMENT_THRESHOLD: float = 3000
    ALERT_DAYS_TO_DEADLINE: int = 60
    ALERT_HISTORY_CAPACITY: int = 50

    # Ingestion
    STRICT_INGESTION: bool = False

    # Optional JSON file with [{"date", "title", "description"}, ...]
    POLICY_EVENTS_FILE: Optional[str] = None

    @property
    def base_dir(self) -> Path:
        """Get base directory of the project."""
        return Path(__file__).parent.parent

    @property
    def log_level(self) -> int:
        """Resolve LOG_LEVEL to a logging constant (INFO when unknown)."""
        level = getattr(logging, self.LOG_LEVEL.upper(), None)
        return level if isinstance(level, int) else logging.INFO

    class Config:
        env_file = ".env"
        extra = "allow"


# Global settings instance
settings = Settings()


def configure_logging(level: Optional[int] = None):
    """Configure root logging for entry points (API server, scripts)."""
    logging.basicConfig(
        level=level if level is not None else settings.log_level,
        format=settings.LOG_FORMAT,
    )
