# app/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Counting backend ──────────────────────────────────────────────────
    API_BASE_URL: str = "http://localhost:5000/api"
    STREAM_API_BASE_URL: Optional[str] = None   # Falls back to API_BASE_URL

    # ── Network (this dashboard service) ──────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Cameras ───────────────────────────────────────────────────────────
    CAMERA_COUNT: int = 19   # Used until /latest reports the real array length

    # ── Polling intervals (seconds) ───────────────────────────────────────
    LATEST_INTERVAL: float = 1.0
    RELIABILITY_INTERVAL: float = 5.0
    STREAM_HEALTH_INTERVAL: float = 5.0
    ALGORITHM_HEALTH_INTERVAL: float = 5.0
    COUNTING_CONFIG_INTERVAL: float = 5.0
    COUNTING_ALERTS_INTERVAL: float = 10.0
    STREAM_ALERTS_INTERVAL: float = 10.0
    FETCH_TIMEOUT_SECONDS: float = 10.0

    # Sources polled for the whole process lifetime, regardless of observers
    POLL_ON_STARTUP: list[str] = [
        "latest", "reliabilityStatus", "streamHealth", "algorithmHealth",
        "countingConfig", "countingAlerts", "streamAlerts",
    ]

    # ── Health / alerts ───────────────────────────────────────────────────
    EXPECTED_SERVICE_COUNT: int = 3   # Shown as "0/3" before /algorithm/health answers
    ALERT_LIMIT: int = 100

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    @property
    def STREAM_BASE_URL(self) -> str:
        return self.STREAM_API_BASE_URL or self.API_BASE_URL

    @property
    def SOURCE_INTERVALS(self) -> dict:
        return {
            "latest": self.LATEST_INTERVAL,
            "reliabilityStatus": self.RELIABILITY_INTERVAL,
            "streamHealth": self.STREAM_HEALTH_INTERVAL,
            "algorithmHealth": self.ALGORITHM_HEALTH_INTERVAL,
            "countingConfig": self.COUNTING_CONFIG_INTERVAL,
            "countingAlerts": self.COUNTING_ALERTS_INTERVAL,
            "streamAlerts": self.STREAM_ALERTS_INTERVAL,
        }

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
