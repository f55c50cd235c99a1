from enum import Enum
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"
    TESTING = "testing"


class Settings(BaseSettings):
    """Configuration settings for the relay and its clients."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Relay
    API_HOST: str = "0.0.0.0"
    PORT: int = 3000
    HISTORY_CAPACITY: int = 1000
    CORS_ORIGINS: List[str] = ["*"]
    DASHBOARD_DIR: str = "dist"

    # Clients
    RELAY_URL: str = "http://localhost:3000"
    CLIENT_HISTORY_CAPACITY: int = 500
    POLL_INTERVAL_SEC: float = 5.0
    REQUEST_TIMEOUT_SEC: float = 5.0

    # Simulated producers
    NODE_ID: str = "esp32-node-01"
    NODE_LAT: float = 45.4642
    NODE_LON: float = 9.19
    READ_INTERVAL_SEC: float = 10.0

    # Neuro-health risk policy (µg/m³ unless noted)
    RISK_THRESHOLD: float = 35.0
    RISK_LOW_BELOW: float = 12.0
    RISK_MODERATE_MAX: float = 35.0
    RISK_HIGH_MAX: float = 55.0
    RISK_SATURATION: float = 75.0
    RISK_EXPOSURE_WEIGHT: float = 0.6

    # Particle trail
    PARTICLE_MIN_INTERVAL_MS: int = 5000
    PARTICLE_MIN_DISTANCE_M: float = 5.0
    PARTICLE_TTL_MS: int = 120_000

    # Logging
    LOG_LEVEL: str = "INFO"


def get_settings() -> Settings:
    """Get settings based on environment."""
    import os

    env = os.getenv("COMPANION_ENV", "development").lower()

    if env == "production":
        return Settings(ENVIRONMENT=Environment.PRODUCTION, LOG_LEVEL="WARNING")
    elif env == "testing":
        return Settings(
            ENVIRONMENT=Environment.TESTING,
            PORT=3001,
            RELAY_URL="http://localhost:3001",
            HISTORY_CAPACITY=50,
            CLIENT_HISTORY_CAPACITY=20,
            POLL_INTERVAL_SEC=0.5,
            READ_INTERVAL_SEC=1,
            NODE_ID="test-node",
            LOG_LEVEL="DEBUG",
        )
    else:
        return Settings(ENVIRONMENT=Environment.DEVELOPMENT, LOG_LEVEL="DEBUG")
