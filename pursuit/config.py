"""
Runtime configuration.

Values come from the environment (optionally a local .env file).
Rule constants are not configurable; they live with the engine modules.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass(slots=True)
class Settings:
    ENV: str = os.getenv("PURSUIT_ENV", "development")
    LOG_LEVEL: str = os.getenv("PURSUIT_LOG_LEVEL", "INFO")

    # Stored games idle longer than this are purged (24 hours)
    SESSION_TTL_SECONDS: int = int(os.getenv("PURSUIT_SESSION_TTL_SECONDS", 24 * 60 * 60))

    HOST: str = os.getenv("PURSUIT_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PURSUIT_PORT", 8000))

    ALLOWED_ORIGINS: list[str] = field(
        default_factory=lambda: os.getenv("ALLOWED_ORIGINS", "*").split(",")
    )

    def __post_init__(self):
        if self.SESSION_TTL_SECONDS <= 0:
            raise ValueError("PURSUIT_SESSION_TTL_SECONDS must be positive")


settings = Settings()
