# src/vrchat_relay/config.py

import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Determine the base directory of this config file
# .env is at the project root, two levels up from src/vrchat_relay/
CONFIG_FILE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = CONFIG_FILE_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT_DIR / ".env"

if ENV_FILE_PATH.exists():
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=True)
    logger.info("CONFIG: Loaded .env file from: %s", ENV_FILE_PATH)
else:
    logger.info("CONFIG: .env file not found at %s. Relying on environment variables.", ENV_FILE_PATH)


class Settings(BaseSettings):
    # === Upstream (VRChat API) ===
    VRCHAT_API_BASE_URL: str = "https://vrchat.com/api/1/"
    VRCHAT_USER_AGENT: str = "rain-1 vrchat-friend-list 1"
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0
    # Name of the session cookie issued by the upstream platform
    UPSTREAM_SESSION_COOKIE: str = "auth"
    FRIENDS_PAGE_SIZE: int = 100

    # === Relay-owned cookies ===
    USER_ID_COOKIE_MAX_AGE_DAYS: int = 30
    COOKIE_SECURE: bool = False  # Set to True in production with HTTPS

    # === Server ===
    HOST: str = "127.0.0.1"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    @property
    def USER_ID_COOKIE_MAX_AGE(self) -> int:
        return self.USER_ID_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("VRCHAT_API_BASE_URL", mode="after")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        # Relative upstream paths are joined onto this base
        return v if v.endswith("/") else v + "/"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip().upper()
        raise ValueError("LOG_LEVEL must be a non-empty string.")


try:
    settings = Settings()
except Exception:
    logger.exception("CONFIG: Error instantiating Settings")
    raise
