"""Server settings resolved from environment variables."""

import os
from functools import lru_cache
from typing import List

from wiggly.utils.env import get_system_env_dir


def _default_database_url() -> str:
    return f"sqlite:///{get_system_env_dir() / 'wiggly.db'}"


class Settings:
    """Process-wide server settings.

    Values are read once from the environment (the system `.env` is loaded on
    package import), so call :func:`get_settings` rather than instantiating.
    """

    def __init__(self) -> None:
        self.APP_NAME = os.getenv("APP_NAME", "Wiggly AI Chat")
        self.APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
        self.API_HOST = os.getenv("API_HOST", "127.0.0.1")
        self.API_PORT = int(os.getenv("API_PORT", "8000"))
        self.API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
        self.DATABASE_URL = os.getenv("DATABASE_URL") or _default_database_url()
        self.CORS_ORIGINS: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
