"""Model-provider credential storage.

``EnvCredentialStore`` keeps the key in the system `.env` (the same file the
package loads on import) and mirrors it into ``os.environ`` so the running
process sees updates immediately.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key, unset_key
from loguru import logger

from wiggly.utils.env import get_system_env_path

from .constants import CREDENTIAL_ENV_KEY, MIN_CREDENTIAL_LENGTH
from .interfaces import BaseCredentialStore


def validate_credential(credential: Optional[str]) -> bool:
    """Keys shorter than the minimum length are rejected outright."""
    return bool(credential) and len(credential.strip()) >= MIN_CREDENTIAL_LENGTH


class InMemoryCredentialStore(BaseCredentialStore):
    def __init__(self, credential: Optional[str] = None) -> None:
        self._credential = credential if validate_credential(credential) else None

    def get_credential(self) -> Optional[str]:
        return self._credential

    def set_credential(self, credential: str) -> bool:
        if not validate_credential(credential):
            return False
        self._credential = credential.strip()
        return True

    def clear_credential(self) -> None:
        self._credential = None


class EnvCredentialStore(BaseCredentialStore):
    def __init__(
        self, env_path: Optional[Path] = None, env_key: str = CREDENTIAL_ENV_KEY
    ) -> None:
        self.env_path = Path(env_path) if env_path else get_system_env_path()
        self.env_key = env_key

    def get_credential(self) -> Optional[str]:
        value = os.getenv(self.env_key)
        if not value and self.env_path.exists():
            value = dotenv_values(self.env_path).get(self.env_key)
        if not validate_credential(value):
            return None
        return value.strip()

    def set_credential(self, credential: str) -> bool:
        if not validate_credential(credential):
            logger.warning(
                "Rejected {}: shorter than {} characters",
                self.env_key,
                MIN_CREDENTIAL_LENGTH,
            )
            return False
        credential = credential.strip()
        try:
            self.env_path.parent.mkdir(parents=True, exist_ok=True)
            self.env_path.touch(exist_ok=True)
            set_key(str(self.env_path), self.env_key, credential)
        except OSError as e:
            logger.error("Failed to save {} to {}: {}", self.env_key, self.env_path, e)
            return False
        os.environ[self.env_key] = credential
        logger.info("Saved {} for AI chat", self.env_key)
        return True

    def clear_credential(self) -> None:
        os.environ.pop(self.env_key, None)
        if self.env_path.exists() and self.env_key in dotenv_values(self.env_path):
            unset_key(str(self.env_path), self.env_key)
        logger.info("Removed {}", self.env_key)
