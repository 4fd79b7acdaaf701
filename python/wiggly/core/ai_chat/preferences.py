from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key
from loguru import logger

from .constants import SIMPLIFIED_MODE_ENV_KEY


class SimplifiedModePreference:
    """User-level switch for the reduced-size context mode.

    Persisted in a dotenv file so the choice survives restarts. Without an
    ``env_path`` the value lives only in memory.
    """

    def __init__(
        self, env_path: Optional[Path] = None, env_key: str = SIMPLIFIED_MODE_ENV_KEY
    ) -> None:
        self.env_path = Path(env_path) if env_path else None
        self.env_key = env_key
        self._value: Optional[bool] = None

    def get(self) -> bool:
        if self._value is not None:
            return self._value
        if self.env_path is not None and self.env_path.exists():
            raw = dotenv_values(self.env_path).get(self.env_key)
            self._value = str(raw).lower() == "true"
            return self._value
        return False

    def set(self, value: bool) -> None:
        self._value = bool(value)
        if self.env_path is None:
            return
        try:
            self.env_path.parent.mkdir(parents=True, exist_ok=True)
            self.env_path.touch(exist_ok=True)
            set_key(
                str(self.env_path),
                self.env_key,
                "true" if value else "false",
                quote_mode="never",
            )
        except OSError as e:
            logger.error("Failed to save simplified mode preference: {}", e)
