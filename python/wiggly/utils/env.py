"""Utilities for resolving the system-level .env path consistently across OSes.

The system `.env` holds user secrets (the OpenAI key) and persisted
preferences such as simplified mode. Centralizing the path logic keeps the
loader, the credential store and the preference store pointed at one file.
"""

import os
import sys
from pathlib import Path


def get_system_env_dir() -> Path:
    """Return the OS user configuration directory for Wiggly.

    - macOS: ~/Library/Application Support/Wiggly
    - Linux: ~/.config/wiggly
    - Windows: %APPDATA%\\Wiggly

    ``WIGGLY_CONFIG_DIR`` overrides all of the above.
    """
    override = os.getenv("WIGGLY_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    home = Path.home()
    if os.name == "nt":
        appdata = os.getenv("APPDATA")
        base = Path(appdata) if appdata else (home / "AppData" / "Roaming")
        return base / "Wiggly"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "Wiggly"
    return home / ".config" / "wiggly"


def get_system_env_path() -> Path:
    """Return the full path to the system `.env` file."""
    return get_system_env_dir() / ".env"


def ensure_system_env_dir() -> Path:
    """Ensure the system config directory exists and return it."""
    d = get_system_env_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d


def debug_mode_enabled() -> bool:
    """Return whether debug logging is enabled via ``WIGGLY_DEBUG``."""
    return str(os.getenv("WIGGLY_DEBUG", "false")).lower() == "true"
