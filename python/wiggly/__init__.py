"""Wiggly - AI assistant layer for a trading journal."""

__version__ = "0.1.0"
__author__ = "Wiggly Team"
__description__ = "Context assembly, caching and chat orchestration for a trading-journal AI assistant"

__all__ = [
    "__version__",
    "__author__",
    "__description__",
]

import shutil
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from wiggly.utils.env import (
    debug_mode_enabled,
    ensure_system_env_dir,
    get_system_env_path,
)


def load_env_file_early() -> None:
    """Load environment variables from the system application directory.

    Behavior:
    - Loads from the system path (e.g. ~/.config/wiggly/.env on Linux)
    - Auto-creates it from the repository's .env.example if missing
    - Never raises; a broken .env must not break imports
    """
    try:
        project_root = Path(__file__).resolve().parent.parent.parent
        sys_env = get_system_env_path()
        example_file = project_root / ".env.example"

        try:
            if not sys_env.exists() and example_file.exists():
                ensure_system_env_dir()
                shutil.copy(example_file, sys_env)
                if debug_mode_enabled():
                    logger.info("Created system .env from example: {}", sys_env)
        except OSError as e:
            if debug_mode_enabled():
                logger.info("Failed to prepare system .env: {}", e)

        if sys_env.exists():
            # override=True so the user's .env wins over inherited variables
            load_dotenv(sys_env, override=True)
            if debug_mode_enabled():
                logger.info("Environment variables loaded from {}", sys_env)
        elif debug_mode_enabled():
            logger.info("No system .env file found at {}", sys_env)
    except Exception as e:
        if debug_mode_enabled():
            logger.info("Error loading .env file: {}", e)


# Load environment variables immediately when package is imported
load_env_file_early()
