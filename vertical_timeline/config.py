"""
Configuration Management

Centralizes all configurable settings with environment variable overrides.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Get environment variable with optional default."""
    value = os.environ.get(key, default)
    if required and not value:
        raise ValueError(
            f"Required environment variable {key} is not set. "
            f"Set it with: export {key}='your-value'"
        )
    return value


# =============================================================================
# Storage Configuration
# =============================================================================

# Project root for relative paths
PROJECT_ROOT = _get_project_root()

# Default data folder, used when no folder was chosen or the chosen one is unusable
DEFAULT_DATA_DIR = Path(
    os.path.expanduser(get_env("TIMELINE_DATA_DIR", "~/Documents/TodoData"))
)

# File holding the unchecked items
ACTIVE_FILENAME = get_env("TIMELINE_ACTIVE_FILENAME", "todo.md")

# Settings database holding the persisted folder token
SETTINGS_DB = Path(
    os.path.expanduser(get_env("TIMELINE_SETTINGS_DB", "~/.vertical_timeline/settings.db"))
)


# =============================================================================
# Timeline Configuration
# =============================================================================

# Days shown before and after today
WINDOW_DAYS = int(get_env("TIMELINE_WINDOW_DAYS", "30"))

# Logging level name
LOG_LEVEL = get_env("TIMELINE_LOG_LEVEL", "INFO").upper()


# =============================================================================
# Helper to print current configuration
# =============================================================================

def print_config():
    """Print current configuration (for debugging)."""
    print("Current Configuration:")
    print(f"  TIMELINE_DATA_DIR: {DEFAULT_DATA_DIR}")
    print(f"  TIMELINE_ACTIVE_FILENAME: {ACTIVE_FILENAME}")
    print(f"  TIMELINE_SETTINGS_DB: {SETTINGS_DB}")
    print(f"  TIMELINE_WINDOW_DAYS: {WINDOW_DAYS}")
    print(f"  TIMELINE_LOG_LEVEL: {LOG_LEVEL}")
