"""Application-wide settings and configuration."""

from pathlib import Path
from typing import Optional


class Settings:
    """Centralized application settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
    LOGS_DIR = PROJECT_ROOT / "logs"

    # Cache settings
    CACHE_TTL_SECONDS = 5 * 60

    # Library defaults
    DEFAULT_LOCATION_ID = "calibre"

    # Logging
    LOGGER_NAME = "library_sync"

    @classmethod
    def ensure_directories(cls) -> None:
        """Ensure all required directories exist."""
        cls.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_logs_dir(cls, custom_path: Optional[Path] = None) -> Path:
        """Get the log directory, with optional override."""
        return custom_path or cls.LOGS_DIR
