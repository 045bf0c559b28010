"""Configuration settings loaded from the environment."""

import os
from dataclasses import dataclass, field

DEFAULT_SHEET_INDEX = 1  # Second sheet
DEFAULT_COLUMN_INDEX = 9  # Column J
DEFAULT_MAX_FILES_PER_SESSION = 100
DEFAULT_MAX_FILE_SIZE_MB = 50
DEFAULT_SESSION_TTL_HOURS = 24
DEFAULT_CLEANUP_INTERVAL_MINUTES = 30
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PORT = 8000


@dataclass
class PlateSettings:
    """Central configuration for plate-merger."""

    # Initial selectors for a new session
    default_sheet_index: int = field(default=DEFAULT_SHEET_INDEX)
    default_column_index: int = field(default=DEFAULT_COLUMN_INDEX)

    # Backend limits
    max_files_per_session: int = field(default=DEFAULT_MAX_FILES_PER_SESSION)
    max_file_size_mb: int = field(default=DEFAULT_MAX_FILE_SIZE_MB)
    session_ttl_hours: int = field(default=DEFAULT_SESSION_TTL_HOURS)
    cleanup_interval_minutes: int = field(default=DEFAULT_CLEANUP_INTERVAL_MINUTES)

    log_level: str = field(default=DEFAULT_LOG_LEVEL)
    port: int = field(default=DEFAULT_PORT)

    @classmethod
    def load_from_env(cls) -> "PlateSettings":
        """Load settings from environment variables."""
        return cls(
            default_sheet_index=int(os.getenv("PLATE_DEFAULT_SHEET_INDEX", DEFAULT_SHEET_INDEX)),
            default_column_index=int(os.getenv("PLATE_DEFAULT_COLUMN_INDEX", DEFAULT_COLUMN_INDEX)),
            max_files_per_session=int(os.getenv("PLATE_MAX_FILES_PER_SESSION", DEFAULT_MAX_FILES_PER_SESSION)),
            max_file_size_mb=int(os.getenv("PLATE_MAX_FILE_SIZE_MB", DEFAULT_MAX_FILE_SIZE_MB)),
            session_ttl_hours=int(os.getenv("PLATE_SESSION_TTL_HOURS", DEFAULT_SESSION_TTL_HOURS)),
            cleanup_interval_minutes=int(
                os.getenv("PLATE_CLEANUP_INTERVAL_MINUTES", DEFAULT_CLEANUP_INTERVAL_MINUTES)
            ),
            log_level=os.getenv("PLATE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            port=int(os.getenv("PORT", DEFAULT_PORT)),
        )


# Global settings instance
settings = PlateSettings.load_from_env()
