"""Configuration management for the Task API.

Settings are read from environment variables.  A local ``.env`` file is
loaded first with python-dotenv; variables already present in the process
environment take precedence over the file.
"""

import os
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv


class AppConfig:
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the service works out of the box.

    Environment variables:
        APP_DB_PATH: Path to the SQLite database file (default: tasks.sqlite)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_PORT: API server port (default: 8080)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_LOG_LEVEL: Root log level name (default: INFO)
    """

    def __init__(self) -> None:
        self.db_path = Path(os.getenv("APP_DB_PATH", "tasks.sqlite"))
        self.api_host = os.getenv("APP_HOST", "127.0.0.1")
        self.api_port = int(os.getenv("APP_PORT", "8080"))
        self.log_format = os.getenv("APP_LOG_FORMAT", "text").lower()
        self.log_level = os.getenv("APP_LOG_LEVEL", "INFO").upper()

    def to_dict(self) -> Dict[str, Any]:
        """Return the settings as plain strings and ints, for logging."""
        return {
            k: str(v) if isinstance(v, Path) else v
            for k, v in self.__dict__.items()
            if not k.startswith("_")
        }

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "AppConfig":
        """Create an AppConfig populated from the environment.

        Args:
            dotenv_path: Explicit ``.env`` file to load; when omitted
                python-dotenv searches upward from the working directory.
        """
        load_dotenv(dotenv_path=dotenv_path, override=False)
        return cls()
