"""
Runtime settings for the notification service and client.

Values come from the environment (optionally a .env file in the project
root) and fall back to defaults suitable for local development.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ROOT_DIR = Path(__file__).parent.parent
DEFAULT_DB_PATH = ROOT_DIR / "data" / "db.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


class Settings(BaseModel):
    """Service configuration."""
    db_path: Optional[Path] = Field(
        default=DEFAULT_DB_PATH,
        description="JSON database file; None keeps the store in memory"
    )
    seed: bool = Field(default=True, description="Seed a new database with sample records")
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    base_url: str = Field(
        default="http://127.0.0.1:3000",
        description="Server URL used by the client and the CLI client commands"
    )

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Build settings from NOTIFY_* environment variables."""
        load_dotenv(env_file or ROOT_DIR / ".env")

        db_path = Path(os.getenv("NOTIFY_DB_PATH") or DEFAULT_DB_PATH)
        if not db_path.is_absolute():
            # Relative paths are taken from the project root, not the cwd
            db_path = ROOT_DIR / db_path
        return cls(
            db_path=db_path,
            seed=_env_flag("NOTIFY_SEED", True),
            host=os.getenv("NOTIFY_HOST", "127.0.0.1"),
            port=int(os.getenv("NOTIFY_PORT", "3000")),
            log_level=os.getenv("NOTIFY_LOG_LEVEL", "INFO").upper(),
            base_url=os.getenv("NOTIFY_BASE_URL", "http://127.0.0.1:3000"),
        )

    @classmethod
    def in_memory(cls, seed: bool = True) -> "Settings":
        """Settings for a store that never touches disk."""
        return cls(db_path=None, seed=seed)
