"""Application configuration via pydantic-settings.

Every key can be set from the environment with the ``MARKETPLACE_``
prefix (``MARKETPLACE_DATA_DIR=/var/lib/marketplace``) or from a ``.env``
file in the working directory.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKETPLACE_",
        env_file=".env",
        extra="ignore",
    )

    # Storage
    data_dir: Path = _DEFAULT_DATA_DIR
    store_lock_timeout_seconds: float = Field(default=5.0, gt=0)

    # Credentials
    secret_key: str = "change-me-in-production"
    token_algorithm: str = "HS256"
    user_token_minutes: int = Field(default=60, gt=0)

    # Guest sessions
    guest_session_hours: int = Field(default=24, gt=0)

    # Fulfillment
    stage_estimate_minutes: int = Field(default=10, gt=0)

    # Cleanup sweeper
    session_inactivity_hours: int = Field(default=24, gt=0)
    aggressive_cleanup: bool = False
    sweep_interval_seconds: int = Field(default=3600, gt=0)
    sweep_batch_size: int = Field(default=2000, gt=0)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
