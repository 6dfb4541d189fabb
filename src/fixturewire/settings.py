from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from fixturewire.lock_mode import LockMode


class HarnessSettings(BaseSettings):
    """Settings of the pytest integration, read from ``FIXTUREWIRE_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="FIXTUREWIRE_")

    config_path: Path = Path("appsettings.json")
    """Configuration document used by collections that do not name their own."""
    lock_mode: LockMode = LockMode.THREAD
    """Lock strategy for construct-once resolution in collection containers."""
    default_collection: str = "default"
    """Collection joined by tests without a ``collection`` marker."""
