from __future__ import annotations

from multiorder.settings.base import MultiOrderBaseSettings


class LoggingSettings(MultiOrderBaseSettings):
    """Loaded from MULTIORDER_LOG_* environment variables."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    class Config:
        env_prefix = "MULTIORDER_LOG_"
