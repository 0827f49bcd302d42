from __future__ import annotations

from typing import Optional

from multiorder.settings.base import MultiOrderBaseSettings


class IntegrationsSettings(MultiOrderBaseSettings):
    """
    Notification webhook and realtime stream settings.
    Loaded from MULTIORDER_INTEGRATIONS_* environment variables.
    """

    webhook_enabled: bool = False
    webhook_url: Optional[str] = None
    webhook_timeout_seconds: float = 5.0

    redis_enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    redis_stream_name: str = "multiorder:events"
    redis_stream_maxlen: int = 10000

    class Config:
        env_prefix = "MULTIORDER_INTEGRATIONS_"
