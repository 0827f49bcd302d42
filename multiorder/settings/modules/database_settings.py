from __future__ import annotations

from multiorder.settings.base import MultiOrderBaseSettings


class DatabaseSettings(MultiOrderBaseSettings):
    """
    Database configuration settings.
    Loaded from MULTIORDER_DB_* environment variables.
    """

    # postgresql+asyncpg://... in production
    database_url: str = "sqlite+aiosqlite:///./multiorder.db"

    # Connection pool settings (ignored by SQLite)
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 3600  # 1 hour

    echo_sql: bool = False

    class Config:
        env_prefix = "MULTIORDER_DB_"
