from __future__ import annotations

from pydantic import Field

from multiorder.settings.base import MultiOrderBaseSettings


class OrchestrationSettings(MultiOrderBaseSettings):
    """
    Business rules of the orchestration core.
    Loaded from MULTIORDER_* environment variables.
    """

    cancellation_window_seconds: int = Field(default=120, ge=0)
    order_number_prefix: str = Field(default="MO", pattern=r"^[A-Z]{2,4}$")
    sub_order_number_prefix: str = Field(default="KS", pattern=r"^[A-Z]{2,4}$")
    # Extra attempts after an optimistic version conflict
    max_concurrency_retries: int = Field(default=3, ge=0)
    default_cancel_reason: str = "Cancelled by user"

    class Config:
        env_prefix = "MULTIORDER_"
