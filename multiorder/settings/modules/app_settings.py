from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from multiorder.settings.modules.database_settings import DatabaseSettings
from multiorder.settings.modules.integrations_settings import IntegrationsSettings
from multiorder.settings.modules.logging_settings import LoggingSettings
from multiorder.settings.modules.orchestration_settings import OrchestrationSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    orchestration: OrchestrationSettings
    database: DatabaseSettings
    integrations: IntegrationsSettings
    logging: LoggingSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        orchestration=OrchestrationSettings(),
        database=DatabaseSettings(),
        integrations=IntegrationsSettings(),
        logging=LoggingSettings(),
    )
