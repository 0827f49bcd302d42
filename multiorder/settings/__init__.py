# Settings package
from multiorder.settings.modules import (
    AppSettings,
    DatabaseSettings,
    get_app_settings,
    IntegrationsSettings,
    LoggingSettings,
    OrchestrationSettings,
)

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "get_app_settings",
    "IntegrationsSettings",
    "LoggingSettings",
    "OrchestrationSettings",
]
