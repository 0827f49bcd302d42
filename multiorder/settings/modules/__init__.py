# Settings modules
from .app_settings import AppSettings, get_app_settings
from .database_settings import DatabaseSettings
from .integrations_settings import IntegrationsSettings
from .logging_settings import LoggingSettings
from .orchestration_settings import OrchestrationSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "DatabaseSettings",
    "IntegrationsSettings",
    "LoggingSettings",
    "OrchestrationSettings",
]
