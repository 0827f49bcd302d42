"""Settings, logging setup and service wiring."""
import logging

import pytest
from pydantic import ValidationError

from multiorder.application.services import MultiOrderQueryService, OrchestrationFacade
from multiorder.bootstrap import create_facade, create_query_service, get_uow_factory
from multiorder.infrastructure.adapters.notifications.mock_notification_sink import MockNotificationSink
from multiorder.infrastructure.database import config as database_config, SqlAlchemyUnitOfWork
from multiorder.infrastructure.logging import ROOT_LOGGER, configure_logging
from multiorder.settings import (
    AppSettings,
    DatabaseSettings,
    get_app_settings,
    IntegrationsSettings,
    LoggingSettings,
    OrchestrationSettings,
)


@pytest.fixture
def app_settings():
    return AppSettings(
        orchestration=OrchestrationSettings(cancellation_window_seconds=300),
        database=DatabaseSettings(database_url="sqlite+aiosqlite:///:memory:"),
        integrations=IntegrationsSettings(),
        logging=LoggingSettings(),
    )


@pytest.fixture
def package_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    logger.handlers.clear()
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestSettings:
    def test_orchestration_defaults(self):
        settings = OrchestrationSettings()
        assert settings.cancellation_window_seconds == 120
        assert settings.order_number_prefix == "MO"
        assert settings.sub_order_number_prefix == "KS"
        assert settings.max_concurrency_retries == 3

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MULTIORDER_CANCELLATION_WINDOW_SECONDS", "300")
        monkeypatch.setenv("MULTIORDER_DB_DATABASE_URL", "postgresql+asyncpg://db/orders")
        monkeypatch.setenv("MULTIORDER_INTEGRATIONS_REDIS_ENABLED", "true")

        assert OrchestrationSettings().cancellation_window_seconds == 300
        assert DatabaseSettings().database_url == "postgresql+asyncpg://db/orders"
        assert IntegrationsSettings().redis_enabled is True

    @pytest.mark.parametrize("field, value", [("order_number_prefix", "mo"), ("max_concurrency_retries", -1)])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            OrchestrationSettings(**{field: value})

    def test_app_settings_are_cached(self):
        get_app_settings.cache_clear()
        try:
            assert get_app_settings() is get_app_settings()
        finally:
            get_app_settings.cache_clear()


class TestLogging:
    def test_configure_once(self, package_logger):
        configure_logging(LoggingSettings(level="debug"))
        logger = configure_logging(LoggingSettings(level="warning"))

        assert logger is package_logger
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING


class TestWiring:
    def test_facade_from_settings(self, app_settings, store):
        facade = create_facade(app_settings, uow_factory=store.unit_of_work)

        assert isinstance(facade, OrchestrationFacade)
        assert facade.cancellation_window.total_seconds() == 300
        assert isinstance(facade._side_effects._notifications, MockNotificationSink)

    def test_query_service(self, store):
        assert isinstance(create_query_service(uow_factory=store.unit_of_work), MultiOrderQueryService)

    def test_database_unit_of_work_factory(self, app_settings):
        factory = get_uow_factory(app_settings)
        uow = factory()

        assert isinstance(uow, SqlAlchemyUnitOfWork)
        with pytest.raises(RuntimeError):
            uow.session

    def test_default_services_share_the_process_engine(self, monkeypatch):
        monkeypatch.setenv("MULTIORDER_DB_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.setattr(database_config, "engine", None)
        get_app_settings.cache_clear()
        try:
            facade = create_facade()
            queries = create_query_service()
        finally:
            get_app_settings.cache_clear()

        facade_engine = facade._uow_factory()._session_factory.kw["bind"]
        query_engine = queries._uow_factory()._session_factory.kw["bind"]
        assert facade_engine is query_engine
        assert facade_engine is database_config.engine
