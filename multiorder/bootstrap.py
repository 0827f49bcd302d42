"""
Wiring for the orchestration services.

Builds the facade and query service from settings: SQLAlchemy persistence
with the configured database, and the notification/realtime adapters the
integration settings enable.
"""
from typing import Optional

from multiorder.application.interfaces import NotificationSink, RealtimeEventEmitter, UnitOfWorkFactory
from multiorder.application.services import MultiOrderQueryService, OrchestrationFacade
from multiorder.infrastructure.adapters import build_event_emitter, build_notification_sink
from multiorder.infrastructure.database import (
    create_engine,
    create_session_factory,
    create_uow_factory,
    get_engine,
)
from multiorder.settings import AppSettings, get_app_settings


def get_uow_factory(settings: Optional[AppSettings] = None) -> UnitOfWorkFactory:
    """
    Unit-of-work factory over the configured database.

    Without explicit settings the process-wide engine is shared; explicit
    settings get an engine of their own.
    """
    if settings is None:
        settings = get_app_settings()
        bind = get_engine()
    else:
        bind = create_engine(settings.database)
    return create_uow_factory(
        create_session_factory(bind),
        sub_order_prefix=settings.orchestration.sub_order_number_prefix,
    )


def create_facade(
    settings: Optional[AppSettings] = None,
    uow_factory: Optional[UnitOfWorkFactory] = None,
    notifications: Optional[NotificationSink] = None,
    emitter: Optional[RealtimeEventEmitter] = None,
) -> OrchestrationFacade:
    """
    Build an OrchestrationFacade.

    Args:
        settings: Application settings (cached environment settings by default)
        uow_factory: Override persistence (e.g. the in-memory store in tests)
        notifications: Override the notification sink
        emitter: Override the realtime emitter
    """
    resolved = settings or get_app_settings()
    return OrchestrationFacade(
        uow_factory=uow_factory or get_uow_factory(settings),
        notifications=notifications or build_notification_sink(resolved.integrations),
        emitter=emitter or build_event_emitter(resolved.integrations),
        settings=resolved.orchestration,
    )


def create_query_service(
    settings: Optional[AppSettings] = None,
    uow_factory: Optional[UnitOfWorkFactory] = None,
) -> MultiOrderQueryService:
    """Build a MultiOrderQueryService over the same persistence."""
    return MultiOrderQueryService(uow_factory or get_uow_factory(settings))
