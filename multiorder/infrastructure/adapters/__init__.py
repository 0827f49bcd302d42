"""
Collaborator adapters for notifications and realtime broadcasts.

Network-backed adapters are imported lazily so the in-memory ones work
without aiohttp or redis being importable at startup.
"""
import logging
from typing import Optional

from multiorder.application.interfaces import NotificationSink, RealtimeEventEmitter
from multiorder.settings import IntegrationsSettings, get_app_settings


logger = logging.getLogger(__name__)


def build_notification_sink(settings: Optional[IntegrationsSettings] = None) -> NotificationSink:
    """Webhook sink when enabled in settings, otherwise the recording mock."""
    settings = settings or get_app_settings().integrations
    if settings.webhook_enabled:
        from multiorder.infrastructure.adapters.notifications.webhook_notification_sink import (
            WebhookNotificationSink,
        )
        return WebhookNotificationSink(settings)

    from multiorder.infrastructure.adapters.notifications.mock_notification_sink import MockNotificationSink
    logger.info("Notification webhook disabled, using MockNotificationSink")
    return MockNotificationSink()


def build_event_emitter(settings: Optional[IntegrationsSettings] = None) -> RealtimeEventEmitter:
    """Redis Streams emitter when enabled in settings, otherwise in-memory."""
    settings = settings or get_app_settings().integrations
    if settings.redis_enabled:
        from multiorder.infrastructure.adapters.realtime.redis_stream_emitter import RedisStreamEventEmitter
        return RedisStreamEventEmitter(
            redis_url=settings.redis_url,
            stream_name=settings.redis_stream_name,
            maxlen=settings.redis_stream_maxlen,
        )

    from multiorder.infrastructure.adapters.realtime.in_memory_emitter import InMemoryEventEmitter
    logger.info("Redis disabled, using InMemoryEventEmitter")
    return InMemoryEventEmitter()


__all__ = ["build_event_emitter", "build_notification_sink"]
