"""
Webhook Notification Sink Implementation.

POSTs each notification as JSON to a configured endpoint (push gateway,
chat bridge, ...).
"""
import logging

import aiohttp

from multiorder.application.interfaces import Notification, NotificationSink
from multiorder.settings import IntegrationsSettings


logger = logging.getLogger(__name__)


class WebhookNotificationSink(NotificationSink):
    """
    Webhook implementation of the notification sink.

    Payload: {"user_id": ..., "notification": {"type", "title", "message", "data"}}
    """

    def __init__(self, settings: IntegrationsSettings):
        self.settings = settings
        self.webhook_url = settings.webhook_url
        self.timeout = aiohttp.ClientTimeout(total=settings.webhook_timeout_seconds)
        logger.info("WebhookNotificationSink initialized")

    async def notify(self, user_id: str, notification: Notification) -> None:
        if not self.webhook_url:
            logger.warning("Notification webhook_url not configured, skipping notification")
            return

        payload = {"user_id": user_id, "notification": notification.to_dict()}
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(self.webhook_url, json=payload) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    logger.error(f"Notification webhook error: {response.status} - {error_text}")
                else:
                    logger.info(f"Notification '{notification.type}' sent to {user_id}")
