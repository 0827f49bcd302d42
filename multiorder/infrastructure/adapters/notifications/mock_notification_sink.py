"""
Mock Notification Sink Implementation.

Records notifications instead of delivering them. Useful for testing and demos.
"""
from typing import List, Optional, Tuple
import logging

from multiorder.application.interfaces import Notification, NotificationSink


logger = logging.getLogger(__name__)


class MockNotificationSink(NotificationSink):
    """Keeps every (user_id, notification) pair it was asked to deliver."""

    def __init__(self):
        self.notifications_sent: List[Tuple[str, Notification]] = []
        logger.info("MockNotificationSink initialized (console logging)")

    async def notify(self, user_id: str, notification: Notification) -> None:
        self.notifications_sent.append((user_id, notification))
        logger.info(f"🔔 {notification.title} -> {user_id}: {notification.message}")

    def get_notifications(self, user_id: Optional[str] = None) -> List[Notification]:
        """Notifications sent (to ``user_id`` if given), oldest first."""
        return [n for uid, n in self.notifications_sent if user_id is None or uid == user_id]

    def clear(self) -> None:
        """Clear notifications (for testing)."""
        self.notifications_sent.clear()
