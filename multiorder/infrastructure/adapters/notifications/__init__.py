"""Notification adapters.

Keep this package import-light: the webhook sink pulls in aiohttp, so import
concrete sinks directly from their modules when needed.
"""

__all__ = []
