"""
Redis Streams realtime emitter.

Appends order updates to a Redis Stream; the socket gateway that drives the
tracking screens consumes the stream and fans messages out to its rooms.
"""
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as aioredis

from multiorder.application.interfaces import RealtimeEventEmitter
from multiorder.utils.datetime import utc_now


logger = logging.getLogger(__name__)


class RedisStreamEventEmitter(RealtimeEventEmitter):
    """
    Publishes order updates to a Redis Stream.

    Message format: {
        "target_id": str,    # multi-order or sub-order id (the room)
        "event_name": str,   # status value, pickup_progress, location_update, ...
        "payload": str,      # JSON body
        "timestamp": str,    # ISO format
    }
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        stream_name: str = "multiorder:events",
        maxlen: int = 10000,
    ):
        self.redis_url = redis_url
        self.stream_name = stream_name
        self.maxlen = maxlen
        self._redis_client: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._redis_client is None:
            self._redis_client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self._redis_client.ping()
            logger.info(f"✅ Connected to Redis: {self.redis_url}")

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None
            logger.info("✅ Disconnected from Redis")

    async def emit_order_event(self, target_id: str, event_name: str, payload: Dict[str, Any]) -> None:
        if self._redis_client is None:
            await self.connect()

        message = {
            "target_id": target_id,
            "event_name": event_name,
            "payload": json.dumps(payload, default=str),
            "timestamp": utc_now().isoformat(),
        }
        msg_id = await self._redis_client.xadd(self.stream_name, message, maxlen=self.maxlen)
        logger.debug(f"Published {event_name} for {target_id} (msg_id={msg_id})")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
