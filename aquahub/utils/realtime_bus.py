import asyncio
import logging
from collections import defaultdict
from typing import Dict, Optional, Set

import redis.asyncio as redis

from aquahub.config import settings

logger = logging.getLogger(__name__)


def conversations_topic(user_id: str) -> str:
    return f"conversations:{user_id}"


def messages_topic(conversation_id: str) -> str:
    return f"messages:{conversation_id}"


def notifications_topic(user_id: str) -> str:
    return f"notifications:{user_id}"


class LocalBus:
    """In-process fan-out, used when no Redis is configured (single worker)."""

    enabled = True

    def __init__(self) -> None:
        self._queues: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    async def publish(self, channel: str, message: str) -> None:
        for queue in list(self._queues.get(channel, ())):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                # a refresh is already pending for this subscriber
                pass

    async def subscribe(self, channel: str) -> "_LocalSubscriber":
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._queues[channel].add(queue)
        return _LocalSubscriber(self, channel, queue)

    def _remove(self, channel: str, queue: asyncio.Queue) -> None:
        queues = self._queues.get(channel)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._queues[channel]

    def subscriber_count(self, channel: str) -> int:
        return len(self._queues.get(channel, ()))


class _LocalSubscriber:

    def __init__(self, bus: LocalBus, channel: str, queue: asyncio.Queue) -> None:
        self._bus = bus
        self._channel = channel
        self._queue = queue
        self._closed = False

    async def get(self) -> Optional[str]:
        """Next message, or None once cancelled."""
        if self._closed:
            return None
        return await self._queue.get()

    async def cancel(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._bus._remove(self._channel, self._queue)
        # wake a pending get(); a full queue means nobody is waiting
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass


class RedisBus:

    enabled = True

    def __init__(self, url: str) -> None:
        self._redis = redis.from_url(url)

    async def publish(self, channel: str, message: str) -> None:
        await self._redis.publish(channel, message)

    async def subscribe(self, channel: str) -> "_RedisSubscriber":
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(channel)
        return _RedisSubscriber(pubsub, channel)

    async def close(self) -> None:
        await self._redis.aclose()


class _RedisSubscriber:

    def __init__(self, pubsub, channel: str) -> None:
        self._pubsub = pubsub
        self._channel = channel
        self._running = True

    async def get(self) -> Optional[str]:
        while self._running:
            msg = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if msg and msg.get("type") == "message":
                data = msg.get("data")
                if isinstance(data, bytes):
                    data = data.decode("utf-8")
                return data
        return None

    async def cancel(self) -> None:
        if not self._running:
            return
        self._running = False
        await self._pubsub.unsubscribe(self._channel)
        await self._pubsub.aclose()


_bus = None


async def get_bus():
    global _bus
    if _bus is not None:
        return _bus
    if settings.REDIS_URL:
        _bus = RedisBus(settings.REDIS_URL)
    else:
        _bus = LocalBus()
    return _bus


async def close_bus() -> None:
    global _bus
    if isinstance(_bus, RedisBus):
        await _bus.close()
    _bus = None


async def publish_event(channel: str, message: str) -> None:
    """Best-effort notify subscribers; never fails the write that triggered it."""
    try:
        bus = await get_bus()
        await bus.publish(channel, message)
    except Exception:
        logger.warning("Failed to publish event on %s", channel, exc_info=True)
