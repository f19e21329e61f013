import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Subscription:
    """Cancellable stream of snapshots for one query.

    Iterating yields the current snapshot straight away and a fresh one each
    time something is published on ``channel``. Every ``async for`` opens its
    own bus subscription, so an ended stream can be iterated again;
    ``cancel()`` ends it for good.
    """

    def __init__(self, bus, channel: str, fetch: Callable[[], Awaitable[Any]]) -> None:
        self._bus = bus
        self._channel = channel
        self._fetch = fetch
        self._subscriber = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        if self._cancelled:
            return
        # subscribe before the first read so no update falls in between
        subscriber = await self._bus.subscribe(self._channel)
        self._subscriber = subscriber
        try:
            yield await self._fetch()
            while not self._cancelled:
                event: Optional[str] = await subscriber.get()
                if event is None or self._cancelled:
                    break
                yield await self._fetch()
        finally:
            await subscriber.cancel()
            self._subscriber = None
            logger.debug("Subscription on %s closed", self._channel)

    async def cancel(self) -> None:
        self._cancelled = True
        if self._subscriber is not None:
            await self._subscriber.cancel()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.cancel()
