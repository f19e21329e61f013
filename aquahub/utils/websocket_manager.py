import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from aquahub.utils.subscriptions import Subscription

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Live WebSocket streams per user, each backed by one Subscription."""

    def __init__(self) -> None:
        self.active_connections: Dict[str, List[Subscription]] = {}

    async def connect(self, user_id: str, websocket: WebSocket, subscription: Subscription) -> None:
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(subscription)

    async def disconnect(self, user_id: str, subscription: Subscription) -> None:
        await subscription.cancel()
        subs = self.active_connections.get(user_id)
        if subs is None:
            return
        try:
            subs.remove(subscription)
        except ValueError:
            pass
        if not subs:
            del self.active_connections[user_id]

    async def teardown(self, user_id: str) -> None:
        """Cancel every stream a user has open, e.g. when they sign out."""
        for subscription in list(self.active_connections.get(user_id, [])):
            await self.disconnect(user_id, subscription)

    async def stream(
        self,
        user_id: str,
        websocket: WebSocket,
        subscription: Subscription,
        serialize: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        await self.connect(user_id, websocket, subscription)

        async def _watch_disconnect():
            try:
                while True:
                    await websocket.receive_text()
            except WebSocketDisconnect:
                pass
            await subscription.cancel()

        watcher = asyncio.create_task(_watch_disconnect())
        try:
            async for snapshot in subscription:
                payload = serialize(snapshot) if serialize else snapshot
                await websocket.send_json(jsonable_encoder(payload))
        except WebSocketDisconnect:
            logger.debug("WebSocket for %s closed while sending", user_id)
        finally:
            watcher.cancel()
            await self.disconnect(user_id, subscription)


manager = ConnectionManager()
