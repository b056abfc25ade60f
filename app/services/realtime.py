"""
Real-time broadcast of issue events to connected clients.

Fire-and-forget: callers must not let a publish failure fail the request.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Set
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class RealtimeBroadcaster(ABC):

    @abstractmethod
    async def publish(self, event: Dict) -> None:
        pass


class WebSocketBroadcaster(RealtimeBroadcaster):
    """
    Fans events out to every WebSocket connected on /ws.

    Clients that fail to receive are dropped.
    """

    def __init__(self):
        self._clients: Set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.info(f"WebSocket client connected ({self.client_count} total)")
        await websocket.send_json({"type": "connected", "message": "WebSocket connection established"})

    async def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info(f"WebSocket client disconnected ({self.client_count} remaining)")

    async def publish(self, event: Dict) -> None:
        stale = []
        for client in list(self._clients):
            try:
                await client.send_json(event)
            except Exception as e:
                logger.debug(f"Dropping WebSocket client after send failure: {e}")
                stale.append(client)

        self._clients.difference_update(stale)


_broadcaster: Optional[WebSocketBroadcaster] = None


def get_broadcaster() -> WebSocketBroadcaster:
    """Get or create the WebSocketBroadcaster singleton."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = WebSocketBroadcaster()
    return _broadcaster
