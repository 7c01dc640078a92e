"""WebSocket event bus pushing snapshots and notifications to the UI.

Connected clients receive every event; clients that fail to receive
are dropped.
"""

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

_clients: set[WebSocket] = set()


def connect(websocket: WebSocket) -> None:
    """Register a WebSocket client for event broadcasts.

    Args:
        websocket: The WebSocket connection to add.
    """
    _clients.add(websocket)
    logger.info("ws_client_connected, total=%d", len(_clients))


def disconnect(websocket: WebSocket) -> None:
    """Remove a WebSocket client from the broadcast set.

    Args:
        websocket: The WebSocket connection to remove.
    """
    _clients.discard(websocket)
    logger.info("ws_client_disconnected, total=%d", len(_clients))


def get_clients() -> set[WebSocket]:
    """Return the current set of connected clients."""
    return _clients


async def broadcast_event(event_type: str, data: dict[str, Any]) -> None:
    """Send a typed event to all connected WebSocket clients.

    Args:
        event_type: Event name, e.g. "snapshot" or "notification".
        data: JSON-serializable payload.
    """
    message = {"type": event_type, "data": data}
    dead: list[WebSocket] = []
    for ws in list(_clients):
        try:
            await ws.send_json(message)
        except Exception:
            logger.warning("ws_client_send_failed, removing", exc_info=True)
            dead.append(ws)
    for ws in dead:
        _clients.discard(ws)
