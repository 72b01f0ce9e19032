"""
HTTP Analyzer WebSocket Handler

Command channel for panels: each JSON message is a panel command and gets
the command result back. Commands that change shared state are announced
to every other connected panel.
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from httpanalyzer.api.commands import dispatch_command

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["websocket"])

# Commands whose effect other panels should hear about
MUTATING_ACTIONS = {"clear", "setFilter"}


# =============================================================================
# Connection Manager
# =============================================================================


class ConnectionManager:
    """Tracks connected panels."""

    def __init__(self) -> None:
        self._connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a panel connection."""
        await websocket.accept()
        self._connections.append(websocket)
        logger.info("websocket_connected", total_connections=len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a panel connection."""
        if websocket in self._connections:
            self._connections.remove(websocket)
        logger.info("websocket_disconnected", total_connections=len(self._connections))

    async def broadcast(self, message: dict, exclude: WebSocket | None = None) -> None:
        """Send a message to every connected panel."""
        disconnected = []

        for websocket in self._connections:
            if websocket is exclude:
                continue
            try:
                await websocket.send_json(message)
            except Exception:
                disconnected.append(websocket)

        # Clean up disconnected sockets
        for ws in disconnected:
            self.disconnect(ws)

    @property
    def count(self) -> int:
        return len(self._connections)


# Global connection manager instance
manager = ConnectionManager()


# =============================================================================
# WebSocket Endpoints
# =============================================================================


@router.websocket("/ws/panel")
async def panel_websocket(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for panel commands.

    Message Types (server → client):
    - connected: Connection confirmation
    - result: Result of a command sent by this client
    - changed: Another panel cleared the store or changed the filter
    - ping/pong: Keepalive
    """
    ctx = websocket.app.state.context
    await manager.connect(websocket)

    try:
        await websocket.send_json({"type": "connected", "filter": ctx.get_filter()})

        while True:
            try:
                text = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=30.0,  # Send ping every 30 seconds
                )
            except asyncio.TimeoutError:
                try:
                    await websocket.send_json({"type": "ping"})
                except Exception:
                    break
                continue

            try:
                data = json.loads(text)
            except ValueError:
                await websocket.send_json(
                    {"type": "result", "data": {"ok": False, "error": "invalid_command"}}
                )
                continue

            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            result = dispatch_command(ctx, data)
            await websocket.send_json({"type": "result", "data": result})

            action = data.get("action") if isinstance(data, dict) else None
            if result.get("ok") and action in MUTATING_ACTIONS:
                await manager.broadcast(
                    {"type": "changed", "action": action},
                    exclude=websocket,
                )

    except WebSocketDisconnect:
        logger.info("websocket_client_disconnected")
    except Exception as e:
        logger.error("websocket_error", error=str(e))
    finally:
        manager.disconnect(websocket)
