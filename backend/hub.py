"""Room hub: WebSocket membership and fire-and-forget broadcast.

The dialogue runtime calls `emit()` synchronously from inside its handlers
and timer callbacks, so emitting only enqueues. Each connection owns a queue
and a sender task that drains it onto its socket in order.

Frames on the wire are JSON objects `{"event": ..., "data": {...}}`.
"""

import asyncio
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, room: str, username: str, websocket: WebSocket) -> None:
        self.room = room
        self.username = username
        self.websocket = websocket
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.sender: asyncio.Task | None = None

    async def pump(self) -> None:
        while True:
            frame = await self.queue.get()
            await self.websocket.send_json(frame)

    def __repr__(self) -> str:
        return f"Connection(room={self.room!r}, username={self.username!r})"


class RoomHub:
    def __init__(self) -> None:
        self._rooms: dict[str, list[Connection]] = {}

    def join(self, room: str, username: str, websocket: WebSocket) -> Connection:
        conn = Connection(room, username, websocket)
        conn.sender = asyncio.get_running_loop().create_task(conn.pump())
        self._rooms.setdefault(room, []).append(conn)
        logger.debug("%s joined room %s", username, room)
        return conn

    def leave(self, conn: Connection) -> None:
        members = self._rooms.get(conn.room, [])
        if conn in members:
            members.remove(conn)
        if not members:
            self._rooms.pop(conn.room, None)
        if conn.sender is not None:
            conn.sender.cancel()
        logger.debug("%s left room %s", conn.username, conn.room)

    def members(self, room: str) -> list[str]:
        return [conn.username for conn in self._rooms.get(room, [])]

    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None:
        """Broadcast to every connection in the room. Never blocks."""
        frame = {"event": event, "data": payload}
        for conn in self._rooms.get(room, []):
            conn.queue.put_nowait(frame)

    def send(self, conn: Connection, event: str, payload: dict[str, Any]) -> None:
        """Send to one connection only (errors, status replies)."""
        conn.queue.put_nowait({"event": event, "data": payload})
