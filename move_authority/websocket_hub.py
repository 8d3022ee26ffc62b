from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class PlayerWebSocketHub:
    """Correction channel: one live socket per player.

    A player only ever has one game client, so a reconnect replaces the previous
    socket (which is closed). Payloads should be JSON-serializable dicts.

    Single-process only; several API replicas would need redis pub/sub instead.
    """

    def __init__(self) -> None:
        self._sockets: dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()

    async def connect(self, player_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            previous = self._sockets.get(player_id)
            self._sockets[player_id] = websocket
        if previous is not None:
            logger.info("Player %s reconnected; closing the previous correction socket", player_id)
            await previous.close(code=1000)

    async def disconnect(self, player_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            # A late disconnect from a replaced socket must not drop the new one.
            if self._sockets.get(player_id) is websocket:
                del self._sockets[player_id]

    def is_connected(self, player_id: str) -> bool:
        return player_id in self._sockets

    async def send(self, player_id: str, payload: dict[str, object]) -> bool:
        """Push to the player's socket. Returns False when nothing was delivered."""

        async with self._lock:
            ws = self._sockets.get(player_id)
        if ws is None:
            return False

        try:
            await ws.send_json(payload)
        except Exception:
            logger.warning("Dropping dead correction socket for player %s", player_id, exc_info=True)
            await self.disconnect(player_id, ws)
            return False
        return True


hub = PlayerWebSocketHub()
