"""Online presence for realtime connections.

Connections start anonymous and become authenticated after an
``{"type": "auth", "userId": <int>}`` frame. Every change in the set of
authenticated users is pushed to all open connections as
``{"type": "onlineUsers", "users": [...]}``.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class PresenceEntry:
    user_id: int
    connection: Any
    last_seen: datetime


class PresenceRegistry:
    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        # keyed by id(connection); websocket objects are not hashable
        self._connections: dict[int, Any] = {}
        self._authenticated: dict[int, int] = {}
        self._entries: dict[int, PresenceEntry] = {}

    def online_user_ids(self) -> list[int]:
        return sorted(self._entries)

    def is_user_online(self, user_id: int) -> bool:
        return user_id in self._entries

    def last_seen(self, user_id: int) -> Optional[datetime]:
        entry = self._entries.get(user_id)
        return entry.last_seen if entry else None

    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, connection: Any) -> None:
        async with self._lock:
            self._connections[id(connection)] = connection

    async def on_auth(self, connection: Any, user_id: int) -> None:
        key = id(connection)
        async with self._lock:
            self._connections[key] = connection
            previous = self._authenticated.get(key)
            if previous is not None and previous != user_id:
                stale = self._entries.get(previous)
                if stale is not None and stale.connection is connection:
                    del self._entries[previous]
            self._authenticated[key] = user_id
            self._entries[user_id] = PresenceEntry(user_id=user_id, connection=connection, last_seen=self._clock())
        logger.info("User %s is online", user_id)
        await self.broadcast()

    async def handle_message(self, connection: Any, raw: Union[str, bytes, None]) -> None:
        if raw is None:
            logger.warning("Ignoring empty presence frame")
            return
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            logger.warning("Ignoring malformed presence frame: %r", raw[:200])
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring presence frame that is not an object: %r", data)
            return

        self._touch(connection)

        message_type = data.get("type")
        if message_type == "auth":
            user_id = data.get("userId")
            if isinstance(user_id, bool) or not isinstance(user_id, int):
                logger.warning("Ignoring auth frame with non-numeric userId: %r", user_id)
                return
            await self.on_auth(connection, user_id)
            return
        logger.debug("Ignoring presence frame of type %r", message_type)

    async def on_disconnect_or_error(self, connection: Any) -> None:
        key = id(connection)
        removed: Optional[int] = None
        async with self._lock:
            self._connections.pop(key, None)
            user_id = self._authenticated.pop(key, None)
            if user_id is not None:
                entry = self._entries.get(user_id)
                if entry is not None and entry.connection is connection:
                    del self._entries[user_id]
                    removed = user_id
        if removed is not None:
            logger.info("User %s went offline", removed)
            await self.broadcast()

    async def broadcast(self) -> None:
        message = json.dumps({"type": "onlineUsers", "users": self.online_user_ids()})
        peers = list(self._connections.values())
        results = await asyncio.gather(*(peer.send_text(message) for peer in peers), return_exceptions=True)
        for peer, result in zip(peers, results):
            if isinstance(result, Exception):
                logger.warning("Failed to deliver presence update to %r: %s", peer, result)

    def _touch(self, connection: Any) -> None:
        user_id = self._authenticated.get(id(connection))
        if user_id is None:
            return
        entry = self._entries.get(user_id)
        if entry is not None and entry.connection is connection:
            entry.last_seen = self._clock()
