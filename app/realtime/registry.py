"""
In-process room registry for the real-time layer.

A room is keyed by group id and holds the connections that joined it plus a
roster of online users keyed by user id (several connections of one user
collapse into one roster entry). State is per process and is lost on restart.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

from app.core.schemas import CamelModel
from app.core.security import SessionUser

logger = logging.getLogger(__name__)


class PresenceEntry(CamelModel):
    user_id: str
    display_name: str
    connection_id: str


class Connection:
    """One WebSocket plus the identity attached at handshake and the rooms it joined."""

    def __init__(self, websocket: WebSocket, user: Optional[SessionUser] = None):
        self.websocket = websocket
        self.user = user
        self.id = uuid.uuid4().hex
        self.rooms: Set[str] = set()
        self.closed = False

    @property
    def authenticated(self) -> bool:
        return self.user is not None

    async def send(self, event: str, data: Dict[str, Any]) -> bool:
        if self.closed:
            return False
        try:
            await self.websocket.send_json({"event": event, "data": data})
            return True
        except Exception as e:
            logger.debug(f"Send to connection {self.id} failed: {e}")
            self.closed = True
            return False

    async def close(self, code: int = 1001) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self.websocket.close(code=code)
        except Exception as e:
            logger.debug(f"Closing connection {self.id} failed: {e}")


class RoomRegistry:
    def __init__(self):
        self._rooms: Dict[str, Dict[str, Connection]] = {}
        self._rosters: Dict[str, Dict[str, PresenceEntry]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock(self, group_id: str) -> asyncio.Lock:
        return self._locks.setdefault(group_id, asyncio.Lock())

    async def join(self, group_id: str, connection: Connection) -> bool:
        """Add an authenticated connection to a room. Returns False if it was already there."""
        if connection.user is None:
            raise ValueError("Only authenticated connections can join rooms")
        async with self._lock(group_id):
            members = self._rooms.setdefault(group_id, {})
            newly_joined = connection.id not in members
            members[connection.id] = connection
            connection.rooms.add(group_id)
            self._rosters.setdefault(group_id, {})[connection.user.user_id] = PresenceEntry(
                user_id=connection.user.user_id,
                display_name=connection.user.display_name,
                connection_id=connection.id,
            )
        if newly_joined:
            logger.info(f"User {connection.user.user_id} joined room {group_id}")
        return newly_joined

    async def leave(self, group_id: str, connection: Connection) -> bool:
        """Remove a connection from a room and its user from the roster. False if it was not in the room."""
        if group_id not in self._rooms:
            return False
        async with self._lock(group_id):
            members = self._rooms.get(group_id)
            if not members or connection.id not in members:
                return False
            del members[connection.id]
            if not members:
                del self._rooms[group_id]
            connection.rooms.discard(group_id)

            roster = self._rosters.get(group_id)
            if roster is not None and connection.user is not None:
                roster.pop(connection.user.user_id, None)
                if not roster:
                    del self._rosters[group_id]
        if group_id not in self._rooms and group_id not in self._rosters:
            lock = self._locks.get(group_id)
            if lock is not None and not lock.locked():
                del self._locks[group_id]
        logger.info(f"Connection {connection.id} left room {group_id}")
        return True

    async def disconnect(self, connection: Connection) -> List[str]:
        """Leave every room the connection joined. Returns the rooms it was removed from."""
        left = []
        for group_id in sorted(connection.rooms):
            if await self.leave(group_id, connection):
                left.append(group_id)
        return left

    def is_member(self, group_id: str, connection: Connection) -> bool:
        return connection.id in self._rooms.get(group_id, {})

    def online_users(self, group_id: str) -> List[Dict[str, Any]]:
        roster = self._rosters.get(group_id, {})
        return [entry.model_dump(by_alias=True) for entry in roster.values()]

    def connection_count(self, group_id: str) -> int:
        return len(self._rooms.get(group_id, {}))

    async def emit(
        self,
        group_id: str,
        event: str,
        data: Dict[str, Any],
        exclude: Optional[Connection] = None,
    ) -> int:
        """Send an event to every live connection in the room except `exclude`. Returns the delivery count."""
        targets = [c for c in self._rooms.get(group_id, {}).values() if c is not exclude]
        delivered = 0
        for connection in targets:
            if await connection.send(event, data):
                delivered += 1
        return delivered

    async def close(self) -> None:
        """Close every connection and drop all state (application shutdown)."""
        connections: Dict[str, Connection] = {}
        for members in self._rooms.values():
            connections.update(members)
        for connection in connections.values():
            await connection.close()
        self._rooms.clear()
        self._rosters.clear()
        self._locks.clear()
        logger.info(f"Room registry closed ({len(connections)} connection(s))")
