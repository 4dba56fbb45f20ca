"""
Per-connection event handling.

State machine: unauthenticated -> authenticated (identity attached at
handshake, never renegotiated) -> in rooms -> disconnected. Privileged
events on an unauthenticated connection are answered with an error event;
the connection stays open.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict

import pydantic

from app.core.exceptions import AppError, AuthError, ForbiddenError, validation_details
from app.modules.chat.service import MessageService
from app.modules.groups.service import GroupService
from app.realtime import events
from app.realtime.registry import Connection, RoomRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


class RealtimeSession:
    def __init__(
        self,
        connection: Connection,
        rooms: RoomRegistry,
        groups: GroupService,
        messages: MessageService,
    ):
        self.connection = connection
        self.rooms = rooms
        self.groups = groups
        self.messages = messages
        self._handlers: Dict[str, Handler] = {
            events.JOIN_GROUP: self.on_join_group,
            events.LEAVE_GROUP: self.on_leave_group,
            events.SEND_MESSAGE: self.on_send_message,
            events.TYPING: self.on_typing,
            events.STOP_TYPING: self.on_stop_typing,
        }

    async def error(self, message: str) -> None:
        await self.connection.send(events.ERROR, {"message": message})

    async def handle_frame(self, raw: str) -> None:
        """Decode one text frame and dispatch it. Failures become error events."""
        try:
            frame = json.loads(raw)
        except ValueError:
            await self.error("Malformed event: expected JSON.")
            return
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            await self.error("Malformed event: missing event name.")
            return

        handler = self._handlers.get(frame["event"])
        if handler is None:
            await self.error(f"Unknown event: {frame['event']}")
            return
        data = frame.get("data") or {}
        if not isinstance(data, dict):
            await self.error("Malformed event: data must be an object.")
            return

        try:
            await handler(data)
        except pydantic.ValidationError as e:
            details = validation_details(e.errors())
            await self.error(details[0]["message"] if details else "Invalid event payload.")
        except AppError as e:
            await self.error(e.message)
        except Exception:
            logger.exception(f"Unhandled error in {frame['event']} on connection {self.connection.id}")
            await self.error("An unexpected server error occurred.")

    def _require_auth(self) -> None:
        if not self.connection.authenticated:
            raise AuthError("Authentication required.")

    def _identity(self) -> Dict[str, str]:
        user = self.connection.user
        return {"userId": user.user_id, "displayName": user.display_name}

    async def on_join_group(self, data: Dict[str, Any]) -> None:
        self._require_auth()
        group_id = events.GroupEvent.model_validate(data).group_id
        # Always re-check the store; group membership may have changed since the handshake
        await self.groups.get_group_for_member(group_id, self.connection.user.user_id)

        newly_joined = await self.rooms.join(group_id, self.connection)
        await self.connection.send(events.ONLINE_USERS, {
            "groupId": group_id,
            "users": self.rooms.online_users(group_id),
        })
        if newly_joined:
            await self.rooms.emit(group_id, events.USER_JOINED, self._identity(), exclude=self.connection)

    async def on_leave_group(self, data: Dict[str, Any]) -> None:
        self._require_auth()
        group_id = events.GroupEvent.model_validate(data).group_id
        if await self.rooms.leave(group_id, self.connection):
            await self.rooms.emit(group_id, events.USER_LEFT, self._identity())

    async def on_send_message(self, data: Dict[str, Any]) -> None:
        self._require_auth()
        payload = events.SendMessageEvent.model_validate(data)
        await self.groups.get_group_for_member(payload.group_id, self.connection.user.user_id)
        await self.messages.post_message(payload.group_id, self.connection.user, payload.text)

    async def _relay_typing(self, data: Dict[str, Any], event: str) -> None:
        self._require_auth()
        group_id = events.GroupEvent.model_validate(data).group_id
        if not self.rooms.is_member(group_id, self.connection):
            raise ForbiddenError("Join the group before sending typing events.")
        payload = {"userId": self.connection.user.user_id, "groupId": group_id}
        if event == events.TYPING:
            payload["displayName"] = self.connection.user.display_name
        await self.rooms.emit(group_id, event, payload, exclude=self.connection)

    async def on_typing(self, data: Dict[str, Any]) -> None:
        await self._relay_typing(data, events.TYPING)

    async def on_stop_typing(self, data: Dict[str, Any]) -> None:
        await self._relay_typing(data, events.STOP_TYPING)

    async def close(self) -> None:
        """Disconnect cleanup: leave every joined room and tell the remaining members once per room."""
        left = await self.rooms.disconnect(self.connection)
        if self.connection.user is not None:
            for group_id in left:
                await self.rooms.emit(group_id, events.USER_LEFT, self._identity())
        self.connection.closed = True
        logger.debug(f"Connection {self.connection.id} cleaned up ({len(left)} room(s))")
