import logging
from fastapi import APIRouter, Depends, Query, WebSocket
from app.database.supabase_client import get_supabase
from app.core.exceptions import AuthError
from app.core.security import SessionUser, decode_session_token
from app.modules.chat.service import MessageService
from app.modules.groups.service import GroupService
from app.realtime import events
from app.realtime.handlers import RealtimeSession
from app.realtime.registry import Connection, RoomRegistry
from supabase import AsyncClient
from typing import Optional

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    supabase: AsyncClient = Depends(get_supabase),
):
    """Real-time channel. Identity is attached once, from the `token` query parameter."""
    rooms: RoomRegistry = websocket.app.state.rooms

    user: Optional[SessionUser] = None
    if token:
        try:
            user = decode_session_token(token)
        except AuthError as e:
            await websocket.accept()
            await websocket.send_json({"event": events.AUTH_ERROR, "data": {"message": e.message}})
            await websocket.close(code=events.AUTH_FAILED_CLOSE_CODE)
            logger.info(f"Refused real-time connection: {e.message}")
            return

    await websocket.accept()
    connection = Connection(websocket, user)
    session = RealtimeSession(connection, rooms, GroupService(supabase), MessageService(supabase, rooms))
    logger.info(f"Connection {connection.id} opened ({user.user_id if user else 'unauthenticated'})")
    if user is not None:
        await connection.send(events.AUTHENTICATED, {"userId": user.user_id, "displayName": user.display_name})

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                await session.error("Only text frames are supported.")
                continue
            await session.handle_frame(raw)
    finally:
        await session.close()
        logger.info(f"Connection {connection.id} closed")
