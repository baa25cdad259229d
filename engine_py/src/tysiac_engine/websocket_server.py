"""WebSocket connections and change notifications"""

import asyncio
import logging
from typing import Dict, Optional

import orjson
from fastapi import WebSocket, WebSocketDisconnect

from .dispatch import dispatch
from .engine import TysiacEngine
from .errors import NotFoundError
from .events import OutboundEventType, create_event
from .serialization import sanitize_state

logger = logging.getLogger(__name__)


def encode(message: dict) -> str:
    return orjson.dumps(message).decode()


class ConnectionManager:
    def __init__(self):
        # room_id -> {websocket: player_id}
        self.room_connections: Dict[str, Dict[WebSocket, str]] = {}

    async def connect(self, websocket: WebSocket, room_id: str, player_id: str):
        await websocket.accept()
        self.room_connections.setdefault(room_id, {})[websocket] = player_id
        logger.info(f"Player {player_id} connected to room {room_id}")

    def disconnect(self, websocket: WebSocket, room_id: str):
        connections = self.room_connections.get(room_id)
        if not connections:
            return
        player_id = connections.pop(websocket, None)
        if not connections:
            del self.room_connections[room_id]
        if player_id:
            logger.info(f"Player {player_id} disconnected from room {room_id}")

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        try:
            await websocket.send_text(encode(message))
        except Exception as e:
            logger.error(f"Error sending message: {e}")

    def connection_count(self) -> int:
        return sum(len(conns) for conns in self.room_connections.values())


class GameWebSocketManager:
    """Pushes a personalised state to every connection after a room changes."""

    def __init__(self, engine: TysiacEngine):
        self.engine = engine
        self.connection_manager = ConnectionManager()
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        engine.subscribe(self.on_room_changed)

    def on_room_changed(self, room_id: str):
        # Called from the engine after commit; delivery never blocks the action
        if self.loop is None or room_id not in self.connection_manager.room_connections:
            return
        self.loop.call_soon_threadsafe(
            lambda: asyncio.ensure_future(self.broadcast_game_state(room_id))
        )

    async def broadcast_game_state(self, room_id: str):
        connections = dict(self.connection_manager.room_connections.get(room_id, {}))
        if not connections:
            return

        try:
            room = self.engine.get_room(room_id)
        except NotFoundError:
            room = None

        disconnected = []
        for websocket, player_id in connections.items():
            if room is None:
                message = create_event(OutboundEventType.ROOM_DELETED, roomId=room_id)
            else:
                message = create_event(OutboundEventType.STATE_FULL,
                                       state=sanitize_state(room, player_id))
            try:
                await websocket.send_text(encode(message))
            except Exception as e:
                logger.error(f"Error broadcasting to {player_id}: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.connection_manager.disconnect(websocket, room_id)

    async def handle_websocket(self, websocket: WebSocket, room_id: str, player_id: str):
        self.loop = asyncio.get_running_loop()
        await self.connection_manager.connect(websocket, room_id, player_id)

        try:
            await self.send_game_state(websocket, room_id, player_id)
            while True:
                data = await websocket.receive_text()
                await self.handle_message(websocket, data, room_id, player_id)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected for player {player_id}")
        finally:
            self.connection_manager.disconnect(websocket, room_id)

    async def send_game_state(self, websocket: WebSocket, room_id: str, player_id: str):
        try:
            room = self.engine.get_room(room_id)
        except NotFoundError as e:
            await self.connection_manager.send_personal_message(
                create_event(OutboundEventType.ERROR, code=e.code, message=e.message), websocket)
            return
        await self.connection_manager.send_personal_message(
            create_event(OutboundEventType.STATE_FULL, state=sanitize_state(room, player_id)),
            websocket)

    async def handle_message(self, websocket: WebSocket, raw: str, room_id: str, player_id: str):
        try:
            message = orjson.loads(raw)
        except orjson.JSONDecodeError:
            await self.connection_manager.send_personal_message(
                create_event(OutboundEventType.ERROR, code='INVALID_EVENT', message='Invalid JSON'),
                websocket)
            return

        if not isinstance(message, dict):
            message = {}
        data = message.get('data')
        data = dict(data) if isinstance(data, dict) else {}
        # The connection identifies the caller and the room
        data['playerId'] = player_id
        data.setdefault('roomId', room_id)

        result = dispatch(self.engine, message.get('action'), data)
        await self.connection_manager.send_personal_message(
            create_event(OutboundEventType.ACTION_RESULT, action=message.get('action'), result=result),
            websocket)
