"""
FastAPI WebSocket server for the party card game.
"""

import logging
import os
from collections import defaultdict
from typing import Dict, Optional, Set, Tuple

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .. import __version__
from ..engine import GameEngine
from ..errors import GameError, InvariantViolation, NOT_IN_ROOM
from ..registry import RoomRegistry, new_player
from ..serialization import serialize_draw_event, serialize_player
from .events import (
    parse_inbound_event, error_code_for, create_error_event, create_room_created_event,
    create_join_success_event, create_state_full_event, create_card_drawn_event,
    ErrorCode, CreateRoomEvent, JoinRoomEvent, StartGameEvent, DrawCardEvent,
    SelectTargetEvent, UseShieldEvent, LeaveRoomEvent, RequestStateEvent, RoomCommand,
    OutboundEvent
)

logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(title="Party Card Game Engine", version=__version__)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
registry = RoomRegistry()


def dump_event(event: BaseModel) -> str:
    return orjson.dumps(event.model_dump(mode="json")).decode()


class ConnectionManager:
    """Manages WebSocket connections and broadcasting."""

    def __init__(self):
        self.room_connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.connection_players: Dict[WebSocket, str] = {}
        self.connection_rooms: Dict[WebSocket, str] = {}

    def connect(self, websocket: WebSocket, room_id: str, player_id: str):
        """Attach a connection to a room as ``player_id``."""
        self.room_connections[room_id].add(websocket)
        self.connection_players[websocket] = player_id
        self.connection_rooms[websocket] = room_id
        logger.info(f"Player {player_id} connected to room {room_id}")

    def disconnect(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        """Detach a connection from its room."""
        player_id = self.connection_players.pop(websocket, None)
        room_id = self.connection_rooms.pop(websocket, None)

        if room_id and room_id in self.room_connections:
            self.room_connections[room_id].discard(websocket)
            # Clean up empty room connections
            if not self.room_connections[room_id]:
                del self.room_connections[room_id]

        if player_id:
            logger.info(f"Player {player_id} disconnected from room {room_id}")

        return player_id, room_id

    def connection_count(self) -> int:
        return sum(len(conns) for conns in self.room_connections.values())

    async def send(self, websocket: WebSocket, event: OutboundEvent):
        await websocket.send_text(dump_event(event))

    async def broadcast_to_room(self, room_id: str, event: OutboundEvent):
        """Broadcast an event to all connections in a room."""
        payload = dump_event(event)
        for websocket in list(self.room_connections.get(room_id, ())):
            try:
                await websocket.send_text(payload)
            except Exception as e:
                logger.error(f"Error broadcasting to {self.connection_players.get(websocket)}: {e}")
                # Remove dead connection
                self.disconnect(websocket)


manager = ConnectionManager()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "rooms": len(registry),
        "connections": manager.connection_count()
    }


@app.get("/rooms/{room_id}")
async def room_info(room_id: str):
    """Public lobby information for a room code."""
    engine = registry.get_engine(room_id)
    if engine is None:
        return {"found": False, "room_id": room_id}
    return {"found": True, **engine.public_info()}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Main WebSocket endpoint."""
    await websocket.accept()
    logger.info("WebSocket connection accepted")

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                event = parse_inbound_event(orjson.loads(raw_data))
                await handle_event(websocket, event)
            except ValueError as e:
                # Invalid event
                await manager.send(websocket, create_error_event(ErrorCode.INVALID_EVENT, str(e)))
            except InvariantViolation:
                # Already logged loudly by the engine; keep internals off the wire
                await manager.send(
                    websocket, create_error_event(ErrorCode.INTERNAL, "Internal server error")
                )
            except GameError as e:
                await manager.send(websocket, create_error_event(error_code_for(e.code), e.message))
            except Exception:
                logger.exception("Error handling event")
                await manager.send(
                    websocket, create_error_event(ErrorCode.INTERNAL, "Internal server error")
                )

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception:
        logger.exception("WebSocket error")
    finally:
        await handle_disconnect(websocket)


async def handle_event(websocket: WebSocket, event) -> Dict:
    """Handle an inbound event."""

    if isinstance(event, CreateRoomEvent):
        return await handle_create_room(websocket, event)
    elif isinstance(event, JoinRoomEvent):
        return await handle_join_room(websocket, event)
    elif isinstance(event, StartGameEvent):
        return await handle_start_game(websocket, event)
    elif isinstance(event, DrawCardEvent):
        return await handle_draw_card(websocket, event)
    elif isinstance(event, SelectTargetEvent):
        return await handle_select_target(websocket, event)
    elif isinstance(event, UseShieldEvent):
        return await handle_use_shield(websocket, event)
    elif isinstance(event, LeaveRoomEvent):
        return await handle_leave_room(websocket, event)
    elif isinstance(event, RequestStateEvent):
        return await handle_request_state(websocket, event)
    else:
        raise ValueError(f"Unhandled event type: {type(event)}")


def resolve_command(websocket: WebSocket, event: RoomCommand) -> Tuple[GameEngine, str]:
    """Find the engine and acting player for a room command."""
    room_id = event.room_id or manager.connection_rooms.get(websocket)
    player_id = event.player_id or manager.connection_players.get(websocket)

    if not room_id or not player_id:
        raise GameError(NOT_IN_ROOM, "Not in a room")

    return registry.require_engine(room_id), player_id


async def leave_current_room(websocket: WebSocket):
    """Drop the connection's current seat, if any."""
    player_id, room_id = manager.disconnect(websocket)
    if player_id and room_id:
        registry.remove_player(room_id, player_id)
        await broadcast_state(room_id)


async def broadcast_state(room_id: str):
    engine = registry.get_engine(room_id)
    if engine is not None:
        await manager.broadcast_to_room(room_id, create_state_full_event(engine.snapshot()))


async def handle_create_room(websocket: WebSocket, event: CreateRoomEvent) -> Dict:
    """Handle create room event."""
    await leave_current_room(websocket)

    player = new_player(event.name)
    room_id = registry.create_room(player)
    manager.connect(websocket, room_id, player.id)

    await manager.send(websocket, create_room_created_event(room_id, serialize_player(player)))
    await broadcast_state(room_id)
    return {"success": True, "room_id": room_id, "player_id": player.id}


async def handle_join_room(websocket: WebSocket, event: JoinRoomEvent) -> Dict:
    """Handle join room event."""
    player = new_player(event.name)
    engine = registry.join_room(event.room_id, player)
    await leave_current_room(websocket)
    manager.connect(websocket, engine.room_id, player.id)

    # Send join success confirmation first
    await manager.send(websocket, create_join_success_event(engine.room_id, serialize_player(player)))
    await broadcast_state(engine.room_id)
    return {"success": True, "room_id": engine.room_id, "player_id": player.id}


async def handle_start_game(websocket: WebSocket, event: StartGameEvent) -> Dict:
    """Handle start game event."""
    engine, _ = resolve_command(websocket, event)
    engine.start_game()
    await broadcast_state(engine.room_id)
    return {"success": True}


async def handle_draw_card(websocket: WebSocket, event: DrawCardEvent) -> Dict:
    """Handle draw card event."""
    engine, player_id = resolve_command(websocket, event)

    result = engine.draw_card(player_id)

    # 1. Global state update, 2. animation trigger
    await broadcast_state(engine.room_id)
    draw = serialize_draw_event(player_id, result.card, result.penalty)
    await manager.broadcast_to_room(engine.room_id, create_card_drawn_event(draw))
    return {"success": True, "card": draw["card"]}


async def handle_select_target(websocket: WebSocket, event: SelectTargetEvent) -> Dict:
    """Handle King target selection; invalid calls are ignored."""
    engine, player_id = resolve_command(websocket, event)
    applied = engine.select_target(player_id, event.target_id)
    await broadcast_state(engine.room_id)
    return {"success": applied}


async def handle_use_shield(websocket: WebSocket, event: UseShieldEvent) -> Dict:
    """Handle shield decision; invalid calls are ignored."""
    engine, player_id = resolve_command(websocket, event)
    applied = engine.use_shield(player_id, event.use_it)
    await broadcast_state(engine.room_id)
    return {"success": applied}


async def handle_leave_room(websocket: WebSocket, event: LeaveRoomEvent) -> Dict:
    """Give up the connection's own seat."""
    if websocket not in manager.connection_players:
        raise GameError(NOT_IN_ROOM, "Not in a room")
    await leave_current_room(websocket)
    return {"success": True}


async def handle_request_state(websocket: WebSocket, event: RequestStateEvent) -> Dict:
    """Handle request state event."""
    engine, _ = resolve_command(websocket, event)
    await manager.send(websocket, create_state_full_event(engine.snapshot()))
    return {"success": True}


async def handle_disconnect(websocket: WebSocket):
    """Mark the player as disconnected; the seat is kept while anyone else is connected."""
    player_id, room_id = manager.disconnect(websocket)
    if not player_id or not room_id:
        return
    engine = registry.get_engine(room_id)
    if engine is None or not engine.set_connected(player_id, False):
        return
    if registry.discard_if_abandoned(room_id):
        return
    await broadcast_state(room_id)
