"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, Field, ValidationError


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    START_GAME = "start_game"
    DRAW_CARD = "draw_card"
    SELECT_TARGET = "select_target"
    USE_SHIELD = "use_shield"
    LEAVE_ROOM = "leave_room"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ROOM_CREATED = "room_created"
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    CARD_DRAWN = "card_drawn"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    PENDING_ACTION_UNRESOLVED = "PENDING_ACTION_UNRESOLVED"
    INTERNAL = "INTERNAL_ERROR"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class RoomCommand(BaseEvent):
    """Command addressed to a room.

    ``room_id``/``player_id`` may be omitted once the connection has
    created or joined a room; the connection's own ids are used then.
    """
    room_id: Optional[str] = Field(default=None, min_length=1, max_length=16)
    player_id: Optional[str] = Field(default=None, min_length=1, max_length=64)


class CreateRoomEvent(BaseEvent):
    """Create room event."""
    type: EventType = EventType.CREATE_ROOM
    name: str = Field(..., min_length=1, max_length=30)


class JoinRoomEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN_ROOM
    room_id: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1, max_length=30)


class StartGameEvent(RoomCommand):
    """Start game event."""
    type: EventType = EventType.START_GAME


class DrawCardEvent(RoomCommand):
    """Draw card event."""
    type: EventType = EventType.DRAW_CARD


class SelectTargetEvent(RoomCommand):
    """King target selection event."""
    type: EventType = EventType.SELECT_TARGET
    target_id: str = Field(..., min_length=1, max_length=64)


class UseShieldEvent(RoomCommand):
    """Shield decision event."""
    type: EventType = EventType.USE_SHIELD
    use_it: bool


class LeaveRoomEvent(BaseEvent):
    """Leave room event; always applies to the sending connection's own seat."""
    type: EventType = EventType.LEAVE_ROOM


class RequestStateEvent(RoomCommand):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    StartGameEvent,
    DrawCardEvent,
    SelectTargetEvent,
    UseShieldEvent,
    LeaveRoomEvent,
    RequestStateEvent
]


# Outbound event models
class RoomCreatedEvent(BaseModel):
    """Room creation confirmation event."""
    type: OutboundEventType = OutboundEventType.ROOM_CREATED
    room_id: str
    player: Dict[str, Any]
    timestamp: float


class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    room_id: str
    player: Dict[str, Any]
    timestamp: float


class StateFullEvent(BaseModel):
    """Full state event."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class CardDrawnEvent(BaseModel):
    """Per-draw event for client-side animation."""
    type: OutboundEventType = OutboundEventType.CARD_DRAWN
    player_id: str
    card: Dict[str, Any]
    penalty: Optional[str] = None
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


# Union type for all outbound events
OutboundEvent = Union[
    RoomCreatedEvent,
    JoinSuccessEvent,
    StateFullEvent,
    CardDrawnEvent,
    ErrorEvent
]


EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.START_GAME: StartGameEvent,
    EventType.DRAW_CARD: DrawCardEvent,
    EventType.SELECT_TARGET: SelectTargetEvent,
    EventType.USE_SHIELD: UseShieldEvent,
    EventType.LEAVE_ROOM: LeaveRoomEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_class = EVENT_MAP[event_type]

    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors()[0]['msg']}")


def error_code_for(code: str) -> ErrorCode:
    """Map an engine error code onto the wire enum."""
    try:
        return ErrorCode(code)
    except ValueError:
        return ErrorCode.INTERNAL


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code,
        message=message,
        timestamp=time.time()
    )


def create_room_created_event(room_id: str, player: Dict[str, Any]) -> RoomCreatedEvent:
    return RoomCreatedEvent(
        room_id=room_id,
        player=player,
        timestamp=time.time()
    )


def create_join_success_event(room_id: str, player: Dict[str, Any]) -> JoinSuccessEvent:
    """Create a join success event."""
    return JoinSuccessEvent(
        room_id=room_id,
        player=player,
        timestamp=time.time()
    )


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    """Create a full state event."""
    return StateFullEvent(
        state=state,
        timestamp=time.time()
    )


def create_card_drawn_event(draw: Dict[str, Any]) -> CardDrawnEvent:
    """Create a card drawn event from a serialized draw payload."""
    return CardDrawnEvent(
        player_id=draw["player_id"],
        card=draw["card"],
        penalty=draw.get("penalty"),
        timestamp=time.time()
    )
