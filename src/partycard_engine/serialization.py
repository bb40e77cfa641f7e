"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, Optional

from .models import Card, GameState, Player


def serialize_card(card: Optional[Card]) -> Optional[Dict[str, Any]]:
    if card is None:
        return None
    return {"id": card.id, "suit": card.suit, "rank": card.rank}


def serialize_player(player: Player) -> Dict[str, Any]:
    """Serialize a player; held shield cards are reported as a count."""
    return {
        "id": player.id,
        "name": player.name,
        "is_host": player.is_host,
        "connected": player.connected,
        "shield_count": player.shield_count,
        "sips": player.sips,
    }


def snapshot_state(state: GameState, include_history: bool = True) -> Dict[str, Any]:
    """
    Build an outward-facing snapshot of the room state.

    Args:
        state: Room state to sanitize
        include_history: Whether to include the full discard pile, not
            just its top card

    Returns:
        A fresh dictionary safe for JSON transmission. The draw pile is
        reported by count only; its order and contents never leave the
        engine.
    """
    top_card = state.discard_pile[-1] if state.discard_pile else None
    snapshot = {
        "room_id": state.room_id,
        "phase": state.phase,
        "players": [serialize_player(player) for player in state.players],
        "current_turn_player_id": state.current_turn_player_id,
        "direction": state.direction,
        "draw_pile_count": len(state.draw_pile),
        "discard_top": serialize_card(top_card),
        "aces_drawn_count": state.aces_drawn_count,
        "rank_counts": dict(state.rank_counts),
        "pending_action": state.pending_action,
        "action_target_id": state.action_target_id,
        "last_action_description": state.last_action_description,
    }

    if include_history:
        snapshot["discard_pile"] = [serialize_card(card) for card in state.discard_pile]

    return snapshot


def serialize_draw_event(player_id: str, card: Card, penalty: Optional[str]) -> Dict[str, Any]:
    """Payload for the per-draw animation event."""
    return {
        "player_id": player_id,
        "card": serialize_card(card),
        "penalty": penalty,
    }


def get_public_room_info(state: GameState) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    return {
        "room_id": state.room_id,
        "phase": state.phase,
        "player_count": len(state.players),
        "players": [player.name for player in state.players],
    }
