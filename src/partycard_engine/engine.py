"""Game engine: one instance per room, owning that room's state"""

import logging
import random
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .constants import (
    ACES_TO_END, DIRECTION_CLOCKWISE, FIRE_RULE_COUNT,
    PENDING_NONE, PENDING_Q_DECISION, PENDING_TARGET_SELECTION,
    PHASE_GAME_OVER, PHASE_LOBBY, PHASE_PLAYING, empty_rank_counts
)
from .deck import check_conservation, create_deck, reshuffle_discard, shuffle_deck
from .errors import (
    GameError, InvariantViolation, GAME_ALREADY_STARTED, GAME_NOT_ACTIVE,
    NOT_ENOUGH_PLAYERS, NOT_YOUR_TURN, PENDING_ACTION_UNRESOLVED, ROOM_FULL
)
from .models import Card, GameState, Player
from .rules import RuleConfig, default_rules
from .serialization import get_public_room_info, snapshot_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawResult:
    """Outcome of a single draw."""
    card: Card
    penalty: Optional[str] = None
    reshuffled: bool = False
    description: str = ''


class GameEngine:
    """
    Authoritative rules engine for a single room.

    Every public command takes the engine lock, so commands aimed at the
    same room are serialized no matter which thread or task issues them.
    ``state`` is the live, mutable game state; outward consumers should
    use :meth:`snapshot` instead.
    """

    def __init__(
        self,
        room_id: str,
        host: Player,
        rules: RuleConfig = default_rules,
        rng: Optional[random.Random] = None
    ):
        self.rules = rules
        self.rng = rng or random.Random()
        self._lock = threading.Lock()
        host.is_host = True
        self.state = GameState(room_id=room_id, players=[host])
        self.state.current_turn_player_id = host.id

    @property
    def room_id(self) -> str:
        return self.state.room_id

    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def is_empty(self) -> bool:
        return not self.state.players

    @property
    def has_connected_players(self) -> bool:
        with self._lock:
            return any(player.connected for player in self.state.players)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return snapshot_state(self.state)

    def public_info(self) -> Dict[str, Any]:
        with self._lock:
            return get_public_room_info(self.state)

    # ----- membership -----

    def add_player(self, player: Player) -> Player:
        with self._lock:
            state = self.state
            if state.phase != PHASE_LOBBY:
                raise GameError(GAME_ALREADY_STARTED, "Game already started")
            if not self.rules.has_seat_for(len(state.players)):
                raise GameError(ROOM_FULL, "Room is full")
            player.is_host = not state.players
            state.players.append(player)
            logger.info(f"Player {player.name} ({player.id}) joined room {state.room_id}")
            return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player in any phase.

        Returns the removed player, or None if the id is unknown. During
        play the leaver's shields go back under the discard pile and, if
        the leaver held the turn, the turn moves to whoever was next.
        """
        with self._lock:
            state = self.state
            idx = state.player_index(player_id)
            if idx == -1:
                return None

            player = state.players[idx]
            playing = state.phase == PHASE_PLAYING
            had_turn = state.current_turn_player_id == player_id

            if playing and player.shields:
                state.discard_pile[0:0] = player.shields
                player.shields = []

            state.players.pop(idx)
            logger.info(f"Player {player.name} ({player_id}) left room {state.room_id}")

            if player.is_host and state.players:
                state.players[0].is_host = True
            if state.action_target_id == player_id:
                state.action_target_id = None

            if not state.players:
                state.current_turn_player_id = None
                return player

            if playing:
                if len(state.players) < self.rules.min_players:
                    state.phase = PHASE_GAME_OVER
                    state.pending_action = PENDING_NONE
                    state.last_action_description = (
                        f"GAME OVER! {player.name} left and not enough players remain."
                    )
                    logger.info(f"Room {state.room_id} ended: not enough players")
                elif had_turn:
                    # The players after the leaver shifted down by one slot.
                    if state.direction == DIRECTION_CLOCKWISE:
                        next_index = idx % len(state.players)
                    else:
                        next_index = (idx - 1) % len(state.players)
                    description = f"{player.name} left the game."
                    prompt = self._enter_turn(state.players[next_index])
                    state.last_action_description = _join_text(description, prompt)
            elif state.phase == PHASE_LOBBY and had_turn:
                state.current_turn_player_id = state.players[0].id

            return player

    def set_connected(self, player_id: str, connected: bool) -> bool:
        with self._lock:
            player = self.state.get_player(player_id)
            if not player:
                return False
            player.connected = connected
            return True

    # ----- commands -----

    def start_game(self) -> None:
        with self._lock:
            state = self.state
            if state.phase != PHASE_LOBBY:
                raise GameError(GAME_ALREADY_STARTED, "Game already started")
            if not self.rules.can_start_with(len(state.players)):
                raise GameError(
                    NOT_ENOUGH_PLAYERS,
                    f"Need at least {self.rules.min_players} players to start"
                )

            state.draw_pile = shuffle_deck(create_deck(), self.rng)
            state.discard_pile = []
            for player in state.players:
                player.shields = []
            state.aces_drawn_count = 0
            state.rank_counts = empty_rank_counts()
            state.direction = DIRECTION_CLOCKWISE
            state.pending_action = PENDING_NONE
            state.action_target_id = None
            state.current_turn_player_id = state.players[0].id
            state.phase = PHASE_PLAYING
            state.last_action_description = f"Game Started! {state.players[0].name}'s turn."
            logger.info(f"Game started in room {state.room_id} with {len(state.players)} players")

    def draw_card(self, player_id: str) -> DrawResult:
        with self._lock:
            state = self.state
            if state.phase != PHASE_PLAYING:
                raise GameError(GAME_NOT_ACTIVE, "Game not active")
            if state.current_turn_player_id != player_id:
                raise GameError(NOT_YOUR_TURN, "Not your turn")
            if state.pending_action != PENDING_NONE:
                raise GameError(PENDING_ACTION_UNRESOLVED, "Resolve pending action first")

            player = state.get_player(player_id)
            if player is None:
                self._fail_invariant(f"Turn holder {player_id} is not seated in the room")

            reshuffled = False
            if not state.draw_pile:
                self._reshuffle()
                reshuffled = True

            card = state.draw_pile.pop()
            state.discard_pile.append(card)
            state.rank_counts[card.rank] += 1

            penalty = None
            if state.rank_counts[card.rank] == FIRE_RULE_COUNT:
                penalty = f"FIRE RULE! 4th {card.rank} drawn! DRINK!"
                state.rank_counts[card.rank] = 0
                player.sips += 1
                headline = f"{player.name} triggered FIRE RULE with {card.rank}!"
            else:
                headline = f"{player.name} drew {card.label}"

            effect_text = self._apply_card_effect(card, player)

            prompt = None
            if state.pending_action == PENDING_NONE and state.phase == PHASE_PLAYING:
                prompt = self._advance_turn()

            if state.phase == PHASE_GAME_OVER:
                description = effect_text
            else:
                description = _join_text(
                    "Deck reshuffled!" if reshuffled else None, headline, effect_text, prompt
                )
            state.last_action_description = description

            logger.debug(f"Room {state.room_id}: {player.name} drew {card.id} (penalty={penalty})")
            return DrawResult(card=card, penalty=penalty, reshuffled=reshuffled, description=description)

    def select_target(self, player_id: str, target_id: str) -> bool:
        """Record the King's victim and pass the turn.

        Calls made out of turn or without a pending target selection are
        ignored; the return value tells whether anything happened.
        """
        with self._lock:
            state = self.state
            if (state.phase != PHASE_PLAYING
                    or state.pending_action != PENDING_TARGET_SELECTION
                    or state.current_turn_player_id != player_id):
                logger.debug(f"Room {state.room_id}: ignored select_target from {player_id}")
                return False
            target = state.get_player(target_id)
            if target is None:
                logger.debug(f"Room {state.room_id}: ignored select_target of unknown {target_id}")
                return False

            state.action_target_id = target_id
            target.sips += 1
            state.pending_action = PENDING_NONE
            description = f"{state.player_name(player_id)} selected {target.name} to drink!"
            prompt = self._advance_turn()
            state.last_action_description = _join_text(description, prompt)
            return True

    def use_shield(self, player_id: str, use_it: bool) -> bool:
        """Resolve the shield decision for the turn holder.

        Spending a shield skips the whole turn. Declining (or having no
        shield to spend) clears the decision and the player draws as usual.
        """
        with self._lock:
            state = self.state
            if (state.phase != PHASE_PLAYING
                    or state.pending_action != PENDING_Q_DECISION
                    or state.current_turn_player_id != player_id):
                logger.debug(f"Room {state.room_id}: ignored use_shield from {player_id}")
                return False

            player = state.get_player(player_id)
            state.pending_action = PENDING_NONE
            if use_it and player.shields:
                # Spent shields re-enter circulation under the visible card.
                state.discard_pile.insert(0, player.shields.pop())
                description = f"{player.name} used a Shield (Q) to skip their turn!"
                prompt = self._advance_turn()
                state.last_action_description = _join_text(description, prompt)
            else:
                state.last_action_description = (
                    f"{player.name} decided not to use their Shield. Draw a card!"
                )
            return True

    # ----- internals (caller holds the lock) -----

    def _apply_card_effect(self, card: Card, player: Player) -> Optional[str]:
        state = self.state
        if card.rank == 'A':
            state.aces_drawn_count += 1
            if state.aces_drawn_count >= ACES_TO_END:
                state.phase = PHASE_GAME_OVER
                state.pending_action = PENDING_NONE
                logger.info(f"Game over in room {state.room_id}: {player.name} drew the 4th Ace")
                return f"GAME OVER! {player.name} drew the 4th Ace!"
            return f"Ace {state.aces_drawn_count} of {ACES_TO_END} drawn."
        if card.rank == 'K':
            state.pending_action = PENDING_TARGET_SELECTION
            state.action_target_id = None
            return f"{player.name} drew a King! Select a victim!"
        if card.rank == 'J':
            state.direction *= -1
            return "Direction reversed!"
        if card.rank == 'Q':
            player.shields.append(state.discard_pile.pop())
            return f"{player.name} kept a Shield (Q)."
        if card.rank == '10':
            return "Social! Everyone drinks!"
        return None

    def _advance_turn(self) -> Optional[str]:
        state = self.state
        current_index = state.player_index(state.current_turn_player_id)
        if current_index == -1:
            self._fail_invariant(
                f"Turn holder {state.current_turn_player_id} is not seated in the room"
            )
        # Python's modulo is already non-negative for a negative step.
        next_index = (current_index + state.direction) % len(state.players)
        return self._enter_turn(state.players[next_index])

    def _enter_turn(self, player: Player) -> Optional[str]:
        state = self.state
        state.current_turn_player_id = player.id
        if player.shields:
            state.pending_action = PENDING_Q_DECISION
            return f"{player.name}, you have a Shield! Use it to skip?"
        state.pending_action = PENDING_NONE
        return None

    def _reshuffle(self) -> None:
        state = self.state
        try:
            reshuffle_discard(state, self.rng)
        except ValueError as e:
            self._fail_invariant(str(e))
        if not check_conservation(state):
            self._fail_invariant("Card conservation broken after reshuffle")
        logger.debug(f"Room {state.room_id}: reshuffled {len(state.draw_pile)} cards")

    def _fail_invariant(self, message: str) -> None:
        logger.critical(f"Invariant violation in room {self.state.room_id}: {message}")
        raise InvariantViolation(message)


def _join_text(*parts: Optional[str]) -> str:
    return ' '.join(part for part in parts if part)
