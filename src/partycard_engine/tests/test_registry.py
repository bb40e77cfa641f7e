"""
Tests for room creation, lookup and cleanup.
"""

import random
import re

import pytest

from partycard_engine.constants import PHASE_LOBBY
from partycard_engine.errors import GameError, GAME_ALREADY_STARTED, INTERNAL_ERROR, ROOM_NOT_FOUND
from partycard_engine.registry import RoomRegistry, new_player
from partycard_engine.rules import create_rules


@pytest.fixture
def registry():
    return RoomRegistry(rng=random.Random(3))


def test_create_room(registry):
    host = new_player("Alice")
    room_id = registry.create_room(host)

    assert re.fullmatch(r"[A-Z0-9]{4}", room_id)
    engine = registry.get_engine(room_id)
    assert engine.phase == PHASE_LOBBY
    assert engine.state.players == [host]
    assert host.is_host
    assert len(registry) == 1


def test_get_engine_is_case_insensitive(registry):
    room_id = registry.create_room(new_player("Alice"))
    assert registry.get_engine(room_id.lower()) is registry.get_engine(room_id)


def test_get_missing_engine(registry):
    assert registry.get_engine("ZZZZ") is None


def test_join_room(registry):
    room_id = registry.create_room(new_player("Alice"))
    bob = new_player("Bob")

    engine = registry.join_room(room_id, bob)

    assert [p.name for p in engine.state.players] == ["Alice", "Bob"]
    assert not bob.is_host


def test_join_missing_room(registry):
    with pytest.raises(GameError) as exc:
        registry.join_room("NOPE", new_player("Bob"))
    assert exc.value.code == ROOM_NOT_FOUND


def test_join_after_start(registry):
    room_id = registry.create_room(new_player("Alice"))
    registry.join_room(room_id, new_player("Bob"))
    registry.get_engine(room_id).start_game()

    with pytest.raises(GameError) as exc:
        registry.join_room(room_id, new_player("Carol"))
    assert exc.value.code == GAME_ALREADY_STARTED


def test_empty_room_is_deleted(registry):
    alice = new_player("Alice")
    bob = new_player("Bob")
    room_id = registry.create_room(alice)
    registry.join_room(room_id, bob)

    registry.remove_player(room_id, alice.id)
    assert registry.get_engine(room_id) is not None
    assert bob.is_host

    registry.remove_player(room_id, bob.id)
    assert registry.get_engine(room_id) is None
    assert len(registry) == 0


def test_remove_from_missing_room(registry):
    assert registry.remove_player("NOPE", "p1") is None


def test_room_code_collision_retries():
    first_registry = RoomRegistry(rng=random.Random(11))
    taken = first_registry.create_room(new_player("Alice"))

    # Same seed: the first code it tries is already taken
    registry = RoomRegistry(rng=random.Random(11))
    registry.rooms[taken] = first_registry.rooms[taken]
    room_id = registry.create_room(new_player("Bob"))

    assert room_id != taken
    assert len(registry) == 2


def test_room_code_collision_gives_up():
    first_registry = RoomRegistry(rng=random.Random(11))
    taken = first_registry.create_room(new_player("Alice"))

    registry = RoomRegistry(rules=create_rules(room_code_retries=1), rng=random.Random(11))
    registry.rooms[taken] = first_registry.rooms[taken]

    with pytest.raises(GameError) as exc:
        registry.create_room(new_player("Bob"))
    assert exc.value.code == INTERNAL_ERROR


def test_new_player_ids_are_unique():
    ids = {new_player("X").id for _ in range(50)}
    assert len(ids) == 50


def test_abandoned_room_is_deleted(registry):
    alice = new_player("Alice")
    bob = new_player("Bob")
    room_id = registry.create_room(alice)
    engine = registry.join_room(room_id, bob)

    engine.set_connected(alice.id, False)
    assert not registry.discard_if_abandoned(room_id)
    assert registry.get_engine(room_id) is engine

    engine.set_connected(bob.id, False)
    assert registry.discard_if_abandoned(room_id)
    assert registry.get_engine(room_id) is None
    assert not registry.discard_if_abandoned(room_id)
