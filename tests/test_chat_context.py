from __future__ import annotations

import json

from chat_context import ChatContext
from session_registry import RoomKind
from tests.conftest import RecordingConnection


def test_connect_sends_alias_stats_and_roster_in_order(context, connect) -> None:
    a, conn_a = connect()
    assert conn_a.types() == ["alias", "user_stats", "static_rooms"]
    assert conn_a.events[0]["alias"] == a.alias
    assert conn_a.events[1] == {"type": "user_stats", "activeChatters": 0, "waitingUsers": 0, "totalUsers": 1}
    assert [r["id"] for r in conn_a.events[2]["rooms"]] == ["general", "tech", "tiny"]


def test_connect_updates_stats_for_existing_sessions(context, connect) -> None:
    _, conn_a = connect()
    conn_a.clear()
    connect()
    assert conn_a.types() == ["user_stats"]
    assert conn_a.last("user_stats")["totalUsers"] == 2


def test_default_roster_is_used_when_none_given() -> None:
    context = ChatContext()
    roster = {room.id: room for room in context.rooms.roster()}
    assert roster["general"].maxUsers == 50
    assert all(room.currentUsers == 0 for room in roster.values())


def test_disconnect_while_waiting(context, connect) -> None:
    a, _ = connect()
    b, conn_b = connect()
    context.receive(a.id, json.dumps({"type": "find_match"}))
    conn_b.clear()

    context.disconnect(a.id)
    assert len(context.queue) == 0
    assert context.sessions.lookup(a.id) is None
    assert conn_b.last("user_stats") == {"type": "user_stats", "activeChatters": 0, "waitingUsers": 0, "totalUsers": 1}


def test_disconnect_in_private_room_frees_partner(context, connect) -> None:
    a, _ = connect()
    b, conn_b = connect()
    context.receive(a.id, json.dumps({"type": "find_match"}))
    context.receive(b.id, json.dumps({"type": "find_match"}))
    context.receive(a.id, json.dumps({"type": "message", "message": "bye"}))
    assert context.rate_limiter.tracked(a.id) == 1

    context.disconnect(a.id)
    assert conn_b.last("partner_left")
    assert b.room_kind is RoomKind.NONE
    assert context.rooms.private_rooms == {}
    assert context.rate_limiter.tracked(a.id) == 0
    assert len(context.queue) == 0
    assert conn_b.last("user_stats")["activeChatters"] == 0


def test_disconnect_in_named_room(context, connect) -> None:
    a, _ = connect()
    b, conn_b = connect()
    context.receive(a.id, json.dumps({"type": "join_named_room", "roomId": "general"}))
    context.receive(b.id, json.dumps({"type": "join_named_room", "roomId": "general"}))
    conn_b.clear()

    context.disconnect(a.id)
    assert conn_b.types() == ["user_left", "user_stats", "static_rooms"]
    assert conn_b.last("user_left")["roomUsers"] == 1
    assert context.rooms.named_rooms["general"].members == [b.id]


def test_disconnect_twice_is_harmless(context, connect) -> None:
    a, _ = connect()
    context.disconnect(a.id)
    context.disconnect(a.id)
    assert len(context.sessions) == 0


def test_receive_for_unknown_session_is_ignored(context) -> None:
    context.receive("ghost", json.dumps({"type": "find_match"}))
    assert len(context.queue) == 0


def test_handler_failure_does_not_escape(context, connect, monkeypatch) -> None:
    a, _ = connect()
    b, _ = connect()

    def boom(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(context.router, "handle", boom)
    context.receive(a.id, json.dumps({"type": "find_match"}))
    monkeypatch.undo()

    context.receive(b.id, json.dumps({"type": "find_match"}))
    assert list(context.queue) == [b.id]


def test_stats_count_seated_and_waiting_sessions(context, connect) -> None:
    sessions = [connect()[0] for _ in range(4)]
    context.receive(sessions[0].id, json.dumps({"type": "find_match"}))
    context.receive(sessions[1].id, json.dumps({"type": "find_match"}))
    context.receive(sessions[2].id, json.dumps({"type": "find_match"}))
    context.receive(sessions[3].id, json.dumps({"type": "join_named_room", "roomId": "tech"}))

    stats = context.stats()
    assert stats.activeChatters == 3
    assert stats.waitingUsers == 1
    assert stats.totalUsers == 4


def test_collected_connection_does_not_break_broadcast(context) -> None:
    survivor = RecordingConnection()
    context.connect(RecordingConnection())
    context.connect(survivor)
    assert survivor.last("user_stats")["totalUsers"] == 2
